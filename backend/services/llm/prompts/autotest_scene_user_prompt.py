"""Generate the autotest scene step for the API above. Cover the success path, reuse the context variables where they fit, and answer by calling the function."""
