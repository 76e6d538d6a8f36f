# JSON schema of the arguments the model returns for one scene step.
# Mirrors schemas.platform.autotest.APIInfoV2.

_KEY_VALUE = {
    "type": "object",
    "properties": {
        "key": {"type": "string", "description": "name of the header or parameter"},
        "value": {"type": "string", "description": "value, or an expression referencing a context variable"},
        "desc": {"type": "string", "description": "short description"},
    },
    "required": ["key", "value"],
}

AUTOTEST_SCENE_STEP_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "name of the API"},
        "url": {"type": "string", "description": "path of the API, path parameters filled in"},
        "method": {
            "type": "string",
            "enum": ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
        },
        "headers": {"type": "array", "items": _KEY_VALUE},
        "params": {"type": "array", "items": _KEY_VALUE, "description": "query parameters"},
        "body": {
            "type": "object",
            "properties": {
                "type": {
                    "type": "string",
                    "enum": ["", "none", "application/json", "application/x-www-form-urlencoded", "text/plain"],
                },
                "content": {"type": "string", "description": "request body; a JSON document as a string for application/json"},
            },
        },
        "out_params": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "key": {"type": "string"},
                    "source": {"type": "string", "enum": ["status", "header", "body:json", "body:jq", "cookie"]},
                    "expression": {"type": "string"},
                    "matchIndex": {"type": "string"},
                },
                "required": ["key", "source"],
            },
        },
        "asserts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "arg": {"type": "string", "description": "an out_params key"},
                    "operator": {
                        "type": "string",
                        "enum": ["=", "!=", ">", ">=", "<", "<=", "contains", "not_contains", "exist", "not_exist", "empty", "not_empty", "belong", "not_belong"],
                    },
                    "value": {"type": "string"},
                },
                "required": ["arg", "operator"],
            },
        },
    },
    "required": ["params", "headers", "body", "out_params", "asserts"],
}
