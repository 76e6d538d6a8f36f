"""
Errors raised while applying an AI function.

Every error names the operation that failed and, when known, the position of
the requirement in the batch and the API index id, so a failing unit can be
located from the log line alone.
"""
from typing import Optional


class AIFunctionError(Exception):
    """Base class for AI function failures."""

    def __init__(
        self,
        message: str,
        operation: str = "",
        requirement_index: Optional[int] = None,
        api_index_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.requirement_index = requirement_index
        self.api_index_id = api_index_id

    def __str__(self) -> str:
        where = []
        if self.requirement_index is not None:
            where.append(f"requirements[{self.requirement_index}]")
        if self.api_index_id is not None:
            where.append(f"apiIndexID={self.api_index_id}")
        if self.operation:
            where.append(self.operation)
        if not where:
            return self.message
        return f"{' '.join(where)}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "requirementIndex": self.requirement_index,
            "apiIndexID": self.api_index_id,
            "operation": self.operation,
            "message": str(self),
        }


class ValidationError(AIFunctionError):
    """The batch is malformed; nothing was sent to any collaborator."""
    pass


class ResolutionError(AIFunctionError):
    """Looking up or creating a space / scene set / scene failed."""
    pass


class VariableRegistrationError(AIFunctionError):
    """Registering scene inputs or outputs for an API failed."""
    pass


class GenerationError(AIFunctionError):
    """The model call failed or returned arguments that do not decode."""
    pass


class CommitError(AIFunctionError):
    """Creating the scene step on the platform failed."""
    pass


class GenerationCancelled(AIFunctionError):
    """The batch was cancelled before the unit could finish."""
    pass


class UnknownFunctionError(AIFunctionError):
    pass
