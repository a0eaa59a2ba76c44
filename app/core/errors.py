"""Domain errors raised by the approval and delegation core.

The core only classifies failures. Translation to HTTP status codes and
response bodies happens in the exception handlers registered in app.main.
"""


class ApprovalServiceError(Exception):
    """Base class for all domain errors."""

    error_code = "ERROR"

    def __init__(self, message: str, **context) -> None:
        self.message = message
        self.context = context
        super().__init__(message)


class ValidationError(ApprovalServiceError):
    """Malformed input: bad dates, missing fields, self-delegation, overlap."""

    error_code = "VALIDATION_ERROR"


class NotFoundError(ApprovalServiceError):
    """Referenced entity does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found", entity=entity, entity_id=str(entity_id))


class AuthorizationError(ApprovalServiceError):
    """Actor lacks the required role or relationship."""

    error_code = "FORBIDDEN"


class StateError(ApprovalServiceError):
    """Operation is invalid for the entity's current lifecycle state."""

    error_code = "INVALID_STATE"
