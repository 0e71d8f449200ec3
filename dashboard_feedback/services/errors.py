"""Domain exceptions raised by the workflow services.

Each exception carries the message shown to the caller and the HTTP status
the API layer renders it with.
"""


class WorkflowError(Exception):
    """Base exception for workflow operations."""

    status_code: int = 400
    error: str = "WorkflowError"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(WorkflowError):
    """Missing or malformed required field."""
    status_code = 400
    error = "ValidationError"


class NotFoundError(WorkflowError):
    """Referenced entity does not exist."""
    status_code = 404
    error = "NotFound"


class ForbiddenError(WorkflowError):
    """Role or ownership rule violated."""
    status_code = 403
    error = "Forbidden"


class NotOwnerError(ForbiddenError):
    """Actor does not own the entity."""
    pass


class SelfSecondError(ForbiddenError):
    """Submitter tried to second their own thread."""
    pass


class ConflictError(WorkflowError):
    """Duplicate action."""
    status_code = 400
    error = "Conflict"


class AlreadySecondedError(ConflictError):
    """The (issue, user) pair is already in the second ledger."""
    pass


class InvalidStateError(WorkflowError):
    """Operation not allowed in the entity's current state."""
    status_code = 400
    error = "InvalidState"
