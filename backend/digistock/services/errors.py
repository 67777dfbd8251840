"""
Workflow Errors

Every failed precondition aborts the unit of work with one of these.
Routers translate them to HTTP responses using status_code.
"""
from typing import Optional


class WorkflowError(Exception):
    """Base class for workflow failures."""
    status_code = 400


class NotFoundError(WorkflowError):
    """Referenced entity id does not exist."""
    status_code = 404

    def __init__(self, entity: str, field: str, value):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} not found with {field}: {value}")


class ConflictError(WorkflowError):
    """Unique value already taken, or a concurrent caller changed the entity first."""
    status_code = 409


class InvalidTransitionError(WorkflowError):
    """Operation is not permitted from the entity's current state."""
    status_code = 400

    def __init__(self, message: str, current_state: Optional[str] = None):
        self.current_state = current_state
        super().__init__(message)


class BusinessRuleError(WorkflowError):
    """A cross-entity rule failed (stolen livestock, ownership mismatch, ...)."""
    status_code = 400


class ValidationError(WorkflowError):
    """Missing or malformed required input."""
    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class StorageUnavailableError(WorkflowError):
    """A QR image or fingerprint proof could not be written."""
    status_code = 503
