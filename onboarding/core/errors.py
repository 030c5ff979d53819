"""Error taxonomy shared by the engine, the store adapters and the HTTP layer."""

from typing import Optional


class OnboardingError(Exception):
    """Base class for failures reported back to the caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OnboardingError):
    """User-correctable input problem, e.g. a missing required field."""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{field} is required.")
        self.field = field


class NotFoundError(OnboardingError):
    """The addressed document does not exist."""

    status_code = 404

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"Document {document_id} was not found.")
        self.collection = collection
        self.document_id = document_id


class ConflictError(OnboardingError):
    """A document with the requested id already exists."""

    status_code = 409

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"Document {document_id} already exists.")
        self.collection = collection
        self.document_id = document_id


class StoreError(OnboardingError):
    """Any other document-store failure (network, quota, permission)."""

    status_code = 502


class InvalidTransitionError(ValueError):
    """A status change that is not in the transition table."""
