"""Exception hierarchy shared by the provider clients and the deposit workflow."""

from typing import Any, Dict, Optional


class ArchiveError(Exception):
    """Base exception for all archival errors.

    Attributes:
        step: Name of the workflow step that failed (set by the workflow)
        deposit: Deposit created before the failure, if any
    """

    retryable = False

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.deposit = None


class CredentialError(ArchiveError):
    """Raised when no usable access token is available for a user."""
    pass


class ProviderApiError(ArchiveError):
    """Raised when a provider answers with an unexpected HTTP status."""

    def __init__(
        self,
        message: str,
        status: int,
        body: Any = None,
        operation: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.body = body
        self.operation = operation

    @property
    def retryable(self) -> bool:
        """Server errors and rate limits may succeed on a later attempt."""
        return self.status == 429 or 500 <= self.status < 600


class TransportError(ArchiveError):
    """Raised when a request fails on the network level (timeout, connection)."""

    retryable = True

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class ValidationError(ArchiveError):
    """Raised when metadata or creators are invalid before any request is made."""

    def __init__(self, field_errors: Dict[str, str]):
        message = "; ".join(f"{field}: {msg}" for field, msg in field_errors.items())
        super().__init__(message or "Invalid input")
        self.field_errors = dict(field_errors)


class InvalidOrcidFormat(ValidationError):
    """Raised when a string is not a syntactically valid ORCID iD."""

    def __init__(self, orcid: Any):
        super().__init__({"orcid": f"Invalid ORCID format: {orcid!r}"})
        self.orcid = orcid


class WorkflowStateError(ArchiveError):
    """Raised when the remote record is not in the state a workflow expects."""
    pass


GENERIC_PUBLISH_FAILURE = (
    "Publishing failed. Please check your metadata (especially ORCID IDs) and try again."
)


def user_message(error: Exception) -> str:
    """
    Map an error to a message suitable for showing to the user.

    Provider error bodies are often not fit for display, so provider and
    transport failures collapse to one generic message.

    Args:
        error: Exception raised by a client or the workflow

    Returns:
        Human readable message
    """
    if isinstance(error, ValidationError):
        return "\n".join(error.field_errors.values())
    if isinstance(error, (ProviderApiError, TransportError)):
        return GENERIC_PUBLISH_FAILURE
    if isinstance(error, ArchiveError):
        return error.message
    return str(error)
