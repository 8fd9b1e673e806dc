"""
This file contains custom, application-specific exceptions.

Services raise these; main.py maps each of them to an HTTP response.
"""
from uuid import UUID


class RosterError(Exception):
    """Base class for every error the roster services raise on purpose."""
    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class IdentityConflict(RosterError):
    """Raised when an identity with the given email already exists."""
    pass


class IdentityInvalid(RosterError):
    """Raised when identity fields break the provider policy (e.g. short password)."""
    pass


class NotFound(RosterError):
    """Raised when an operation targets an id that does not exist."""
    pass


class StorageError(RosterError):
    """Raised when the underlying store fails for reasons opaque to the services."""
    pass


class ProvisioningIncomplete(RosterError):
    """
    Raised when provisioning failed after the identity was committed.
    Carries the identity id so the account can be repaired by re-running
    the role grant and profile steps.
    """
    def __init__(self, identity_id: UUID, failed_step: str, detail: str | None = None):
        super().__init__(
            detail or f"Provisioning of identity {identity_id} stopped at step '{failed_step}'."
        )
        self.identity_id = identity_id
        self.failed_step = failed_step
