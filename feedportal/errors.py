"""
Error types shared by the service modules and routes.
"""


class FeedPortalError(Exception):
    """Base class for application errors."""


class StoreError(FeedPortalError):
    """A query against the data store failed."""

    def __init__(self, message, table=None):
        super().__init__(message)
        self.table = table


class ProfileLookupError(StoreError):
    """Profile lookup failed (distinct from the profile being absent)."""


class AuthenticationError(FeedPortalError):
    """Bad credentials or an account that is not approved."""


class ValidationError(FeedPortalError):
    """Input rejected before any store call was made."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class UnknownRoleError(ValidationError):
    """A role string outside the supported set."""
