class FinTrackError(Exception):
    """Base class for errors surfaced to the user."""


class AuthError(FinTrackError):
    """Invalid credentials, sign-up conflict or an unusable session token."""


class EmptyTransactionError(FinTrackError):

    def __init__(self, message: str = "Please enter at least one amount."):
        super().__init__(message)


class PersistenceError(FinTrackError):
    """A create/update/delete/read against the document store failed."""
