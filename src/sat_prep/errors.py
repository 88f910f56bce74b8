"""Exception types shared across the app."""


class SatPrepError(Exception):
    """Base class for every error the app reports to the user."""


class GenerationError(SatPrepError):
    """The content API call failed or returned something unusable."""


class InvalidRequest(SatPrepError, ValueError):
    """A content request was rejected before reaching the API."""


class NothingToRetake(SatPrepError):
    """The error log has no question-based mistakes to regenerate."""


class LoginError(SatPrepError):
    pass
