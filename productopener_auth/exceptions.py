"""Exceptions."""


class ValidationError(ValueError):
    """Base for non-recoverable configuration and data errors."""


class ConfigurationError(ValidationError):
    """The session provider is not configured correctly."""


class InvalidUserName(ValidationError):
    """The remote user identifier cannot be used as a local account name."""


class SSOError(RuntimeError):
    """Base for recoverable failures talking to the SSO service."""


class SSORequestFailed(SSOError):
    """The verification request failed or returned nothing useful."""


class ProfileParseError(SSOError):
    """The SSO service returned a body that is not a JSON profile."""


class Unavailable(RuntimeError):
    """The local account database is temporarily unavailable."""


class UnknownSession(RuntimeError):
    """Failed to locate a session in the session store."""


class InvalidToken(RuntimeError):
    """A session record could not be decoded; likely corrupt or forged."""


class SessionExpired(RuntimeError):
    """The session has expired."""


class SessionCreationFailed(RuntimeError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(RuntimeError):
    """Failed to delete a session in the session store."""
