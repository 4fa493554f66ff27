"""Exceptions."""


class InvalidCredentials(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class PasswordAuthenticationFailed(RuntimeError):
    """Password is not correct."""


class NotAuthenticated(RuntimeError):
    """The operation requires an authenticated identity."""


class NotFound(RuntimeError):
    """User record does not exist."""


class ValidationError(RuntimeError):
    """The user store refused to save a record."""


class ModifiedConcurrently(ValidationError):
    """The record changed since it was read; reload and try again."""


class InvalidToken(RuntimeError):
    """Token is malformed, expired, or not signed with our key."""


class Unavailable(RuntimeError):
    """The user store is temporarily unavailable."""


class ConfigurationError(RuntimeError):
    """The application cannot run with the current configuration."""
