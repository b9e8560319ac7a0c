"""Custom exception hierarchy for pyobstore."""

from __future__ import annotations

from typing import Any


class ObstoreError(Exception):
    """Base exception for all pyobstore errors."""


class ConfigError(ObstoreError):
    """Invalid configuration value."""


class InvalidArgumentError(ObstoreError, ValueError):
    """Malformed callback, value, or registration argument."""


class InvalidKeyError(InvalidArgumentError):
    """Key is missing, empty, or not a string.

    Raised synchronously by every keyed store operation.  Only the offending
    call is aborted; the store is left untouched.
    """

    def __init__(self, key: Any, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Invalid key {key!r}: key must be a non-empty string")


class ListenerFailure(ObstoreError):
    """A change listener raised while being notified.

    The original exception is available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        action: str = "",
        listener: Any = None,
    ) -> None:
        self.key = key
        self.action = action
        self.listener = listener
        super().__init__(message)


class DuplicateNameWarning(UserWarning):
    """A store was registered under a name that is already taken.

    Non-fatal: the first registration is kept and the caller continues.
    """
