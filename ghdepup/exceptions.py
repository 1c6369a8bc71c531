"""Custom exceptions for ghdepup."""

from __future__ import annotations


class GhdepupError(Exception):
    """Base exception for all ghdepup errors."""


class ConfigError(GhdepupError):
    """Raised when input configuration cannot be loaded or is invalid.

    Always raised before any tag fetch is issued.
    """


class MissingKeyError(GhdepupError, KeyError):
    """Raised by the flat-config accessor when a key is not declared."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"missing key {self.key!r}"


class WrongTypeError(GhdepupError, TypeError):
    """Raised by the flat-config accessor when a value has an unexpected type."""

    def __init__(self, key: str, expected: type, actual: object):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"key {key!r} should be {expected.__name__}, got {type(actual).__name__}"
        )


class TagFetchError(GhdepupError):
    """Raised when fetching tags for one dependency fails."""

    def __init__(self, dependency: str, reason: str):
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"{dependency}: {reason}")


class TagPayloadError(GhdepupError):
    """Raised when a tags response body does not have the expected shape."""


class BatchFetchError(GhdepupError):
    """Raised when one or more fetches in a batch failed.

    Carries every failure, not only the first one.
    """

    def __init__(self, errors: list[TagFetchError]):
        self.errors = errors
        super().__init__("\n".join(str(e) for e in errors))

    @property
    def dependencies(self) -> list[str]:
        return [e.dependency for e in self.errors]
