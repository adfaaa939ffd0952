"""Exceptions for the lock card engine."""


class LockCardException(Exception):
    """Base exception for the lock card engine."""


class ConfigurationError(LockCardException):
    """Raised when the card configuration is invalid."""
