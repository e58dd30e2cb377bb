"""Application-level exception types for Quill."""

from __future__ import annotations


class QuillError(Exception):
    """Base exception for Quill."""


class InvalidStateError(QuillError):
    """Raised when a terminal stream or a committed conversation is mutated."""


class ConfigurationError(QuillError):
    """Base exception for configuration and startup validation errors."""


class InvalidModelFormatError(ConfigurationError):
    """Raised when model format is not provider:model."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when an API key is required but missing."""


class GenerationExhaustedError(QuillError):
    """Raised when every generation attempt produced empty text."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"generation produced no text after {attempts} attempt(s)")
        self.attempts = attempts
