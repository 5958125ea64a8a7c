"""Exception types raised by the prompt store and its backends."""

from __future__ import annotations


class BackendError(Exception):
    """Raised when a key-value backend read or write fails."""


class ConfigError(Exception):
    """Raised on invalid configuration."""


class PromptStoreError(Exception):
    """Base class for rejected store operations.

    ``message`` is suitable for showing to the user as-is.
    """

    message = "Prompt store operation failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class EmptyPromptError(PromptStoreError):
    """Nothing left to save after sanitization."""

    message = "Prompt is empty. Enter text before saving."


class DuplicatePromptError(PromptStoreError):
    """A prompt with the same normalized text is already saved."""

    message = "This prompt already exists in your library."


class PersistenceError(PromptStoreError):
    """The backend write failed; the in-memory collection was left unchanged."""

    message = "Could not save prompts. Please try again."


LOAD_FAILURE_MESSAGE = "Could not load prompts from local storage."
