from __future__ import annotations


class PuzzleError(Exception):
    """Base class for all domain/service errors."""


# -------------------------
# Session lifecycle
# -------------------------

class NoActivePuzzle(PuzzleError):
    """No active puzzle exists for the session key (missing or finished)."""

    def __init__(self, message: str = "No active puzzle found for this session") -> None:
        super().__init__(message)


# -------------------------
# Submission validation
# -------------------------

class ValidationError(PuzzleError):
    """Submitted word was rejected. The message is safe to show to players."""

    default_message = "Word rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class EmptyWord(ValidationError):
    default_message = "Word cannot be empty"


class WordTooLong(ValidationError):
    default_message = "Word is too long"


class NonAlphabetic(ValidationError):
    default_message = "Word must contain only letters"


class DuplicateSubmission(ValidationError):
    default_message = "Word already submitted"


class NotInDictionary(ValidationError):
    default_message = "Not a valid English word"


class LettersUnavailable(ValidationError):
    default_message = "No such word found with remaining letters"


# -------------------------
# Storage
# -------------------------

class ConcurrencyConflict(PuzzleError):
    """A versioned write lost against a concurrent writer."""
