# src/core/errors.py

class FlashcardError(Exception):
    """Base class for errors that halt session initialization."""

class SourceUnavailable(FlashcardError):
    """The card source could not be read, parsed or validated."""

class EmptySource(SourceUnavailable):
    """The card source resolved but holds zero cards."""
