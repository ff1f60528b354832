"""Exceptions raised by the playback and engagement core."""


class AdvancedMediaError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(AdvancedMediaError):
    """User input was rejected (bad comment text, missing author, bad language)."""


class ConfigurationError(AdvancedMediaError):
    """A controller was constructed with unusable data (e.g. no video sources)."""


class NotFound(AdvancedMediaError):
    """The referenced comment no longer exists."""


class AlreadyInFlight(AdvancedMediaError):
    """A translation for the comment is already outstanding."""


class TranslationError(AdvancedMediaError):
    """The translation service failed to produce a result."""


class CommentStoreError(AdvancedMediaError):
    """Persisted comments could not be read or written."""
