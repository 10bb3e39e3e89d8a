"""Exceptions raised by the paper store, the generator and the parsers."""

from __future__ import annotations


class PaperSummarizerError(Exception):
    """Base class for every error the application reports to the user."""


class StoreError(PaperSummarizerError):
    """A database operation on the papers table failed."""


class GeneratorError(PaperSummarizerError):
    """The text-generation service failed or returned nothing."""


class ConfigurationError(GeneratorError):
    """Credentials for the text-generation service are missing."""


class UnsupportedFormatError(PaperSummarizerError, ValueError):
    """An uploaded file could not be turned into plain text."""
