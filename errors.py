"""Exceptions that abort a translation run.

Per-batch API failures are not raised; they travel as ``Failed`` outcomes
(see ``translators.outcomes``).
"""


class TranslatorError(Exception):
    """Base exception for all custom errors."""


class ConfigurationError(TranslatorError):
    """Raised when required options (API key, language, ...) are missing or invalid."""


class HostError(TranslatorError):
    """Raised when the workbook host cannot satisfy a range or sheet request."""


class SheetCreationError(HostError):
    """Raised when the copied worksheet cannot be found after a copy operation."""


class SheetNameTranslationError(TranslatorError):
    """Raised when a sheet name could not be translated."""
