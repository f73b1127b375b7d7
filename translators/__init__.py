"""Translation service modules."""

from .base import BaseTranslator
from .outcomes import BatchOutcome, Failed, FailureKind, Outcome, Translated
from .gemini import GeminiTranslatorService, ModelTier

__all__ = [
    'BaseTranslator',
    'BatchOutcome',
    'Failed',
    'FailureKind',
    'Outcome',
    'Translated',
    'GeminiTranslatorService',
    'ModelTier',
]
