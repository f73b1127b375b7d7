"""Utility modules for the sheet translator."""

from .cache import TranslationCache
from .batch_manager import CharBudgetBatchBuilder, split_into_batches
from .extractor import TranslatableCell, extract_translatable_cells
from .reconciler import reconcile_grid, count_unresolved_cells
from .rate_limiter import RateLimiter, cooperative_delay
from .validators import (
    compile_ignore_patterns,
    should_ignore,
    is_translatable,
    sanitize_sheet_name,
    unique_sheet_name,
)

__all__ = [
    'TranslationCache',
    'CharBudgetBatchBuilder',
    'split_into_batches',
    'TranslatableCell',
    'extract_translatable_cells',
    'reconcile_grid',
    'count_unresolved_cells',
    'RateLimiter',
    'cooperative_delay',
    'compile_ignore_patterns',
    'should_ignore',
    'is_translatable',
    'sanitize_sheet_name',
    'unique_sheet_name',
]
