"""Merging translation outcomes back into the original grid."""

import logging
from typing import Any, List, Mapping, Optional, Sequence

from config.constants import CELL_CHAR_LIMIT
from translators.outcomes import Outcome, Translated
from .extractor import Grid, TranslatableCell

logger = logging.getLogger(__name__)


def reconcile_grid(
    values: Sequence[Sequence[Any]],
    cells: Sequence[TranslatableCell],
    outcomes: Mapping[str, Optional[Outcome]],
    max_length: int = CELL_CHAR_LIMIT,
) -> Grid:
    """
    Build a new grid with the same shape as ``values``.

    Only cells whose text resolved to ``Translated`` are replaced; failed or
    unresolved texts keep the original value. Translations longer than
    ``max_length`` are cut to exactly ``max_length`` characters.
    """
    new_values: Grid = [list(row) for row in values]
    truncated = 0

    for cell in cells:
        outcome = outcomes.get(cell.text)
        if not isinstance(outcome, Translated):
            continue
        text = outcome.text
        if len(text) > max_length:
            text = text[:max_length]
            truncated += 1
        new_values[cell.row][cell.col] = text

    if truncated:
        logger.warning(f"Truncated {truncated} translation(s) to {max_length} characters.")
    return new_values


def count_unresolved_cells(
    cells: Sequence[TranslatableCell],
    outcomes: Mapping[str, Optional[Outcome]],
) -> int:
    """Number of cells that will keep their original text."""
    return sum(1 for cell in cells if not isinstance(outcomes.get(cell.text), Translated))
