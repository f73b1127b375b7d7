"""Finding translatable text in a grid of cell values."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple

from .validators import is_translatable, should_ignore

Grid = List[List[Any]]


@dataclass(frozen=True)
class TranslatableCell:
    """A string cell at (row, col) of the grid being translated."""
    row: int
    col: int
    text: str


def extract_translatable_cells(
    values: Sequence[Sequence[Any]],
    ignore_patterns: Optional[List[Pattern]] = None,
) -> Tuple[List[TranslatableCell], Dict[str, Optional[str]]]:
    """
    Walk the grid row by row and collect the cells worth translating.

    Returns the cells in row-major order plus a dict of unique source texts
    (first-seen order) mapped to ``None``, ready to receive translations.
    """
    patterns = ignore_patterns or []
    cells: List[TranslatableCell] = []
    unique_texts: Dict[str, Optional[str]] = {}

    for i, row in enumerate(values):
        for j, value in enumerate(row):
            if not is_translatable(value) or should_ignore(value, patterns):
                continue
            if value not in unique_texts:
                unique_texts[value] = None
            cells.append(TranslatableCell(row=i, col=j, text=value))

    return cells, unique_texts
