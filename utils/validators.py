"""Validation utilities for cell values and sheet names."""

import logging
import re
from typing import Any, Iterable, List, Pattern

from config.constants import SHEET_NAME_FORBIDDEN, SHEET_NAME_MAX_LENGTH

logger = logging.getLogger(__name__)

_FORBIDDEN_SHEET_CHARS = re.compile(SHEET_NAME_FORBIDDEN)


def compile_ignore_patterns(ignore_patterns: List[str]) -> List[Pattern]:
    """Compile regex patterns for ignoring text during translation."""
    compiled_patterns = []
    if ignore_patterns:
        for pattern in ignore_patterns:
            try:
                compiled = re.compile(pattern)
                compiled_patterns.append(compiled)
            except re.error as e:
                logger.warning(f"Invalid regex pattern '{pattern}': {e}. Ignoring.")
    return compiled_patterns


def should_ignore(text: str, ignore_patterns: List[Pattern]) -> bool:
    """Check if text matches any ignore pattern."""
    if not isinstance(text, str) or not text:
        return False
    for pattern in ignore_patterns:
        if pattern.search(text):
            return True
    return False


def is_translatable(value: Any) -> bool:
    """Only non-blank strings are sent for translation; numbers, booleans and empty cells are not."""
    return isinstance(value, str) and value.strip() != ""


def sanitize_sheet_name(name: str, max_length: int = SHEET_NAME_MAX_LENGTH) -> str:
    """
    Make a string usable as a worksheet name.

    Removes the characters Excel forbids (: \\ / ? * [ ]), trims
    surrounding whitespace and truncates to ``max_length``.
    """
    cleaned = _FORBIDDEN_SHEET_CHARS.sub('', name).strip()
    return cleaned[:max_length]


def unique_sheet_name(
    base_name: str,
    existing_names: Iterable[str],
    max_length: int = SHEET_NAME_MAX_LENGTH,
) -> str:
    """
    Return ``base_name`` or the first ``base_name_N`` (N = 1, 2, ...) that
    does not collide case-insensitively with ``existing_names``. The base is
    shortened when needed so the result stays within ``max_length``.
    """
    taken = {name.lower() for name in existing_names}
    final_name = base_name
    counter = 1
    while final_name.lower() in taken:
        suffix = f"_{counter}"
        final_name = base_name[:max_length - len(suffix)] + suffix
        counter += 1
    return final_name
