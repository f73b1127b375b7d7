"""Session translation cache."""

import logging
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class TranslationCache:
    """
    In-memory map from source text to translated text.

    Keys match by exact string equality. Entries live as long as the object
    and are only ever added or dropped all at once with ``clear()``, which
    the owner calls when the target language changes.
    """

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def get(self, text: str) -> Optional[str]:
        return self._entries.get(text)

    def set(self, text: str, translated: str):
        self._entries[text] = translated

    def clear(self):
        """Drop every entry."""
        if self._entries:
            logger.info(f"Translation cache cleared ({len(self._entries)} entries).")
        self._entries.clear()

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
