"""Splitting texts into API-sized batches."""

import logging
from typing import List, Sequence

from config.constants import MAX_CHARS_PER_BATCH, MAX_ITEMS_PER_BATCH

logger = logging.getLogger(__name__)


class CharBudgetBatchBuilder:
    """
    Batch builder that respects both an item count and a character budget.

    Texts are accumulated greedily in input order. A text that alone is
    longer than ``max_chars`` is placed in a batch of its own; the
    translator is expected to reject such a batch instead of sending it.
    """

    def __init__(
        self,
        max_items: int = MAX_ITEMS_PER_BATCH,
        max_chars: int = MAX_CHARS_PER_BATCH,
    ):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        if max_chars < 1:
            raise ValueError("max_chars must be at least 1")
        self.max_items = max_items
        self.max_chars = max_chars

    def __call__(self, texts: Sequence[str]) -> List[List[str]]:
        """
        Build batches from texts respecting both limits.
        Concatenating the returned batches reproduces ``texts`` exactly.
        """
        batches: List[List[str]] = []
        current_batch: List[str] = []
        current_chars = 0

        for text in texts:
            text_length = len(text)

            if text_length > self.max_chars:
                if current_batch:
                    batches.append(current_batch)
                logger.warning(
                    f"Text of {text_length} characters exceeds the batch limit "
                    f"of {self.max_chars}, isolating it in its own batch"
                )
                batches.append([text])
                current_batch = []
                current_chars = 0
                continue

            if current_batch and (
                current_chars + text_length > self.max_chars
                or len(current_batch) >= self.max_items
            ):
                batches.append(current_batch)
                current_batch = []
                current_chars = 0

            current_batch.append(text)
            current_chars += text_length

        if current_batch:
            batches.append(current_batch)

        return batches


def split_into_batches(
    texts: Sequence[str],
    max_items: int = MAX_ITEMS_PER_BATCH,
    max_chars: int = MAX_CHARS_PER_BATCH,
) -> List[List[str]]:
    """Split texts into batches with a one-off ``CharBudgetBatchBuilder``."""
    return CharBudgetBatchBuilder(max_items=max_items, max_chars=max_chars)(texts)
