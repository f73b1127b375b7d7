"""Tests for utils.batch_manager"""

import pytest

from utils.batch_manager import CharBudgetBatchBuilder, split_into_batches


def test_respects_item_limit():
    texts = [f"t{i}" for i in range(250)]

    batches = split_into_batches(texts)

    assert [len(batch) for batch in batches] == [100, 100, 50]


def test_respects_character_budget():
    texts = ["a" * 6000, "b" * 6000, "c" * 6000]

    batches = split_into_batches(texts)

    assert batches == [["a" * 6000, "b" * 6000], ["c" * 6000]]


def test_budget_is_inclusive():
    builder = CharBudgetBatchBuilder(max_items=10, max_chars=10)

    assert builder(["12345", "67890", "x"]) == [["12345", "67890"], ["x"]]


def test_oversized_texts_get_their_own_batches():
    first, second = "a" * 20000, "b" * 20000

    assert split_into_batches([first, second]) == [[first], [second]]


def test_oversized_text_flushes_current_batch():
    big = "z" * 30
    builder = CharBudgetBatchBuilder(max_items=10, max_chars=20)

    assert builder(["a", big, "b"]) == [["a"], [big], ["b"]]


def test_concatenation_preserves_order():
    texts = ["x" * n for n in (3, 9, 1, 14, 2, 7, 30, 4)]
    builder = CharBudgetBatchBuilder(max_items=3, max_chars=15)

    batches = builder(texts)

    assert [text for batch in batches for text in batch] == texts
    for batch in batches:
        assert 1 <= len(batch) <= 3
        if len(batch) > 1:
            assert sum(len(text) for text in batch) <= 15


def test_empty_input():
    assert split_into_batches([]) == []


@pytest.mark.parametrize("max_items,max_chars", [(0, 10), (10, 0)])
def test_rejects_non_positive_limits(max_items, max_chars):
    with pytest.raises(ValueError):
        CharBudgetBatchBuilder(max_items=max_items, max_chars=max_chars)
