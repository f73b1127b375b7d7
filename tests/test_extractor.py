"""Tests for utils.extractor"""

import re

from utils.extractor import TranslatableCell, extract_translatable_cells


def test_collects_only_non_blank_strings():
    cells, unique_texts = extract_translatable_cells([["Hello", 5], ["", "World"]])

    assert cells == [TranslatableCell(0, 0, "Hello"), TranslatableCell(1, 1, "World")]
    assert list(unique_texts) == ["Hello", "World"]


def test_skips_numbers_booleans_and_whitespace():
    cells, unique_texts = extract_translatable_cells([[None, 3.5, True], ["   ", "\t", 0]])

    assert cells == []
    assert unique_texts == {}


def test_unique_texts_keep_first_seen_order():
    grid = [["b", "a"], ["b", "c"], ["a", "b"]]

    cells, unique_texts = extract_translatable_cells(grid)

    assert len(cells) == 6
    assert list(unique_texts) == ["b", "a", "c"]
    assert all(value is None for value in unique_texts.values())


def test_ignore_patterns_exclude_matching_cells():
    patterns = [re.compile(r"^\d+$"), re.compile(r"^https?://")]

    cells, unique_texts = extract_translatable_cells([["123", "Name", "http://x.org"]], patterns)

    assert cells == [TranslatableCell(0, 1, "Name")]
    assert list(unique_texts) == ["Name"]


def test_ragged_rows():
    cells, _ = extract_translatable_cells([["a"], [], [None, None, "b"]])

    assert [(cell.row, cell.col) for cell in cells] == [(0, 0), (2, 2)]
