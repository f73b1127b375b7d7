"""Tests for utils.cache"""

from utils.cache import TranslationCache


def test_get_and_set():
    cache = TranslationCache()
    assert cache.get("Hello") is None

    cache.set("Hello", "Bonjour")

    assert cache.get("Hello") == "Bonjour"
    assert "Hello" in cache
    assert len(cache) == 1


def test_keys_match_exactly():
    cache = TranslationCache()
    cache.set("Hello", "Bonjour")

    assert cache.get("hello") is None
    assert cache.get("Hello ") is None


def test_clear_drops_everything():
    cache = TranslationCache()
    cache.set("a", "A")
    cache.set("b", "B")

    cache.clear()

    assert len(cache) == 0
    assert list(cache) == []
