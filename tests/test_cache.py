from pathlib import Path

import pytest

from text_image.cache import ContentCache, key_for, key_for_bytes, key_for_path, key_for_url
from text_image.models import BytesSource, PathSource, TextArtifact, UrlSource


def test_keys_are_deterministic_and_namespaced() -> None:
    assert key_for_bytes(b"abc") == key_for_bytes(b"abc")
    assert key_for_bytes(b"abc") != key_for_bytes(b"abd")
    # the same text as bytes and as a URL must not collide
    assert key_for_bytes(b"https://example.com/a.png") != key_for_url("https://example.com/a.png")


def test_path_keys_resolve_relative_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert key_for_path("image.png") == key_for_path(tmp_path / "image.png")
    assert key_for(PathSource(Path("image.png"))) == key_for_path(tmp_path / "image.png")


def test_key_for_dispatches_on_source_kind() -> None:
    assert key_for(BytesSource(b"x")) == key_for_bytes(b"x")
    assert key_for(UrlSource("https://example.com/x")) == key_for_url("https://example.com/x")


def test_first_writer_wins() -> None:
    cache = ContentCache()
    first = TextArtifact.from_plain("first")
    second = TextArtifact.from_plain("second")
    assert cache.insert("k", first) is first
    assert cache.insert("k", second) is first
    assert cache.lookup("k") is first
    assert len(cache) == 1


def test_lookup_counts_hits_and_misses() -> None:
    cache = ContentCache(capacity=1)
    assert cache.lookup("missing") is None
    cache.insert("a", TextArtifact.from_plain("a"))
    cache.insert("b", TextArtifact.from_plain("b"))
    cache.lookup("a")
    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.size == 2
    assert stats.over_capacity


def test_clear_empties_the_cache() -> None:
    cache = ContentCache()
    cache.insert("k", TextArtifact.from_plain("value"))
    cache.clear()
    assert "k" not in cache
    assert cache.lookup("k") is None


def test_reserve_makes_one_owner_per_key() -> None:
    cache = ContentCache()
    future, owner = cache.reserve("k")
    waiter, waiter_owns = cache.reserve("k")
    assert owner
    assert not waiter_owns
    assert waiter is future
    assert cache.stats().in_flight == 1

    artifact = TextArtifact.from_plain("done")
    cache.settle("k", artifact=artifact)
    assert waiter.result(timeout=1) is artifact
    assert cache.stats().in_flight == 0


def test_reserve_after_insert_returns_resolved_future() -> None:
    cache = ContentCache()
    artifact = TextArtifact.from_plain("stored")
    cache.insert("k", artifact)
    future, owner = cache.reserve("k")
    assert not owner
    assert future.result(timeout=1) is artifact


def test_settle_with_error_propagates_to_waiters() -> None:
    cache = ContentCache()
    _, owner = cache.reserve("k")
    waiter, _ = cache.reserve("k")
    assert owner
    cache.settle("k", error=ValueError("boom"))
    with pytest.raises(ValueError):
        waiter.result(timeout=1)
    _, owner_again = cache.reserve("k")
    assert owner_again
