"""Tests for the ResolutionCache module."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from scwcli.cache import ResolutionCache
from scwcli.exceptions import CacheSaveError
from scwcli.models import ResourceKind

ENDPOINT_A = "https://api.a.example/"
ENDPOINT_B = "https://api.b.example/"

SERVERS = ResourceKind.SERVERS
IMAGES = ResourceKind.IMAGES


@pytest.fixture()
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "resolution.json"


@pytest.fixture()
def cache(cache_path: Path) -> ResolutionCache:
    """An empty cache bound to endpoint A."""
    return ResolutionCache.load(cache_path, ENDPOINT_A)


def _populated(cache: ResolutionCache) -> ResolutionCache:
    cache.insert(SERVERS, "abc123", "web-1")
    cache.insert(SERVERS, "def456", "db-1")
    cache.insert(SERVERS, "0a1b2c", "web-2")
    cache.insert(IMAGES, "img-1", "ubuntu-trusty")
    cache.insert(ResourceKind.SNAPSHOTS, "snap-1", "nightly")
    cache.insert(ResourceKind.BOOTSCRIPTS, "boot-1", "3.2.34 docker")
    return cache


# ------------------------------------------------------------------ #
# insert
# ------------------------------------------------------------------ #


class TestInsert:
    def test_reinsert_updates_name_without_duplicating(self, cache: ResolutionCache) -> None:
        for name in ("first", "second", "third"):
            cache.insert(SERVERS, "abc", name)

        assert [e.identifier for e in cache.entries(SERVERS)] == ["abc"]
        assert cache.name_of(SERVERS, "abc") == "third"
        assert cache.lookup(SERVERS, "third") == {"abc"}
        assert cache.lookup(SERVERS, "first") == set()

    def test_insert_marks_dirty(self, cache: ResolutionCache) -> None:
        assert not cache.is_dirty
        cache.insert(SERVERS, "abc", "web-1")
        assert cache.is_dirty

    def test_same_pair_is_noop(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "abc", "web-1")
        cache.save()
        assert not cache.is_dirty

        cache.insert(SERVERS, "abc", "web-1")
        assert not cache.is_dirty
        assert len(cache) == 1

    def test_empty_identifier_ignored(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "", "ghost")
        assert len(cache) == 0
        assert not cache.is_dirty

    def test_kinds_are_independent(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "abc", "shared")
        cache.insert(IMAGES, "xyz", "shared")
        assert cache.lookup(SERVERS, "shared") == {"abc"}
        assert cache.lookup(IMAGES, "shared") == {"xyz"}

    def test_kind_accepts_plain_string(self, cache: ResolutionCache) -> None:
        cache.insert("servers", "abc", "web-1")  # type: ignore[arg-type]
        assert cache.lookup(SERVERS, "web") == {"abc"}


# ------------------------------------------------------------------ #
# lookup
# ------------------------------------------------------------------ #


class TestLookup:
    def test_exact_identifier(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "def456") == {"def456"}

    def test_exact_name(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "db-1") == {"def456"}

    def test_partial_name_matches_all_containing(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "web") == {"abc123", "0a1b2c"}

    def test_identifier_prefix(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "abc") == {"abc123"}

    def test_needle_extending_identifier(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "abc", "web-1")
        assert cache.lookup(SERVERS, "abcdef") == {"abc"}

    def test_name_match_is_case_sensitive(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "WEB") == set()

    def test_no_typo_tolerance(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "wbe-1") == set()

    def test_name_containing_other_identifier(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "abc", "primary")
        cache.insert(SERVERS, "zzz", "replica-of-abc")
        assert cache.lookup(SERVERS, "abc") == {"abc", "zzz"}

    def test_shared_names_return_every_identifier(self, cache: ResolutionCache) -> None:
        cache.insert(SERVERS, "one", "web")
        cache.insert(SERVERS, "two", "web")
        assert cache.lookup(SERVERS, "web") == {"one", "two"}

    def test_empty_needle_matches_everything(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "") == {"abc123", "def456", "0a1b2c"}
        assert cache.lookup(IMAGES, "") == {"img-1"}

    def test_no_match_returns_empty_set(self, cache: ResolutionCache) -> None:
        _populated(cache)
        assert cache.lookup(SERVERS, "zzz") == set()

    def test_empty_cache(self, cache: ResolutionCache) -> None:
        assert cache.lookup(SERVERS, "") == set()

    def test_order_independent(self, cache_path: Path) -> None:
        pairs = [("abc", "web-1"), ("abd", "web-2"), ("xyz", "db"), ("abc", "web-9")]
        forward = ResolutionCache(ENDPOINT_A, cache_path)
        backward = ResolutionCache(ENDPOINT_A, cache_path)
        for identifier, name in pairs[:3]:
            forward.insert(SERVERS, identifier, name)
        for identifier, name in reversed(pairs[:3]):
            backward.insert(SERVERS, identifier, name)

        for needle in ("", "ab", "web", "web-1", "xyz", "db", "nothing"):
            assert forward.lookup(SERVERS, needle) == backward.lookup(SERVERS, needle)


# ------------------------------------------------------------------ #
# load / save
# ------------------------------------------------------------------ #


class TestPersistence:
    def test_roundtrip_preserves_lookups(self, cache: ResolutionCache, cache_path: Path) -> None:
        _populated(cache)
        cache.save()

        reloaded = ResolutionCache.load(cache_path, ENDPOINT_A)
        for kind in ResourceKind:
            assert reloaded.entries(kind) == cache.entries(kind)
            for needle in ("", "web", "abc", "1", "ubuntu", "docker", "nope"):
                assert reloaded.lookup(kind, needle) == cache.lookup(kind, needle)
        assert not reloaded.is_dirty

    def test_file_layout(self, cache: ResolutionCache, cache_path: Path) -> None:
        cache.insert(SERVERS, "abc", "web-1")
        cache.save()

        data = json.loads(cache_path.read_text())
        assert data["version"] == 1
        assert data["endpoint"] == ENDPOINT_A
        assert data["servers"] == [{"identifier": "abc", "name": "web-1"}]
        assert data["images"] == []

    def test_missing_file_loads_empty(self, tmp_path: Path) -> None:
        cache = ResolutionCache.load(tmp_path / "absent.json", ENDPOINT_A)
        assert len(cache) == 0
        assert cache.endpoint == ENDPOINT_A

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{not json",
            "[]",
            '"just a string"',
            '{"version": 1, "endpoint": "https://api.a.example/", "servers": "oops"}',
            '{"version": 1, "endpoint": "https://api.a.example/", "servers": [{"name": "no-id"}]}',
        ],
    )
    def test_corrupt_file_loads_empty(self, cache_path: Path, content: str) -> None:
        cache_path.write_text(content)
        cache = ResolutionCache.load(cache_path, ENDPOINT_A)
        assert len(cache) == 0
        assert cache.lookup(SERVERS, "") == set()

    def test_binary_garbage_loads_empty(self, cache_path: Path) -> None:
        cache_path.write_bytes(b"\xff\xfe\x00garbage")
        assert len(ResolutionCache.load(cache_path, ENDPOINT_A)) == 0

    def test_other_schema_version_loads_empty(self, cache_path: Path) -> None:
        cache_path.write_text(json.dumps({
            "version": 99,
            "endpoint": ENDPOINT_A,
            "servers": [{"identifier": "abc", "name": "web-1"}],
        }))
        assert len(ResolutionCache.load(cache_path, ENDPOINT_A)) == 0

    def test_other_endpoint_loads_empty(self, cache: ResolutionCache, cache_path: Path) -> None:
        _populated(cache)
        cache.save()

        under_b = ResolutionCache.load(cache_path, ENDPOINT_B)
        assert len(under_b) == 0
        assert under_b.endpoint == ENDPOINT_B
        assert under_b.lookup(SERVERS, "") == set()

    def test_trailing_slash_is_the_same_endpoint(self, cache_path: Path) -> None:
        bare = ResolutionCache.load(cache_path, "https://api.a.example")
        bare.insert(SERVERS, "abc", "web-1")
        bare.save()

        assert json.loads(cache_path.read_text())["endpoint"] == ENDPOINT_A
        assert ResolutionCache.load(cache_path, ENDPOINT_A).lookup(SERVERS, "web") == {"abc"}
        assert ResolutionCache.load(cache_path, "https://api.a.example//").lookup(SERVERS, "web") == {"abc"}

    def test_unslashed_tag_on_disk_matches(self, cache_path: Path) -> None:
        cache_path.write_text(json.dumps({
            "version": 1,
            "endpoint": "https://api.a.example",
            "servers": [{"identifier": "abc", "name": "web-1"}],
        }))
        assert ResolutionCache.load(cache_path, ENDPOINT_A).lookup(SERVERS, "web") == {"abc"}

    def test_unstatable_path_loads_empty(
        self, cache_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _denied(self: Path) -> bool:
            raise PermissionError("permission denied")

        monkeypatch.setattr(Path, "is_file", _denied)
        cache = ResolutionCache.load(cache_path, ENDPOINT_A)
        assert len(cache) == 0
        assert cache.path == cache_path

    def test_save_under_other_endpoint_replaces_contents(
        self, cache: ResolutionCache, cache_path: Path
    ) -> None:
        _populated(cache)
        cache.save()

        under_b = ResolutionCache.load(cache_path, ENDPOINT_B)
        under_b.insert(SERVERS, "bbb", "b-server")
        under_b.save()

        assert len(ResolutionCache.load(cache_path, ENDPOINT_A)) == 0
        assert ResolutionCache.load(cache_path, ENDPOINT_B).lookup(SERVERS, "b") == {"bbb"}

    def test_tolerates_unknown_and_missing_fields(self, cache_path: Path) -> None:
        cache_path.write_text(json.dumps({
            "version": 1,
            "endpoint": ENDPOINT_A,
            "servers": [{"identifier": "abc", "name": "web-1", "extra": True}],
            "volumes": [{"identifier": "vol", "name": "data"}],
            "written_by": "a newer release",
        }))

        cache = ResolutionCache.load(cache_path, ENDPOINT_A)
        assert cache.lookup(SERVERS, "web") == {"abc"}
        assert cache.entries(IMAGES) == []

    def test_entry_without_name_defaults_to_empty(self, cache_path: Path) -> None:
        cache_path.write_text(json.dumps({
            "version": 1,
            "endpoint": ENDPOINT_A,
            "images": [{"identifier": "img"}],
        }))
        cache = ResolutionCache.load(cache_path, ENDPOINT_A)
        assert cache.name_of(IMAGES, "img") == ""

    def test_save_leaves_no_temp_files(self, cache: ResolutionCache, cache_path: Path) -> None:
        _populated(cache)
        cache.save()
        cache.insert(SERVERS, "new", "new-server")
        cache.save()
        assert sorted(os.listdir(cache_path.parent)) == ["resolution.json"]

    def test_save_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "resolution.json"
        cache = ResolutionCache(ENDPOINT_A, path)
        cache.insert(SERVERS, "abc", "web-1")
        cache.save()
        assert path.is_file()

    def test_save_failure_raises_and_keeps_previous_file(
        self, cache: ResolutionCache, cache_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        cache.insert(SERVERS, "abc", "web-1")
        cache.save()
        before = cache_path.read_text()

        def _broken_replace(src: str, dst: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("scwcli.config.os.replace", _broken_replace)
        cache.insert(SERVERS, "def", "db-1")
        with pytest.raises(CacheSaveError, match="disk full"):
            cache.save()

        assert cache_path.read_text() == before
        assert sorted(os.listdir(cache_path.parent)) == ["resolution.json"]
        assert cache.is_dirty

    def test_memory_only_cache_never_writes(self, tmp_path: Path) -> None:
        cache = ResolutionCache(ENDPOINT_A)
        cache.insert(SERVERS, "abc", "web-1")
        cache.save()
        assert cache.path is None
        assert not cache.is_dirty
        assert list(tmp_path.iterdir()) == []


# ------------------------------------------------------------------ #
# remove / clear / stats
# ------------------------------------------------------------------ #


class TestMaintenance:
    def test_remove(self, cache: ResolutionCache) -> None:
        _populated(cache)
        cache.save()
        cache.remove(SERVERS, "abc123")
        assert cache.lookup(SERVERS, "web") == {"0a1b2c"}
        assert cache.is_dirty

    def test_remove_unknown_is_noop(self, cache: ResolutionCache) -> None:
        cache.remove(SERVERS, "nope")
        assert not cache.is_dirty

    def test_clear_one_kind(self, cache: ResolutionCache) -> None:
        _populated(cache)
        cache.clear(SERVERS)
        assert cache.entries(SERVERS) == []
        assert cache.lookup(IMAGES, "") == {"img-1"}

    def test_clear_all(self, cache: ResolutionCache) -> None:
        _populated(cache)
        cache.clear()
        assert len(cache) == 0

    def test_stats(self, cache: ResolutionCache, cache_path: Path) -> None:
        _populated(cache)
        stats = cache.stats()
        assert stats["path"] == str(cache_path)
        assert stats["endpoint"] == ENDPOINT_A
        assert stats["servers"] == 3
        assert stats["images"] == 1
        assert stats["snapshots"] == 1
        assert stats["bootscripts"] == 1
