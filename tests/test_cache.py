"""Test the metadata cache"""

import hashlib
import json
import os
import time

from ytdl_pipeline.ytdl.cache import MetadataCache, cache_key

LINK = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class TestCacheKey:
    """Test cache key derivation"""

    def test_key_is_sha256_of_link(self):
        assert cache_key(LINK) == hashlib.sha256(LINK.encode("utf-8")).hexdigest()

    def test_distinct_links_distinct_keys(self):
        assert cache_key(LINK) != cache_key(LINK + "&list=PL123")

    def test_key_is_filesystem_safe(self):
        key = cache_key("https://example.com/a b/?x=../../etc")
        assert key.isalnum()


class TestMetadataCache:
    """Test cache load/write behaviour"""

    def test_miss_returns_none(self, temp_dir):
        cache = MetadataCache(temp_dir / "cache")
        assert cache.load(LINK) is None

    def test_round_trip(self, temp_dir):
        cache = MetadataCache(temp_dir / "cache")
        blob = json.dumps({"id": "dQw4w9WgXcQ", "title": "Never Gonna Give You Up"})

        assert cache.write(LINK, blob) is True
        assert json.loads(cache.load(LINK)) == json.loads(blob)

    def test_write_creates_directory(self, temp_dir):
        directory = temp_dir / "nested" / "cache"
        cache = MetadataCache(directory)

        assert cache.write(LINK, "{}") is True
        assert cache.path_for(LINK).parent == directory
        assert cache.path_for(LINK).name == f"{cache_key(LINK)}.json"

    def test_write_leaves_no_temporary_files(self, temp_dir):
        cache = MetadataCache(temp_dir)
        cache.write(LINK, '{"a": 1}')
        cache.write(LINK, '{"a": 2}')

        assert [p.name for p in temp_dir.iterdir()] == [f"{cache_key(LINK)}.json"]
        assert json.loads(cache.load(LINK)) == {"a": 2}

    def test_expired_entry_is_ignored(self, temp_dir):
        cache = MetadataCache(temp_dir, duration=60)
        cache.write(LINK, '{"a": 1}')

        old = time.time() - 3600
        os.utime(cache.path_for(LINK), (old, old))

        assert cache.load(LINK) is None

    def test_fresh_entry_within_duration(self, temp_dir):
        cache = MetadataCache(temp_dir, duration=3600)
        cache.write(LINK, '{"a": 1}')

        recent = time.time() - 60
        os.utime(cache.path_for(LINK), (recent, recent))

        assert cache.load(LINK) == '{"a": 1}'

    def test_empty_file_is_a_miss(self, temp_dir):
        cache = MetadataCache(temp_dir)
        cache.path_for(LINK).write_text("")

        assert cache.load(LINK) is None

    def test_write_failure_returns_false(self, temp_dir):
        # A file where the cache directory should be
        blocker = temp_dir / "cache"
        blocker.write_text("not a directory")
        cache = MetadataCache(blocker)

        assert cache.write(LINK, "{}") is False
        assert cache.load(LINK) is None

    def test_clear(self, temp_dir):
        cache = MetadataCache(temp_dir / "cache")
        cache.write(LINK, "{}")
        cache.write(LINK + "2", "{}")

        assert cache.clear() == 2
        assert cache.load(LINK) is None
        assert cache.clear() == 0


class TestDisabledCache:
    """Test the pass-through mode"""

    def test_disabled_flag(self, temp_dir):
        directory = temp_dir / "cache"
        cache = MetadataCache(directory, enabled=False)

        assert cache.write(LINK, "{}") is False
        assert cache.load(LINK) is None
        assert not directory.exists()

    def test_empty_directory_disables(self):
        cache = MetadataCache("")

        assert cache.enabled is False
        assert cache.path_for(LINK) is None
        assert cache.write(LINK, "{}") is False

    def test_disabled_ignores_existing_files(self, temp_dir):
        MetadataCache(temp_dir).write(LINK, '{"a": 1}')
        cache = MetadataCache(temp_dir, enabled=False)

        assert cache.load(LINK) is None
        assert cache.clear() == 0
