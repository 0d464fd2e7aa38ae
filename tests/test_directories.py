from pathlib import Path

import pytest

from zas.config import Config
from zas.directories import DirectoryConfigCache
from zas.errors import ConfigError


def counting_cache(root: Path) -> tuple[DirectoryConfigCache, list[Path]]:
    cache = DirectoryConfigCache(root)
    reads: list[Path] = []
    original = cache._read

    def fake_read(path):
        reads.append(path)
        return original(path)

    cache._read = fake_read
    return cache, reads


def test_resolve_without_any_metadata_is_cached_not_found(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    cache, reads = counting_cache(tmp_path)

    config, found = cache.resolve("a/b/page.md")
    assert not found
    assert config == Config()
    assert reads == []
    assert Path("a/b") in cache
    assert Path("a") in cache
    assert Path(".") in cache

    again, found_again = cache.resolve("a/b/other.md")
    assert again is config
    assert not found_again


def test_resolve_finds_nearest_ancestor_and_caches_chain(tmp_path):
    (tmp_path / "docs" / "guide" / "deep").mkdir(parents=True)
    (tmp_path / "docs" / ".zas.yml").write_text("section: Docs\n", encoding="utf-8")
    cache, reads = counting_cache(tmp_path)

    config, found = cache.resolve("docs/guide/deep/page.md")
    assert found
    assert config.get_string("section") == "Docs"
    assert reads == [tmp_path / "docs" / ".zas.yml"]

    # Intermediate directories were cached on the way up
    assert Path("docs/guide") in cache
    sibling, _ = cache.resolve("docs/guide/other.md")
    assert sibling is config

    second, _ = cache.resolve("docs/guide/deep/page.md")
    assert second is config
    assert len(reads) == 1


def test_nested_metadata_overrides_parent(tmp_path):
    (tmp_path / "blog" / "2024").mkdir(parents=True)
    (tmp_path / ".zas.yml").write_text("section: Root\n", encoding="utf-8")
    (tmp_path / "blog" / "2024" / ".zas.yml").write_text(
        "section: Archive\n", encoding="utf-8"
    )
    cache = DirectoryConfigCache(tmp_path)

    assert cache.resolve("index.md")[0].get_string("section") == "Root"
    assert cache.resolve("blog/post.md")[0].get_string("section") == "Root"
    assert cache.resolve("blog/2024/post.md")[0].get_string("section") == "Archive"


def test_top_level_file_uses_root_metadata(tmp_path):
    (tmp_path / ".zas.yml").write_text("language: es\n", encoding="utf-8")
    cache = DirectoryConfigCache(tmp_path)
    config, found = cache.resolve(Path("index.html"))
    assert found
    assert config.get_string("language") == "es"


def test_malformed_metadata_is_fatal(tmp_path):
    (tmp_path / "bad").mkdir()
    (tmp_path / "bad" / ".zas.yml").write_text("key: [oops\n", encoding="utf-8")
    cache = DirectoryConfigCache(tmp_path)
    with pytest.raises(ConfigError) as excinfo:
        cache.resolve("bad/page.md")
    assert excinfo.value.source_path == tmp_path / "bad" / ".zas.yml"
