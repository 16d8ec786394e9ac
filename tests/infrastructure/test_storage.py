"""Tests for namespaced disk storage."""

from pathlib import Path

import pytest

from catalog_browser.exceptions import StorageFullError
from catalog_browser.infrastructure import DiskStorage


class TestDiskStorage:
    """Tests for file-backed key/value storage."""

    def test_set_get_remove(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path)

        storage.set_item("https://pokeapi.co/api/v2/pokemon/1", '{"value": 1}')

        assert storage.get_item("https://pokeapi.co/api/v2/pokemon/1") == '{"value": 1}'
        storage.remove_item("https://pokeapi.co/api/v2/pokemon/1")
        assert storage.get_item("https://pokeapi.co/api/v2/pokemon/1") is None

    def test_missing_key_and_removal_are_quiet(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path)

        assert storage.get_item("absent") is None
        storage.remove_item("absent")

    def test_creates_root_directory(self, tmp_path: Path) -> None:
        root = tmp_path / "nested" / "cache"

        DiskStorage(root)

        assert root.is_dir()

    def test_clear_only_touches_its_namespace(self, tmp_path: Path) -> None:
        cache = DiskStorage(tmp_path, namespace="catalog_v1_")
        favorites = DiskStorage(tmp_path, namespace="favorites_v1_")
        cache.set_item("k", "cached")
        favorites.set_item("k", "kept")

        cache.clear()

        assert cache.get_item("k") is None
        assert favorites.get_item("k") == "kept"

    def test_quota_overrun_raises_storage_full(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path, max_bytes=10)
        storage.set_item("a", "12345")

        with pytest.raises(StorageFullError) as exc_info:
            storage.set_item("b", "123456")

        assert exc_info.value.key == "b"
        assert storage.get_item("b") is None

    def test_overwrite_counts_replaced_bytes(self, tmp_path: Path) -> None:
        storage = DiskStorage(tmp_path, max_bytes=10)
        storage.set_item("a", "1234567890")

        storage.set_item("a", "0987654321")

        assert storage.get_item("a") == "0987654321"
        assert storage.used_bytes() == 10
