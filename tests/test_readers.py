"""
Tests for the keyed blob store readers.
"""

import os

import numpy as np
import pytest
import zarr

from storage_trees.diff import assert_trees_equal
from storage_trees.errors import (
    IndexOutOfRange,
    KeyNotFound,
    NotFound,
    StorageTreeError,
    StoreIOError,
)
from storage_trees.nested import read_nested_struct_array, write_nested_struct_array
from storage_trees.readers import DirectoryReader, materialize_group, normalize_key


@pytest.fixture
def blob_dir(tmp_path):
    """Store root with x.bin (4 bytes) and sub/y.bin (2 bytes)."""
    (tmp_path / "x.bin").write_bytes(b"\x00\x01\x02\x03")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "y.bin").write_bytes(b"yz")
    return tmp_path


class TestKeyNormalization:

    def test_redundant_separators_collapsed(self):
        assert normalize_key("a//c.txt") == "/a/c.txt"
        assert normalize_key("a///b//c.txt") == "/a/b/c.txt"

    def test_backslashes_become_slashes(self):
        assert normalize_key("a\\b.txt") == "/a/b.txt"

    def test_leading_and_trailing_slashes_stripped(self):
        assert normalize_key("/a/b.txt/") == "/a/b.txt"

    def test_keys_have_single_leading_slash(self):
        for raw in ["a/b.txt", "a//c.txt"]:
            key = normalize_key(raw)
            assert key.startswith("/")
            assert "//" not in key
            assert not key.endswith("/")


class TestDirectoryReader:

    def test_key_names_in_discovery_order(self, blob_dir):
        reader = DirectoryReader(blob_dir)
        assert reader.key_names() == ["/x.bin", "/sub/y.bin"]
        assert len(reader) == 2
        assert list(reader) == ["/x.bin", "/sub/y.bin"]

    def test_read_key_idx_returns_file_bytes(self, blob_dir):
        reader = DirectoryReader(blob_dir)
        assert reader.read_key_idx(0) == b"\x00\x01\x02\x03"
        assert reader.read_key_idx(1) == b"yz"

    def test_read_key(self, blob_dir):
        reader = DirectoryReader(blob_dir)
        assert reader.read_key("/sub/y.bin") == b"yz"
        with pytest.raises(KeyNotFound, match="nope"):
            reader.read_key("/nope")

    def test_path_is_absolute(self, blob_dir, monkeypatch):
        monkeypatch.chdir(blob_dir)
        reader = DirectoryReader("sub")
        assert os.path.isabs(reader.path)
        assert os.path.realpath(reader.path) == os.path.realpath(blob_dir / "sub")
        assert reader.key_names() == ["/y.bin"]

    def test_empty_directory(self, tmp_path):
        reader = DirectoryReader(tmp_path)
        assert reader.key_names() == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(NotFound):
            DirectoryReader(tmp_path / "missing")

    def test_file_root(self, blob_dir):
        with pytest.raises(FileNotFoundError):
            DirectoryReader(blob_dir / "x.bin")

    @pytest.mark.parametrize("idx", [2, 10, -1])
    def test_index_out_of_range(self, blob_dir, idx):
        reader = DirectoryReader(blob_dir)
        with pytest.raises(IndexOutOfRange):
            reader.read_key_idx(idx)

    def test_blob_removed_after_scan(self, blob_dir):
        reader = DirectoryReader(blob_dir)
        (blob_dir / "x.bin").unlink()
        with pytest.raises(StoreIOError) as excinfo:
            reader.read_key_idx(0)
        assert isinstance(excinfo.value, OSError)
        assert isinstance(excinfo.value, StorageTreeError)
        # the scan is not refreshed
        assert reader.key_names() == ["/x.bin", "/sub/y.bin"]

    def test_unreadable_subdirectory(self, blob_dir, monkeypatch):
        real_scandir = os.scandir

        def scandir(path="."):
            if os.path.basename(os.fspath(path)) == "sub":
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        with pytest.raises(StoreIOError) as excinfo:
            DirectoryReader(blob_dir)
        assert isinstance(excinfo.value.__cause__, PermissionError)
        assert "sub" in str(excinfo.value)

    def test_blob_contents_not_cached(self, blob_dir):
        reader = DirectoryReader(blob_dir)
        assert reader.read_key_idx(1) == b"yz"
        (blob_dir / "sub" / "y.bin").write_bytes(b"changed")
        assert reader.read_key_idx(1) == b"changed"


class TestMaterializeGroup:

    def test_zarr_store_round_trip(self, tmp_path, sample_record):
        store_path = tmp_path / "record.zarr"
        on_disk = zarr.open_group(str(store_path), mode="w")
        write_nested_struct_array(sample_record, on_disk)
        in_memory = write_nested_struct_array(sample_record)

        reader = DirectoryReader(store_path)
        assert "/zarr.json" in reader.key_names()
        group = materialize_group(reader)

        assert_trees_equal(in_memory, group, "in_memory", "materialized")

        target = sample_record.zeros_like()
        read_nested_struct_array(target, group)
        assert target == sample_record

    def test_root_attributes_survive(self, tmp_path):
        store_path = tmp_path / "attrs.zarr"
        on_disk = zarr.open_group(str(store_path), mode="w")
        on_disk.attrs["version"] = "1.0"
        on_disk.create_array("values", data=np.arange(6).reshape(2, 3))

        group = materialize_group(DirectoryReader(store_path))
        assert dict(group.attrs) == {"version": "1.0"}
        np.testing.assert_array_equal(group["values"][...], np.arange(6).reshape(2, 3))
