"""
Tests for the command line tools.
"""

import numpy as np
import pytest
import zarr

from storage_trees import cli
from storage_trees.nested import StructArray, write_nested_struct_array


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    # keep pytest's own log capture in place
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


def _write_store(path, record, **root_attrs):
    group = zarr.open_group(str(path), mode="w")
    write_nested_struct_array(record, group)
    group.attrs.update(root_attrs)
    return path


class TestDiffMain:

    def test_equal_stores(self, tmp_path, sample_record, capsys):
        left = _write_store(tmp_path / "left.zarr", sample_record)
        right = _write_store(tmp_path / "right.zarr", sample_record)
        assert cli.diff_main([str(left), str(right)]) == 0
        assert capsys.readouterr().out == ""

    def test_different_stores(self, tmp_path, capsys):
        left = _write_store(tmp_path / "left.zarr", StructArray({"a": [1, 2]}))
        right = _write_store(tmp_path / "right.zarr", StructArray({"a": [1, 3]}))
        assert cli.diff_main([str(left), str(right)]) == 1
        out = capsys.readouterr().out
        assert 'getarray( left["1/"]):' in out
        assert 'getarray(right["1/"]):' in out

    def test_ignore_option(self, tmp_path):
        left = _write_store(tmp_path / "left.zarr", StructArray({"a": [1]}), created="monday")
        right = _write_store(tmp_path / "right.zarr", StructArray({"a": [1]}), created="tuesday")
        assert cli.diff_main([str(left), str(right)]) == 1
        assert cli.diff_main([str(left), str(right), "--ignore", "created"]) == 0

    def test_config_names_and_ignores(self, tmp_path, capsys):
        config = tmp_path / "diff.yaml"
        config.write_text("diff:\n  left_name: old\n  right_name: new\n  ignore_names: [created]\n")
        left = _write_store(tmp_path / "left.zarr", StructArray({"a": [1]}), created="monday")
        right = _write_store(tmp_path / "right.zarr", StructArray({"a": [1], "b": [2]}))
        assert cli.diff_main([str(left), str(right), "--config", str(config)]) == 1
        assert capsys.readouterr().out == '"2" in new but not in old\n'

    def test_missing_store(self, tmp_path):
        left = _write_store(tmp_path / "left.zarr", StructArray({"a": [1]}))
        assert cli.diff_main([str(left), str(tmp_path / "missing")]) == 2

    def test_missing_config_file(self, tmp_path):
        store = _write_store(tmp_path / "left.zarr", StructArray({"a": [1]}))
        argv = [str(store), str(store), "--config", str(tmp_path / "missing.yaml")]
        assert cli.diff_main(argv) == 2

    def test_unknown_config_key(self, tmp_path):
        config = tmp_path / "diff.yaml"
        config.write_text("diff:\n  chunk_size: 10\n")
        store = _write_store(tmp_path / "left.zarr", StructArray({"a": [1]}))
        assert cli.diff_main([str(store), str(store), "--config", str(config)]) == 2


class TestInspectMain:

    def test_lists_keys_and_tree(self, tmp_path, capsys):
        store = _write_store(tmp_path / "rec.zarr", StructArray({"a": np.arange(4), "b": StructArray({"c": [1.0]})}))
        assert cli.inspect_main([str(store)]) == 0
        out = capsys.readouterr().out
        assert "/zarr.json" in out
        assert "/1/zarr.json" in out
        assert "1 (4,) int64  {'name': 'a'}" in out
        assert "2/  {'name': 'b'}" in out

    def test_missing_store(self, tmp_path):
        assert cli.inspect_main([str(tmp_path / "missing")]) == 2
