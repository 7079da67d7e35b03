from __future__ import annotations

import pytest

from report_canvas.services.storage import LocalFileSystemStorage


def test_write_then_read_creates_parent_dirs(tmp_path):
    storage = LocalFileSystemStorage(tmp_path / "store")

    storage.write_bytes("wb-1/workbook.json", b"{}")

    assert storage.read_bytes("wb-1/workbook.json") == b"{}"
    assert storage.exists("wb-1/workbook.json")
    assert not (tmp_path / "store" / "wb-1" / "workbook.json.tmp").exists()


def test_list_dirs_only_lists_directories(tmp_path):
    storage = LocalFileSystemStorage(tmp_path)
    storage.write_bytes("b/workbook.json", b"{}")
    storage.write_bytes("a/workbook.json", b"{}")
    storage.write_bytes("loose.txt", b"x")

    assert storage.list_dirs() == ["a", "b"]
    assert storage.list_dirs("missing") == []


def test_path_traversal_is_rejected(tmp_path):
    storage = LocalFileSystemStorage(tmp_path / "store")

    with pytest.raises(ValueError):
        storage.write_bytes("../escape.json", b"{}")
    with pytest.raises(ValueError):
        storage.read_bytes("/etc/passwd")


def test_delete_tree(tmp_path):
    storage = LocalFileSystemStorage(tmp_path)
    storage.write_bytes("wb-1/workbook.json", b"{}")

    assert storage.delete_tree("wb-1") is True
    assert storage.delete_tree("wb-1") is False
    with pytest.raises(ValueError):
        storage.delete_tree("")
