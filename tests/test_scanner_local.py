from __future__ import annotations

import os

import pytest

from linewatch.scanner_local import LocalScanner, normalize_text


def test_scan_matches_pattern_without_recursing(tmp_path) -> None:
    (tmp_path / "a.txt").write_text("x\n", encoding="utf-8")
    (tmp_path / "b.log").write_text("y\n", encoding="utf-8")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "c.txt").write_text("z\n", encoding="utf-8")

    records = LocalScanner(tmp_path).scan("*.txt")

    assert [record.name for record in records.values()] == ["a.txt"]


def test_scan_keys_by_path_and_records_mtime(tmp_path) -> None:
    target = tmp_path / "a.txt"
    target.write_text("x", encoding="utf-8")
    os.utime(target, ns=(1_000_000_000, 2_000_000_000))

    records = LocalScanner(tmp_path).scan("*")
    (path, identifier), = records.items()

    assert path == identifier.path
    assert identifier.mtime_ns == 2_000_000_000


def test_scan_skips_directories_and_os_metadata(tmp_path) -> None:
    (tmp_path / "folder.txt").mkdir()
    (tmp_path / ".DS_Store").write_bytes(b"\0")

    assert LocalScanner(tmp_path).scan("*") == {}


def test_scan_missing_root_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalScanner(tmp_path / "missing").scan("*")


def test_normalize_text_replaces_undecodable_bytes() -> None:
    assert normalize_text("caf\udce9") == "caf\ufffd"
