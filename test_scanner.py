"""
Tests for content digests and directory scanning
"""
import hashlib
import logging

import pytest

from conftest import write_files
from mcmodsync.shared.exceptions import ScanError
from mcmodsync.shared.hashing import digest_bytes, digest_file
from mcmodsync.shared.models import FileEntry
from mcmodsync.shared.scanner import scan_entries, scan_files, scan_index


def test_digest_is_sha256_hex():
    """Digest is the lowercase SHA-256 hex string"""
    data = b"fabric-api-0.92.jar contents"
    assert digest_bytes(data) == hashlib.sha256(data).hexdigest()
    assert len(digest_bytes(data)) == 64
    assert digest_bytes(data) == digest_bytes(data).lower()


def test_digest_is_deterministic_and_detects_single_byte_change():
    data = bytes(range(256)) * 10
    changed = bytearray(data)
    changed[1234] ^= 0x01

    assert digest_bytes(data) == digest_bytes(bytes(data))
    assert digest_bytes(data) != digest_bytes(bytes(changed))


def test_digest_file_matches_digest_bytes(tmp_path):
    """Chunked file hashing gives the same digest as hashing the bytes at once"""
    content = b"x" * 200_001
    path = tmp_path / "big.jar"
    path.write_bytes(content)

    assert digest_file(path, chunk_size=4096) == digest_bytes(content)


def test_digest_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        digest_file(tmp_path / "nope.jar")


def test_scan_index_recurses_and_keys_by_base_name(tmp_path):
    root = write_files(tmp_path / "mods", {
        "a.jar": b"A",
        "sub/b.jar": b"B",
        "sub/deeper/c.jar": b"C",
    })

    index = scan_index(root)

    assert index == {
        "a.jar": digest_bytes(b"A"),
        "b.jar": digest_bytes(b"B"),
        "c.jar": digest_bytes(b"C"),
    }


def test_scan_entries_lists_every_file_once(tmp_path):
    root = write_files(tmp_path / "mods", {"b.jar": b"B", "a.jar": b"A"})

    entries = scan_entries(root)

    assert sorted(entries, key=lambda e: e.name) == [
        FileEntry("a.jar", digest_bytes(b"A")),
        FileEntry("b.jar", digest_bytes(b"B")),
    ]


def test_scan_empty_folder(tmp_path):
    (tmp_path / "mods").mkdir()
    assert scan_index(tmp_path / "mods") == {}
    assert scan_entries(tmp_path / "mods") == []


def test_duplicate_base_name_last_visited_wins_with_warning(tmp_path, caplog):
    """Walk order is sorted, so 'z/dup.jar' is visited after 'a/dup.jar'"""
    root = write_files(tmp_path / "mods", {
        "a/dup.jar": b"first",
        "z/dup.jar": b"second",
    })

    with caplog.at_level(logging.WARNING, logger="mcmodsync.shared.scanner"):
        files = scan_files(root)
        index = scan_index(root)

    assert files["dup.jar"] == root / "z" / "dup.jar"
    assert index == {"dup.jar": digest_bytes(b"second")}
    assert any("Duplicate file name dup.jar" in r.message for r in caplog.records)


def test_duplicate_base_name_nearest_to_root_wins(tmp_path, caplog):
    """'a.jar' at the top beats 'sub/a.jar' although the nested one is visited later"""
    root = write_files(tmp_path / "mods", {
        "a.jar": b"top",
        "sub/a.jar": b"nested",
        "sub/deeper/a.jar": b"deepest",
    })

    with caplog.at_level(logging.WARNING, logger="mcmodsync.shared.scanner"):
        files = scan_files(root)

    assert files == {"a.jar": root / "a.jar"}
    assert scan_index(root) == {"a.jar": digest_bytes(b"top")}
    assert any("ignored, keeping" in r.message for r in caplog.records)


def test_scan_missing_root_raises_scan_error(tmp_path):
    with pytest.raises(ScanError):
        scan_index(tmp_path / "missing")


def test_scan_error_is_an_oserror(tmp_path):
    root = tmp_path / "file.jar"
    root.write_bytes(b"not a folder")

    with pytest.raises(OSError):
        scan_entries(root)


def test_unreadable_file_aborts_scan(tmp_path, monkeypatch):
    """A file that cannot be read stops the scan instead of being skipped"""
    root = write_files(tmp_path / "mods", {"ok.jar": b"1", "broken.jar": b"2"})

    import mcmodsync.shared.scanner as scanner

    def failing_digest(path):
        if path.name == "broken.jar":
            raise PermissionError(13, "Permission denied", str(path))
        return digest_bytes(path.read_bytes())

    monkeypatch.setattr(scanner, "digest_file", failing_digest)

    with pytest.raises(ScanError, match="broken.jar"):
        scan_index(root)
