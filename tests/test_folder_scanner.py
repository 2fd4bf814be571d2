"""Tests for the folder scanner engine."""

from __future__ import annotations

import hashlib
from pathlib import Path
from unittest.mock import patch

import pytest

from ossinventory.engines.fingerprint import FingerprintCalculator
from ossinventory.engines.folder_scanner import (
    DEFAULT_SCAN_EXTENSIONS,
    DependencyRecord,
    FolderScanner,
    ScanFilter,
    scan_folder,
)
from ossinventory.exceptions import ConfigurationError, ScanError


def _write(root: Path, rel: str, data: bytes) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def workspace(tmp_path):
    _write(tmp_path, "lib/lib-a-1.0.jar", b"PK\x03\x04jar-bytes")
    _write(tmp_path, "web/script.js", b"/* banner */\r\nvar a = 1;\r\n")
    _write(tmp_path, "README.md", b"# readme\n")
    return tmp_path


# ── DependencyRecord / ScanFilter ─────────────────────────────────────────


class TestModels:
    def test_record_requires_path_and_id(self):
        with pytest.raises(ValueError):
            DependencyRecord(system_path="", artifact_id="a.jar")
        with pytest.raises(ValueError):
            DependencyRecord(system_path="/x/a.jar", artifact_id="")

    def test_checksums_never_none(self):
        record = DependencyRecord(system_path="/x/a.jar", artifact_id="a.jar", checksums=None)
        assert record.checksums == {}

    def test_dict_conversion_ignores_unknown_keys(self):
        record = DependencyRecord(
            system_path="/x/a.jar", artifact_id="a.jar", sha1="abc", checksums={"SHA1": "abc"}
        )
        data = record.to_dict()
        data["unexpected"] = 1
        assert DependencyRecord.from_dict(data) == record

    def test_filter_from_strings(self):
        f = ScanFilter.from_strings("**/*.jar, **/*.war", None)
        assert f.includes == ["**/*.jar", "**/*.war"]
        assert f.excludes == []

    def test_default_includes(self):
        f = ScanFilter(excludes=["**/tmp/**"]).with_default_includes()
        assert len(f.includes) == len(DEFAULT_SCAN_EXTENSIONS)
        assert "**/*.tar.gz" in f.includes
        assert f.excludes == ["**/tmp/**"]

    def test_default_includes_keeps_explicit(self):
        f = ScanFilter(includes=["**/*.js"])
        assert f.with_default_includes() is f


# ── FolderScanner ─────────────────────────────────────────────────────────


class TestFolderScanner:
    def test_scan_jar_and_crlf_script(self, workspace):
        records = scan_folder(workspace, ScanFilter.from_strings("**/*.jar **/*.js", None))

        assert [r.artifact_id for r in records] == ["lib-a-1.0.jar", "script.js"]
        jar, js = records

        assert jar.sha1 == hashlib.sha1(b"PK\x03\x04jar-bytes").hexdigest()
        assert jar.other_platform_sha1 is None
        assert jar.full_hash is None
        assert Path(jar.system_path).is_absolute()

        assert js.other_platform_sha1 is not None
        assert js.other_platform_sha1 != js.sha1
        assert js.full_hash is not None
        assert js.most_sig_bits_hash + js.least_sig_bits_hash == js.full_hash
        assert "SHA1_NO_HEADER" in js.checksums

    def test_default_extensions_when_no_includes(self, tmp_path):
        _write(tmp_path, "a.jar", b"a")
        _write(tmp_path, "b.txt", b"b")
        _write(tmp_path, "dist/c.tar.gz", b"c")
        _write(tmp_path, "native/d.so", b"d")

        records = scan_folder(tmp_path, ScanFilter())
        assert sorted(r.artifact_id for r in records) == ["a.jar", "c.tar.gz", "d.so"]

    def test_excludes(self, tmp_path):
        _write(tmp_path, "main/a.jar", b"a")
        _write(tmp_path, "test/b.jar", b"b")

        records = scan_folder(tmp_path, ScanFilter.from_strings(None, "**/test/**"))
        assert [r.artifact_id for r in records] == ["a.jar"]

    def test_nothing_matches(self, workspace):
        assert scan_folder(workspace, ScanFilter.from_strings("**/*.war", None)) == []

    def test_scan_is_repeatable(self, workspace):
        scanner = FolderScanner(ScanFilter.from_strings("**/*", None))
        first = [r.to_dict() for r in scanner.scan(workspace)]
        second = [r.to_dict() for r in scanner.scan(workspace)]
        assert first == second
        assert len(first) == 3

    def test_missing_root(self, tmp_path):
        with pytest.raises(ConfigurationError):
            scan_folder(tmp_path / "nope", ScanFilter())

    def test_unreadable_file_skipped(self, workspace):
        calculator = FingerprintCalculator()
        original = calculator.calculate

        def flaky(path):
            if path.name == "lib-a-1.0.jar":
                raise ScanError(str(path), "permission denied")
            return original(path)

        with patch.object(calculator, "calculate", side_effect=flaky):
            scanner = FolderScanner(ScanFilter.from_strings("**/*.jar **/*.js", None), calculator)
            records = scanner.scan(workspace)

        assert [r.artifact_id for r in records] == ["script.js"]

    def test_iter_matches_sorted(self, tmp_path):
        for rel in ("b/z.jar", "a/y.jar", "x.jar"):
            _write(tmp_path, rel, b"1")
        scanner = FolderScanner(ScanFilter())
        rel = [p.relative_to(tmp_path).as_posix() for p in scanner.iter_matches(tmp_path)]
        assert rel == ["x.jar", "a/y.jar", "b/z.jar"]
