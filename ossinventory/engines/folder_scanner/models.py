"""Data models for the folder scanner engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

from ossinventory.engines.fingerprint.models import Fingerprint
from ossinventory.engines.folder_scanner.patterns import split_parameters

DEFAULT_SCAN_EXTENSIONS: tuple[str, ...] = (
    "jar", "war", "ear", "par", "rar",
    "dll", "exe", "ko", "so", "msi",
    "zip", "tar", "tar.gz",
    "swc", "swf",
)

GENERIC_GLOB_PATTERN = "**/*."


@dataclass
class DependencyRecord:
    """One scanned or build-resolved artifact.

    Plain data only; it crosses the remote-execution boundary
    via :meth:`to_dict` / :meth:`from_dict`.
    """

    system_path: str
    artifact_id: str
    sha1: str | None = None
    checksums: dict[str, str] = field(default_factory=dict)
    other_platform_sha1: str | None = None
    full_hash: str | None = None
    most_sig_bits_hash: str | None = None
    least_sig_bits_hash: str | None = None
    # Maven coordinates, set only for build-system resolved dependencies
    group_id: str | None = None
    version: str | None = None
    type: str | None = None
    classifier: str | None = None
    scope: str | None = None

    def __post_init__(self) -> None:
        if not self.system_path:
            raise ValueError("system_path must not be empty")
        if not self.artifact_id:
            raise ValueError("artifact_id must not be empty")
        if self.checksums is None:
            self.checksums = {}

    @classmethod
    def from_fingerprint(
        cls, system_path: str, artifact_id: str, fp: Fingerprint
    ) -> DependencyRecord:
        record = cls(
            system_path=system_path,
            artifact_id=artifact_id,
            sha1=fp.sha1,
            checksums=dict(fp.checksums),
            other_platform_sha1=fp.other_platform_sha1,
        )
        if fp.super_hash is not None:
            record.full_hash = fp.super_hash.full_hash
            record.most_sig_bits_hash = fp.super_hash.most_sig_bits_hash
            record.least_sig_bits_hash = fp.super_hash.least_sig_bits_hash
        return record

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyRecord:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ScanFilter:
    """Ordered include / exclude glob lists. Never None."""

    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)

    @classmethod
    def from_strings(cls, includes: str | None, excludes: str | None) -> ScanFilter:
        return cls(includes=split_parameters(includes), excludes=split_parameters(excludes))

    def with_default_includes(self) -> ScanFilter:
        """Return a filter whose empty include list is replaced by the default extensions."""
        if self.includes:
            return self
        return ScanFilter(
            includes=[GENERIC_GLOB_PATTERN + ext for ext in DEFAULT_SCAN_EXTENSIONS],
            excludes=list(self.excludes),
        )
