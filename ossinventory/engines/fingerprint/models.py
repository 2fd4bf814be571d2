"""Data models for the fingerprint calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ChecksumType = Literal[
    "SHA1",
    "SHA1_OTHER_PLATFORM",
    "SUPER_HASH",
    "SHA1_NO_HEADER",
    "SHA1_NO_COMMENTS",
]


@dataclass
class SuperHash:
    """128-bit structural digest plus its two 64-bit halves (hex)."""

    full_hash: str
    most_sig_bits_hash: str
    least_sig_bits_hash: str

    @classmethod
    def from_digest(cls, digest: bytes) -> SuperHash:
        hexdigest = digest.hex()
        return cls(
            full_hash=hexdigest,
            most_sig_bits_hash=hexdigest[:16],
            least_sig_bits_hash=hexdigest[16:],
        )


@dataclass
class Fingerprint:
    """Checksum set for one file. Fields stay ``None`` when an algorithm was skipped or failed."""

    sha1: str
    other_platform_sha1: str | None = None
    super_hash: SuperHash | None = None
    checksums: dict[str, str] = field(default_factory=dict)
