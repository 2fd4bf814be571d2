"""FingerprintCalculator — SHA-1, other-platform SHA-1, super hash and script checksums."""

from __future__ import annotations

import codecs
import hashlib
from collections.abc import Callable
from pathlib import Path, PurePath
from typing import TypeVar

import structlog

from ossinventory.engines.fingerprint.models import Fingerprint, SuperHash
from ossinventory.engines.fingerprint.normalizer import (
    C_STYLE,
    strip_comments,
    strip_header,
    style_for,
    tokenize,
)
from ossinventory.exceptions import ScanError

log = structlog.get_logger("ossinventory.engine")

T = TypeVar("T")

# Files with these extensions are hashed byte-for-byte only.
BINARY_EXTENSIONS = frozenset(
    {
        ".jar", ".war", ".ear", ".par", ".rar", ".aar", ".apk", ".zip", ".tar",
        ".gz", ".tgz", ".bz2", ".xz", ".7z", ".whl", ".egg", ".nupkg", ".gem",
        ".dll", ".exe", ".ko", ".so", ".dylib", ".lib", ".a", ".o", ".obj",
        ".msi", ".swc", ".swf", ".class", ".pyc", ".bin", ".dat",
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".pdf",
    }
)

JAVASCRIPT_EXTENSIONS = frozenset({".js", ".mjs", ".cjs"})

CHUNK_SIZE = 64 * 1024

# Longest BOMs first: the UTF-32 LE BOM starts with the UTF-16 LE one.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


def is_binary(name: str) -> bool:
    return PurePath(name).suffix.lower() in BINARY_EXTENSIONS


def sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def _detect_bom(data: bytes) -> tuple[bytes, str | None]:
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return bom, encoding
    return b"", None


def decode_text(data: bytes) -> str:
    """Decode file content, honoring a BOM and defaulting to strict UTF-8."""
    bom, encoding = _detect_bom(data)
    return data[len(bom):].decode(encoding or "utf-8")


def _unify_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _sniff_utf16(data: bytes) -> str | None:
    """Guess the byte order of BOM-less UTF-16 from where its NUL bytes sit."""
    if len(data) % 2:
        return None
    units = len(data) // 2
    even_nuls = data[0::2].count(0)
    odd_nuls = data[1::2].count(0)
    if odd_nuls * 2 > units and even_nuls == 0:
        return "utf-16-le"
    if even_nuls * 2 > units and odd_nuls == 0:
        return "utf-16-be"
    return None


def normalize_line_endings(data: bytes) -> bytes:
    """Rewrite ``\\r\\n`` and ``\\r`` as ``\\n``, keeping the original encoding.

    Content with NUL bytes is only rewritten when it reads as UTF-16;
    anything else is returned untouched.
    """
    bom, encoding = _detect_bom(data)
    if encoding is None and b"\x00" in data:
        encoding = _sniff_utf16(data)
        if encoding is None:
            return data
    if encoding is None or encoding == "utf-8":
        return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    text = data[len(bom):].decode(encoding)
    return bom + _unify_newlines(text).encode(encoding)


def other_platform_sha1(data: bytes) -> str:
    return sha1_hex(normalize_line_endings(data))


def super_hash(name: str, data: bytes) -> SuperHash | None:
    """Hash of the comment- and whitespace-insensitive token stream.

    Returns None when nothing is left after normalization.
    """
    tokens = tokenize(decode_text(data), style_for(name))
    if not tokens:
        return None
    digest = hashlib.blake2b(" ".join(tokens).encode("utf-8"), digest_size=16).digest()
    return SuperHash.from_digest(digest)


def javascript_checksums(data: bytes) -> dict[str, str]:
    text = _unify_newlines(decode_text(data))
    no_header = strip_header(text, C_STYLE).strip()
    no_comments = "\n".join(
        line.rstrip() for line in strip_comments(text, C_STYLE).splitlines() if line.strip()
    )
    return {
        "SHA1_NO_HEADER": sha1_hex(no_header.encode("utf-8")),
        "SHA1_NO_COMMENTS": sha1_hex(no_comments.encode("utf-8")),
    }


class FingerprintCalculator:
    """Compute the checksum set of a single file."""

    def calculate(self, path: Path) -> Fingerprint:
        """Fingerprint a file on disk.

        Raises :class:`ScanError` when the file cannot be read; every other
        failure only leaves the affected field unset.
        """
        try:
            if is_binary(path.name):
                return self._stream_binary(path)
            data = path.read_bytes()
        except OSError as exc:
            raise ScanError(str(path), exc.strerror or str(exc)) from exc
        return self.fingerprint_bytes(path.name, data)

    @staticmethod
    def _stream_binary(path: Path) -> Fingerprint:
        # Archives can be large; only the raw SHA-1 is needed, read in chunks.
        digest = hashlib.sha1()
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
                digest.update(chunk)
        fingerprint = Fingerprint(sha1=digest.hexdigest())
        fingerprint.checksums["SHA1"] = fingerprint.sha1
        return fingerprint

    def fingerprint_bytes(self, name: str, data: bytes) -> Fingerprint:
        fingerprint = Fingerprint(sha1=sha1_hex(data))
        fingerprint.checksums["SHA1"] = fingerprint.sha1

        if is_binary(name):
            return fingerprint

        other = self._guarded("other_platform_sha1", name, other_platform_sha1, data)
        if other is not None:
            fingerprint.other_platform_sha1 = other
            fingerprint.checksums["SHA1_OTHER_PLATFORM"] = other

        structural = self._guarded("super_hash", name, super_hash, name, data)
        if structural is not None:
            fingerprint.super_hash = structural
            fingerprint.checksums["SUPER_HASH"] = structural.full_hash

        if PurePath(name).suffix.lower() in JAVASCRIPT_EXTENSIONS:
            extra = self._guarded("javascript", name, javascript_checksums, data)
            if extra:
                fingerprint.checksums.update(extra)

        return fingerprint

    @staticmethod
    def _guarded(algorithm: str, name: str, fn: Callable[..., T], *args: object) -> T | None:
        try:
            return fn(*args)
        except Exception as exc:
            log.warning(
                "fingerprint.algorithm_failed",
                algorithm=algorithm,
                file=name,
                error=str(exc),
            )
            return None
