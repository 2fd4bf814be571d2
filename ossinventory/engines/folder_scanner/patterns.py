"""Ant-style include/exclude pattern matching."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from functools import lru_cache

_PARAM_SPLIT_RE = re.compile(r"[,\s]+")

# Platforms whose filesystem folds case (Windows) match patterns case-insensitively.
_CASE_FLAGS = re.IGNORECASE if os.path.normcase("A") == "a" else 0


def split_parameters(value: str | None) -> list[str]:
    """Split a comma / whitespace / newline separated list into trimmed entries.

    Empty entries are dropped; order is preserved.
    """
    if not value:
        return []
    return [part.strip() for part in _PARAM_SPLIT_RE.split(value) if part.strip()]


def split_parameters_map(value: str | None) -> dict[str, str]:
    """Parse ``key=value`` entries; entries without exactly one ``=`` are ignored."""
    params: dict[str, str] = {}
    for entry in split_parameters(value):
        parts = entry.split("=")
        if len(parts) == 2 and parts[0] and parts[1]:
            params[parts[0]] = parts[1]
    return params


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate an Ant glob into an anchored regex.

    ``.`` is literal, ``*`` becomes ``.*`` and ``?`` a single character.
    A ``**/`` segment may also match zero directories, so ``**/*.jar``
    selects ``lib.jar`` at the root as well as ``a/b/lib.jar``.
    """
    pattern = pattern.replace("\\", "/")
    out: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern[i] == "*":
            out.append(".*")
            i += 2 if pattern.startswith("**", i) else 1
        elif pattern[i] == "?":
            out.append(".")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out), _CASE_FLAGS)


def match_any(value: str, patterns: Iterable[str]) -> bool:
    """True if *value* fully matches at least one pattern."""
    return any(compile_pattern(p).fullmatch(value) for p in patterns)


class PatternMatcher:
    """Select relative paths by include / exclude globs. Excludes always win."""

    def __init__(self, includes: Iterable[str], excludes: Iterable[str] = ()) -> None:
        self.includes = list(includes)
        self.excludes = list(excludes)

    def matches(self, relative_path: str) -> bool:
        path = relative_path.replace(os.sep, "/").replace("\\", "/").lstrip("/")
        if self.excludes and match_any(path, self.excludes):
            return False
        if not self.includes:
            return True
        return match_any(path, self.includes)
