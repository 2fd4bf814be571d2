"""FolderScanner — walk a workspace and fingerprint every matching file."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import structlog

from ossinventory.engines.fingerprint.calculator import FingerprintCalculator
from ossinventory.engines.folder_scanner.models import DependencyRecord, ScanFilter
from ossinventory.engines.folder_scanner.patterns import PatternMatcher
from ossinventory.exceptions import ConfigurationError, ScanError

log = structlog.get_logger("ossinventory.engine")


def scan_folder(root: Path, scan_filter: ScanFilter) -> list[DependencyRecord]:
    """Scan a local directory for artifacts (no service required)."""
    return FolderScanner(scan_filter).scan(root)


class FolderScanner:
    """Recursive artifact scanner.

    An empty include list is replaced by the default extension patterns once,
    at construction time.
    """

    def __init__(
        self,
        scan_filter: ScanFilter,
        calculator: FingerprintCalculator | None = None,
    ) -> None:
        self.scan_filter = scan_filter.with_default_includes()
        self._matcher = PatternMatcher(self.scan_filter.includes, self.scan_filter.excludes)
        self._calculator = calculator or FingerprintCalculator()

    def iter_matches(self, root: Path) -> Iterator[Path]:
        """Yield files under *root* whose relative path passes the filter, in sorted order."""
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                rel = path.relative_to(root).as_posix()
                if self._matcher.matches(rel):
                    yield path

    def scan(self, root: Path) -> list[DependencyRecord]:
        if not root.is_dir():
            raise ConfigurationError(f"workspace not found or not a directory: {root}")

        log.info("scanner.start", folder=str(root), includes=self.scan_filter.includes)
        dependencies: list[DependencyRecord] = []
        failed = 0
        for path in self.iter_matches(root):
            try:
                fingerprint = self._calculator.calculate(path)
            except ScanError as exc:
                failed += 1
                log.warning("scanner.file_failed", file=exc.path, reason=exc.reason)
                continue
            dependencies.append(
                DependencyRecord.from_fingerprint(str(path.resolve()), path.name, fingerprint)
            )

        log.info(
            "scanner.done",
            folder=str(root),
            found=len(dependencies),
            failed=failed,
        )
        return dependencies
