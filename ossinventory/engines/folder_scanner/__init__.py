"""Folder scanner engine — find and fingerprint artifacts in a workspace."""

from ossinventory.engines.folder_scanner.models import (
    DEFAULT_SCAN_EXTENSIONS,
    DependencyRecord,
    ScanFilter,
)
from ossinventory.engines.folder_scanner.patterns import PatternMatcher
from ossinventory.engines.folder_scanner.scanner import FolderScanner, scan_folder

__all__ = [
    "DEFAULT_SCAN_EXTENSIONS",
    "DependencyRecord",
    "FolderScanner",
    "PatternMatcher",
    "ScanFilter",
    "scan_folder",
]
