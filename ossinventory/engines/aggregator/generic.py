"""GenericAggregator — one project inventory from a scanned workspace."""

from __future__ import annotations

from pathlib import Path

import structlog

from ossinventory.engines.aggregator.models import Coordinates, ProjectInfo
from ossinventory.engines.folder_scanner.models import ScanFilter
from ossinventory.engines.folder_scanner.scanner import FolderScanner
from ossinventory.exceptions import ConfigurationError

log = structlog.get_logger("ossinventory.engine")


class GenericAggregator:
    """Free-style and pipeline jobs: scan the whole workspace into a single project."""

    def __init__(self, scan_filter: ScanFilter, project_token: str | None = None) -> None:
        self._scanner = FolderScanner(scan_filter)
        self._project_token = project_token

    def collect(
        self,
        workspace: Path | None,
        job_name: str,
        build_number: int | str,
    ) -> list[ProjectInfo]:
        if workspace is None:
            raise ConfigurationError("failed to acquire the build's workspace")

        log.info("aggregator.generic_start", workspace=str(workspace))
        dependencies = self._scanner.scan(workspace)

        if self._project_token and self._project_token.strip():
            project = ProjectInfo(
                project_token=self._project_token.strip(),
                dependencies=tuple(dependencies),
            )
        else:
            project = ProjectInfo(
                coordinates=Coordinates(None, job_name, f"build #{build_number}"),
                dependencies=tuple(dependencies),
            )
        return [project]
