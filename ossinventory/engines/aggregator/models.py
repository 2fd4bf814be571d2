"""Data models for the project aggregator engine."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ossinventory.engines.fingerprint.calculator import sha1_hex
from ossinventory.engines.folder_scanner.models import DependencyRecord

log = structlog.get_logger("ossinventory.engine")


@dataclass(frozen=True)
class Coordinates:
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None

    def label(self) -> str:
        return ":".join(part for part in (self.group_id, self.artifact_id, self.version) if part)


@dataclass(frozen=True)
class ProjectInfo:
    """One logical project inventory; immutable once the aggregator builds it.

    When ``project_token`` is set the service identifies the project by it and
    ignores ``coordinates``.
    """

    coordinates: Coordinates | None = None
    project_token: str | None = None
    parent_coordinates: Coordinates | None = None
    dependencies: tuple[DependencyRecord, ...] = ()

    @property
    def identity(self) -> str:
        if self.project_token:
            return self.project_token
        return self.coordinates.label() if self.coordinates else "<unnamed>"


@dataclass(frozen=True)
class ModuleArtifact:
    """Coordinates of the artifact a module produced (or its pom)."""

    group_id: str | None
    artifact_id: str
    version: str | None = None
    type: str = "jar"

    def coordinates(self) -> Coordinates:
        return Coordinates(self.group_id, self.artifact_id, self.version)


@dataclass
class ModuleBuild:
    """Build-system output for one module, as handed over by the resolver.

    ``main_artifact`` is None when the build recorded no artifact for the
    module; ``dependencies`` is None when no dependency record exists.
    """

    display_name: str
    main_artifact: ModuleArtifact | None
    pom_artifact: ModuleArtifact | None = None
    dependencies: list[DependencyRecord] | None = None


@dataclass
class ModuleGraph:
    """Pre-resolved multi-module build."""

    modules: list[ModuleBuild] = field(default_factory=list)
    root_display_name: str | None = None
    root_artifact_id: str | None = None


@dataclass
class BuildContext:
    """What the host build system tells us about the current build."""

    job_name: str
    build_number: int | str
    workspace: Path | None = None
    module_graph: ModuleGraph | None = None
    pipeline_script: str | None = None


def _artifact(data: dict[str, Any] | None) -> ModuleArtifact | None:
    if not data or not data.get("artifact_id"):
        return None
    return ModuleArtifact(
        group_id=data.get("group_id"),
        artifact_id=data["artifact_id"],
        version=data.get("version"),
        type=data.get("type") or "jar",
    )


def _dependency(data: dict[str, Any], base_dir: Path) -> DependencyRecord:
    """Build a resolved dependency; a local ``file`` supplies the path and a missing SHA-1."""
    data = dict(data)
    file_ref = data.pop("file", None)
    artifact_file = (base_dir / file_ref) if file_ref else None
    if artifact_file is not None:
        if not data.get("system_path"):
            data["system_path"] = artifact_file.name
        if not data.get("sha1") and artifact_file.is_file():
            try:
                data["sha1"] = sha1_hex(artifact_file.read_bytes())
            except OSError as exc:
                log.warning("module_graph.sha1_failed", file=str(artifact_file), error=str(exc))
    if not data.get("system_path"):
        data["system_path"] = data.get("artifact_id") or ""
    return DependencyRecord.from_dict(data)


def load_module_graph(path: Path) -> ModuleGraph:
    """Read a module graph exported by the build-system resolver (JSON)."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    base_dir = path.parent
    modules: list[ModuleBuild] = []
    for entry in raw.get("modules", []):
        deps = entry.get("dependencies")
        modules.append(
            ModuleBuild(
                display_name=entry.get("display_name") or "",
                main_artifact=_artifact(entry.get("main_artifact")),
                pom_artifact=_artifact(entry.get("pom_artifact")),
                dependencies=None if deps is None else [_dependency(d, base_dir) for d in deps],
            )
        )
    root = raw.get("root_module") or {}
    return ModuleGraph(
        modules=modules,
        root_display_name=root.get("display_name"),
        root_artifact_id=root.get("artifact_id"),
    )
