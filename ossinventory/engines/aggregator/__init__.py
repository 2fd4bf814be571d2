"""Group dependency records into project inventories."""

from ossinventory.engines.aggregator.dispatch import (
    CollectedProjects,
    JobKind,
    collect_projects,
    detect_job_kind,
)
from ossinventory.engines.aggregator.generic import GenericAggregator
from ossinventory.engines.aggregator.models import (
    BuildContext,
    Coordinates,
    ModuleArtifact,
    ModuleBuild,
    ModuleGraph,
    ProjectInfo,
    load_module_graph,
)
from ossinventory.engines.aggregator.module_graph import ModuleGraphAggregator

__all__ = [
    "BuildContext",
    "CollectedProjects",
    "Coordinates",
    "GenericAggregator",
    "JobKind",
    "ModuleArtifact",
    "ModuleBuild",
    "ModuleGraph",
    "ModuleGraphAggregator",
    "ProjectInfo",
    "collect_projects",
    "detect_job_kind",
    "load_module_graph",
]
