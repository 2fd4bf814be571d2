"""ModuleGraphAggregator — per-module inventories from a resolved build graph."""

from __future__ import annotations

import structlog

from ossinventory.engines.aggregator.models import ModuleBuild, ModuleGraph, ProjectInfo
from ossinventory.engines.folder_scanner.models import DependencyRecord
from ossinventory.engines.folder_scanner.patterns import (
    match_any,
    split_parameters,
    split_parameters_map,
)

log = structlog.get_logger("ossinventory.engine")


class ModuleGraphAggregator:
    """Multi-module (Maven) builds: one project per processed module.

    Dependencies come from the build system already resolved; nothing is
    fingerprinted here.
    """

    def __init__(
        self,
        includes: str | None = None,
        excludes: str | None = None,
        project_token: str | None = None,
        module_tokens: str | None = None,
        ignore_pom_modules: bool = False,
    ) -> None:
        self.includes = split_parameters(includes)
        self.excludes = split_parameters(excludes)
        self.project_token = project_token
        self.module_tokens = split_parameters_map(module_tokens)
        self.ignore_pom_modules = ignore_pom_modules

    def should_process(self, module: ModuleBuild) -> bool:
        """Decide whether a module becomes a project.

        An exclude match always wins. The include list never removes a
        module: a module matching no include is still processed.
        """
        artifact = module.main_artifact
        if artifact is None:
            return False
        if self.ignore_pom_modules and artifact.type == "pom":
            return False
        if self.excludes and match_any(artifact.artifact_id, self.excludes):
            return False
        if self.includes and not match_any(artifact.artifact_id, self.includes):
            log.debug("aggregator.module_not_included", module=artifact.artifact_id)
        return True

    def collect(self, graph: ModuleGraph) -> list[ProjectInfo]:
        projects: list[ProjectInfo] = []
        single_module = len(graph.modules) == 1

        for module in graph.modules:
            artifact = module.main_artifact
            if artifact is None or not self.should_process(module):
                log.info("aggregator.module_skipped", module=module.display_name)
                continue

            log.info("aggregator.module_processing", module=artifact.coordinates().label())

            if single_module:
                token = self.project_token
            else:
                token = self.module_tokens.get(artifact.artifact_id)

            if module.dependencies is None:
                log.info("aggregator.no_dependencies", module=artifact.artifact_id)
                dependencies: tuple[DependencyRecord, ...] = ()
            else:
                dependencies = tuple(module.dependencies)
                log.info(
                    "aggregator.dependencies_found",
                    module=artifact.artifact_id,
                    count=len(dependencies),
                )

            projects.append(
                ProjectInfo(
                    coordinates=artifact.coordinates(),
                    project_token=token or None,
                    parent_coordinates=(
                        module.pom_artifact.coordinates() if module.pom_artifact else None
                    ),
                    dependencies=dependencies,
                )
            )

        return projects

    @staticmethod
    def top_most_project_name(graph: ModuleGraph) -> str | None:
        """Root module display name, falling back to its artifact id."""
        name = graph.root_display_name
        if name and name.strip():
            return name
        return graph.root_artifact_id
