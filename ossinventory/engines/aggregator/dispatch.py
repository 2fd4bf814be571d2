"""Job kind detection and dispatch to the matching aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import structlog

from ossinventory.core.settings import JobConfig
from ossinventory.engines.aggregator.generic import GenericAggregator
from ossinventory.engines.aggregator.models import BuildContext, ProjectInfo
from ossinventory.engines.aggregator.module_graph import ModuleGraphAggregator
from ossinventory.engines.fingerprint.normalizer import C_STYLE, strip_comments
from ossinventory.engines.folder_scanner.models import ScanFilter

log = structlog.get_logger("ossinventory.engine")

JobKind = Literal["maven", "generic", "pipeline"]

_WITH_MAVEN = "withMaven"


@dataclass
class CollectedProjects:
    kind: JobKind
    projects: list[ProjectInfo] = field(default_factory=list)
    product_name_or_token: str | None = None


def detect_job_kind(build: BuildContext) -> JobKind:
    """Decide the job kind once, up front.

    A pipeline script only counts as a Maven pipeline when ``withMaven``
    survives comment stripping.
    """
    if build.module_graph is not None:
        return "maven"
    if build.pipeline_script and _WITH_MAVEN in strip_comments(build.pipeline_script, C_STYLE):
        return "pipeline"
    return "generic"


def collect_projects(kind: JobKind, build: BuildContext, job: JobConfig) -> CollectedProjects:
    result = CollectedProjects(kind=kind, product_name_or_token=job.product)

    if kind == "maven":
        if build.module_graph is None:
            raise ValueError("maven job kind requires a module graph")
        log.info("aggregator.maven_job", job=build.job_name)
        aggregator = ModuleGraphAggregator(
            includes=job.modules_to_include,
            excludes=job.modules_to_exclude,
            project_token=job.maven_project_token,
            module_tokens=job.module_tokens,
            ignore_pom_modules=job.ignore_pom_modules,
        )
        result.projects = aggregator.collect(build.module_graph)
        if not job.product or not job.product.strip():
            result.product_name_or_token = aggregator.top_most_project_name(build.module_graph)
    else:
        # Maven pipelines are scanned like any other workspace; the default
        # extension set applies when no includes were configured.
        log.info("aggregator.workspace_job", job=build.job_name, kind=kind)
        scan_filter = ScanFilter.from_strings(job.lib_includes, job.lib_excludes)
        generic = GenericAggregator(scan_filter, project_token=job.project_token)
        result.projects = generic.collect(build.workspace, build.job_name, build.build_number)

    return result
