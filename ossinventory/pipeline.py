"""Build pipeline — collect the build's inventories and sync them with the service."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from ossinventory.core.settings import GlobalConfig, JobConfig, SyncSettings
from ossinventory.engines.aggregator import BuildContext, collect_projects, detect_job_kind
from ossinventory.engines.inventory_sync import InventorySyncRunner, SyncResult
from ossinventory.engines.inventory_sync.client import InventoryServiceClient
from ossinventory.engines.inventory_sync.runner import (
    MSG_NO_PROJECTS,
    MSG_NO_TOKEN,
    ClientFactory,
)
from ossinventory.exceptions import ConfigurationError

log = structlog.get_logger("ossinventory.pipeline")

# Policy reports land here, under the workspace, unless a directory is given.
DEFAULT_REPORT_SUBDIR = ".ossinventory"


def default_report_dir(build: BuildContext) -> Path:
    return (build.workspace or Path.cwd()) / DEFAULT_REPORT_SUBDIR


async def run_build(
    build: BuildContext,
    global_config: GlobalConfig,
    job: JobConfig,
    report_dir: Path | None = None,
    *,
    client_factory: ClientFactory = InventoryServiceClient,
) -> SyncResult:
    """Run one build's sync end to end.

    Settings are resolved once. A blank API token stops before anything is
    scanned; so does a workspace that cannot be used, which still fails the
    build when ``fail_on_error`` is set. With policy checks enabled the
    compliance report is always written, to ``report_dir`` or else to
    :func:`default_report_dir`.
    """
    settings = SyncSettings.resolve(global_config, job)
    structlog.contextvars.bind_contextvars(job=build.job_name, build=str(build.build_number))
    try:
        if not settings.has_api_token:
            log.warning("pipeline.skipped", reason=MSG_NO_TOKEN)
            return SyncResult(state="skipped", message=MSG_NO_TOKEN)

        kind = detect_job_kind(build)
        log.info("pipeline.collecting", kind=kind)
        try:
            collected = await asyncio.to_thread(collect_projects, kind, build, job)
        except ConfigurationError as exc:
            log.error("pipeline.skipped", reason=str(exc))
            return SyncResult(
                state="skipped",
                error=exc,
                should_fail_build=settings.fail_on_error,
                message=str(exc),
            )
        log.info("pipeline.collected", kind=kind, projects=len(collected.projects))

        if not collected.projects:
            log.info("pipeline.skipped", reason=MSG_NO_PROJECTS)
            return SyncResult(state="skipped", message=MSG_NO_PROJECTS)

        if report_dir is None and settings.check_policies:
            report_dir = default_report_dir(build)

        runner = InventorySyncRunner(
            settings,
            report_dir=report_dir,
            job_name=build.job_name,
            build_number=build.build_number,
            client_factory=client_factory,
        )
        return await runner.run(collected.projects, collected.product_name_or_token)
    finally:
        structlog.contextvars.unbind_contextvars("job", "build")
