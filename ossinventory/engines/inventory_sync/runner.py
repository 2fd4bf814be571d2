"""InventorySyncRunner — policy check, then update with bounded retry."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import structlog

from ossinventory.core.settings import SyncSettings
from ossinventory.engines.aggregator.models import ProjectInfo
from ossinventory.engines.inventory_sync.client import InventoryServiceClient
from ossinventory.engines.inventory_sync.models import ComplianceResult, SyncOutcome, SyncResult
from ossinventory.engines.inventory_sync.report import write_policy_report
from ossinventory.engines.inventory_sync.retry import attempt
from ossinventory.exceptions import RetriesExhaustedError, ServiceError

log = structlog.get_logger("ossinventory.engine")

MSG_NO_TOKEN = "No API token configured. Skipping update."
MSG_NO_PROJECTS = "No open source information found."
MSG_REJECTED = "Open source rejected by organization policies."
MSG_FORCED = (
    "Some dependencies violate open source policies, "
    "however all were force updated to organization inventory."
)
MSG_CONFORM = "All dependencies conform with open source policies."
MSG_FAILED = "Inventory update failed."

ClientFactory = Callable[[SyncSettings], InventoryServiceClient]


class InventorySyncRunner:
    """Drive one sync run from ``Start`` to a terminal :class:`SyncResult`.

    States: a blank API token or an empty inventory ends in ``skipped``
    without touching the network. With policy checks enabled the compliance
    result is persisted first; rejections without force-update end in
    ``rejected`` and no update is sent. The update itself goes through the
    retry combinator and ends in ``updated`` or ``failed``.
    """

    def __init__(
        self,
        settings: SyncSettings,
        *,
        report_dir: Path | None = None,
        job_name: str = "",
        build_number: int | str = "",
        client_factory: ClientFactory = InventoryServiceClient,
    ) -> None:
        self.settings = settings
        self.report_dir = report_dir
        self.job_name = job_name
        self.build_number = build_number
        self._client_factory = client_factory

    async def run(
        self,
        projects: list[ProjectInfo],
        product_name_or_token: str | None = None,
    ) -> SyncResult:
        if not self.settings.has_api_token:
            log.warning("sync.skipped", reason=MSG_NO_TOKEN)
            return SyncResult(state="skipped", message=MSG_NO_TOKEN)
        if not projects:
            log.info("sync.skipped", reason=MSG_NO_PROJECTS)
            return SyncResult(state="skipped", message=MSG_NO_PROJECTS)

        log.info(
            "sync.start",
            service_url=self.settings.service_url,
            projects=len(projects),
            product=product_name_or_token,
            check_policies=self.settings.check_policies,
            force_update=self.settings.force_update,
        )
        try:
            async with self._client_factory(self.settings) as client:
                return await self._run(client, projects, product_name_or_token)
        except asyncio.CancelledError:
            log.warning("sync.cancelled")
            raise

    # ── internal ───────────────────────────────────────────────────────────

    async def _run(
        self,
        client: InventoryServiceClient,
        projects: list[ProjectInfo],
        product: str | None,
    ) -> SyncResult:
        compliance: ComplianceResult | None = None

        if self.settings.check_policies:
            log.info("sync.policy_check", check_all_libraries=self.settings.check_all_libraries)
            try:
                compliance = await client.check_policy_compliance(
                    product, projects, self.settings.check_all_libraries
                )
            except ServiceError as exc:
                return self._failed(exc)

            if self.report_dir is not None:
                try:
                    await asyncio.to_thread(
                        write_policy_report,
                        compliance,
                        self.report_dir,
                        self.job_name,
                        self.build_number,
                    )
                except OSError as exc:
                    return self._failed(exc, compliance)

            if compliance.has_rejections and not self.settings.force_update:
                fail = self.settings.fail_on_error
                emit = log.error if fail else log.warning
                emit(
                    "sync.rejected",
                    message=MSG_REJECTED,
                    rejected=len(compliance.rejected),
                    support_token=compliance.request_token,
                )
                return SyncResult(
                    state="rejected",
                    compliance=compliance,
                    should_fail_build=fail,
                    message=MSG_REJECTED,
                )
            if compliance.has_rejections:
                log.warning(
                    "sync.force_update", message=MSG_FORCED, rejected=len(compliance.rejected)
                )
            else:
                log.info("sync.policy_conform", message=MSG_CONFORM)

        log.info("sync.sending")
        retried = await attempt(
            lambda: client.update(product, projects),
            self.settings.retry_policy,
            on_retry=self._on_retry,
        )
        if not retried.succeeded:
            error = retried.error
            if retried.exhausted and isinstance(error, ServiceError):
                error = RetriesExhaustedError(retried.attempts, error)
            return self._failed(error, compliance)  # type: ignore[arg-type]

        outcome: SyncOutcome = retried.value  # type: ignore[assignment]
        if compliance is not None and compliance.has_rejections:
            outcome.rejection = compliance
        self._log_outcome(outcome)

        # Force-updated rejections still fail the build when fail_on_error is set.
        forced = outcome.rejection is not None
        return SyncResult(
            state="updated",
            outcome=outcome,
            compliance=compliance,
            should_fail_build=self.settings.fail_on_error and forced,
            message=MSG_FORCED if forced else None,
        )

    def _on_retry(self, attempt_number: int, exc: Exception) -> None:
        remaining = self.settings.retry_policy.total_attempts - attempt_number
        log.warning(
            "sync.retrying",
            error=str(exc),
            remaining=remaining,
            interval=self.settings.retry_policy.retry_interval_seconds,
        )

    def _failed(self, error: Exception, compliance: ComplianceResult | None = None) -> SyncResult:
        result = SyncResult(
            state="failed",
            compliance=compliance,
            error=error,
            should_fail_build=self.settings.fail_on_error,
            message=MSG_FAILED,
        )
        log.error("sync.failed", error=str(error), support_token=result.support_token)
        return result

    @staticmethod
    def _log_outcome(outcome: SyncOutcome) -> None:
        log.info(
            "sync.updated",
            organization=outcome.organization,
            created_count=len(outcome.created_projects),
            created=",".join(outcome.created_projects),
            updated_count=len(outcome.updated_projects),
            updated=",".join(outcome.updated_projects),
            support_token=outcome.request_token,
        )
