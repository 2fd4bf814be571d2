"""Async client for the inventory service agent endpoint."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import pydantic
import structlog

from ossinventory import __version__
from ossinventory.core.settings import SyncSettings
from ossinventory.engines.aggregator.models import ProjectInfo
from ossinventory.engines.inventory_sync.models import ComplianceResult, SyncOutcome
from ossinventory.engines.inventory_sync.schemas import ResultEnvelope, serialize_projects
from ossinventory.exceptions import NonRetryableServiceError, TransientNetworkError

log = structlog.get_logger("ossinventory.engine")

AGENT_TYPE = "ossinventory"
AGENT_VERSION = "2.0"

REQUEST_UPDATE = "UPDATE"
REQUEST_CHECK_POLICY_COMPLIANCE = "CHECK_POLICY_COMPLIANCE"

_TRANSIENT_STATUS = frozenset({502, 503, 504})

T = TypeVar("T")


def _parse(
    request_type: str,
    envelope: ResultEnvelope,
    build: Callable[..., T],
) -> T:
    """Turn an accepted envelope into a result, rejecting bodies of the wrong shape."""
    try:
        return build(envelope.parsed_data(), request_token=envelope.request_token)
    except (AttributeError, TypeError, ValueError) as exc:
        raise NonRetryableServiceError(
            f"{request_type} returned malformed data: {exc}",
            request_token=envelope.request_token,
        ) from exc


class InventoryServiceClient:
    """One connection to the inventory service per sync run.

    Use as an async context manager so the underlying ``httpx.AsyncClient``
    is closed on every exit path.
    """

    def __init__(
        self,
        settings: SyncSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        kwargs: dict[str, Any] = {
            "timeout": float(settings.connection_timeout),
            "headers": {"Accept": "application/json"},
        }
        if transport is not None:
            kwargs["transport"] = transport
        elif settings.proxy is not None:
            kwargs["proxy"] = settings.proxy.url
        self._client = httpx.AsyncClient(**kwargs)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> InventoryServiceClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ── public ─────────────────────────────────────────────────────────────

    async def check_policy_compliance(
        self,
        product_name_or_token: str | None,
        projects: list[ProjectInfo],
        check_all_libraries: bool,
    ) -> ComplianceResult:
        envelope = await self._post(
            REQUEST_CHECK_POLICY_COMPLIANCE,
            product_name_or_token,
            projects,
            {"forceCheckAllDependencies": "true" if check_all_libraries else "false"},
        )
        return _parse(REQUEST_CHECK_POLICY_COMPLIANCE, envelope, ComplianceResult.from_service_data)

    async def update(
        self,
        product_name_or_token: str | None,
        projects: list[ProjectInfo],
    ) -> SyncOutcome:
        extra: dict[str, str] = {}
        if self._settings.requester_email:
            extra["requesterEmail"] = self._settings.requester_email
        envelope = await self._post(REQUEST_UPDATE, product_name_or_token, projects, extra)
        return _parse(REQUEST_UPDATE, envelope, SyncOutcome.from_service_data)

    # ── internal ───────────────────────────────────────────────────────────

    def _form(
        self,
        request_type: str,
        product_name_or_token: str | None,
        projects: list[ProjectInfo],
    ) -> dict[str, str]:
        form = {
            "type": request_type,
            "agent": AGENT_TYPE,
            "agentVersion": AGENT_VERSION,
            "pluginVersion": __version__,
            "token": self._settings.api_token or "",
            "timeStamp": str(int(time.time() * 1000)),
            "diff": serialize_projects(projects),
        }
        if self._settings.user_key:
            form["userKey"] = self._settings.user_key
        if product_name_or_token:
            form["product"] = product_name_or_token
        if self._settings.product_version:
            form["productVersion"] = self._settings.product_version
        return form

    async def _post(
        self,
        request_type: str,
        product_name_or_token: str | None,
        projects: list[ProjectInfo],
        extra: dict[str, str],
    ) -> ResultEnvelope:
        url = self._settings.service_url
        form = self._form(request_type, product_name_or_token, projects)
        form.update(extra)

        log.debug("service.request", type=request_type, url=url, projects=len(projects))
        try:
            resp = await self._client.post(url, data=form)
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"{request_type} request failed: {exc!r}") from exc

        if resp.status_code in _TRANSIENT_STATUS:
            raise TransientNetworkError(f"{request_type} request failed: HTTP {resp.status_code}")
        if resp.status_code >= 400:
            raise NonRetryableServiceError(
                f"{request_type} request failed: HTTP {resp.status_code}"
            )

        try:
            envelope = ResultEnvelope.model_validate(resp.json())
        except (ValueError, pydantic.ValidationError) as exc:
            raise NonRetryableServiceError(
                f"{request_type} returned an unreadable response: {exc}"
            ) from exc

        if not envelope.ok:
            raise NonRetryableServiceError(
                envelope.message or f"{request_type} rejected by service",
                request_token=envelope.request_token,
            )

        try:
            envelope.parsed_data()
        except ValueError as exc:
            raise NonRetryableServiceError(
                f"{request_type} returned malformed data: {exc}",
                request_token=envelope.request_token,
            ) from exc

        log.debug("service.response", type=request_type, request_token=envelope.request_token)
        return envelope
