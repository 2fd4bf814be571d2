"""Tests for the inventory service client (httpx.MockTransport, no network)."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest

from ossinventory.core.settings import SyncSettings
from ossinventory.engines.aggregator.models import Coordinates, ProjectInfo
from ossinventory.engines.folder_scanner import DependencyRecord
from ossinventory.engines.inventory_sync import InventoryServiceClient
from ossinventory.engines.inventory_sync.schemas import ResultEnvelope, serialize_projects
from ossinventory.exceptions import NonRetryableServiceError, TransientNetworkError

SERVICE_URL = "https://inv.example.com/agent"


def _settings(**overrides) -> SyncSettings:
    values = dict(
        api_token="org-token",
        user_key="user-key",
        service_url=SERVICE_URL,
        check_policies=True,
        check_all_libraries=False,
        force_update=False,
        fail_on_error=False,
        connection_timeout=60,
        product_version="1.2",
        requester_email="dev@acme.io",
    )
    values.update(overrides)
    return SyncSettings(**values)


def _projects() -> list[ProjectInfo]:
    dep = DependencyRecord(
        system_path="/ws/lib/a.jar",
        artifact_id="a.jar",
        sha1="a" * 40,
        checksums={"SHA1": "a" * 40},
    )
    return [ProjectInfo(coordinates=Coordinates(None, "job", "build #1"), dependencies=(dep,))]


def _envelope(data: dict | None = None, status: int = 1, **extra) -> dict:
    body = {"envelopeVersion": "2.9", "status": status, "message": "ok", "requestToken": "rt-42"}
    body["data"] = json.dumps(data) if data is not None else None
    body.update(extra)
    return body


def _client(handler, **overrides) -> InventoryServiceClient:
    return InventoryServiceClient(_settings(**overrides), transport=httpx.MockTransport(handler))


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


# ── wire format ───────────────────────────────────────────────────────────


class TestSchemas:
    def test_serialize_projects_camel_case(self):
        payload = json.loads(serialize_projects(_projects()))
        project = payload[0]
        assert project["coordinates"] == {"artifactId": "job", "version": "build #1"}
        assert "projectToken" not in project
        dep = project["dependencies"][0]
        assert dep["artifactId"] == "a.jar"
        assert dep["systemPath"] == "/ws/lib/a.jar"
        assert dep["checksums"] == {"SHA1": "a" * 40}
        assert "otherPlatformSha1" not in dep

    def test_envelope_inline_data(self):
        env = ResultEnvelope.model_validate({"status": 1, "data": {"organization": "Acme"}})
        assert env.ok
        assert env.parsed_data() == {"organization": "Acme"}

    def test_envelope_empty_data(self):
        env = ResultEnvelope.model_validate({"status": 1})
        assert env.parsed_data() == {}


# ── update ────────────────────────────────────────────────────────────────


class TestUpdate:
    @pytest.mark.anyio
    async def test_update_request_and_outcome(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=_envelope(
                    {
                        "organization": "Acme",
                        "createdProjects": ["job"],
                        "updatedProjects": [],
                        "requestToken": "rt-data",
                    }
                ),
            )

        async with _client(handler) as client:
            outcome = await client.update("Acme Product", _projects())

        assert outcome.organization == "Acme"
        assert outcome.created_projects == ["job"]
        assert outcome.updated_projects == []
        assert outcome.request_token == "rt-data"

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == SERVICE_URL
        form = _form(request)
        assert form["type"] == "UPDATE"
        assert form["token"] == "org-token"
        assert form["userKey"] == "user-key"
        assert form["product"] == "Acme Product"
        assert form["productVersion"] == "1.2"
        assert form["requesterEmail"] == "dev@acme.io"
        assert json.loads(form["diff"])[0]["dependencies"][0]["sha1"] == "a" * 40

    @pytest.mark.anyio
    async def test_envelope_token_used_when_data_has_none(self):
        def handler(request):
            return httpx.Response(200, json=_envelope({"organization": "Acme"}))

        async with _client(handler) as client:
            outcome = await client.update(None, _projects())
        assert outcome.request_token == "rt-42"

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [502, 503, 504])
    async def test_gateway_errors_are_transient(self, status):
        async with _client(lambda r: httpx.Response(status)) as client:
            with pytest.raises(TransientNetworkError):
                await client.update(None, _projects())

    @pytest.mark.anyio
    async def test_connect_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransientNetworkError):
                await client.update(None, _projects())

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [400, 401, 500])
    async def test_other_http_errors_not_retryable(self, status):
        async with _client(lambda r: httpx.Response(status)) as client:
            with pytest.raises(NonRetryableServiceError):
                await client.update(None, _projects())

    @pytest.mark.anyio
    async def test_failed_envelope_carries_token(self):
        def handler(request):
            return httpx.Response(200, json=_envelope(None, status=2, message="Invalid token"))

        async with _client(handler) as client:
            with pytest.raises(NonRetryableServiceError) as exc_info:
                await client.update(None, _projects())
        assert "Invalid token" in str(exc_info.value)
        assert exc_info.value.request_token == "rt-42"

    @pytest.mark.anyio
    async def test_unreadable_body(self):
        async with _client(lambda r: httpx.Response(200, text="<html>oops</html>")) as client:
            with pytest.raises(NonRetryableServiceError):
                await client.update(None, _projects())

    @pytest.mark.anyio
    async def test_closed_on_exit(self):
        client = _client(lambda r: httpx.Response(200, json=_envelope({})))
        async with client:
            pass
        assert client._client.is_closed


# ── policy check ──────────────────────────────────────────────────────────


class TestCheckPolicyCompliance:
    @pytest.mark.anyio
    async def test_rejections_collected(self):
        seen: list[httpx.Request] = []
        tree = {
            "resource": {"displayName": "root"},
            "children": [
                {
                    "resource": {"displayName": "evil-lib-1.0.jar", "sha1": "e" * 40},
                    "policy": {"displayName": "No GPL", "actionType": "Reject"},
                    "children": [],
                },
                {
                    "resource": {"displayName": "good-lib.jar"},
                    "policy": {"displayName": "Approved", "actionType": "Approve"},
                },
            ],
        }

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json=_envelope(
                    {"organization": "Acme", "newProjects": {"job": tree}, "existingProjects": {}}
                ),
            )

        async with _client(handler, check_all_libraries=True) as client:
            result = await client.check_policy_compliance("Acme Product", _projects(), True)

        assert result.has_rejections
        assert result.organization == "Acme"
        assert result.request_token == "rt-42"
        [rejection] = result.rejected
        assert rejection.project == "job"
        assert rejection.library == "evil-lib-1.0.jar"
        assert rejection.policy == "No GPL"

        form = _form(seen[0])
        assert form["type"] == "CHECK_POLICY_COMPLIANCE"
        assert form["forceCheckAllDependencies"] == "true"
        assert "requesterEmail" not in form

    @pytest.mark.anyio
    async def test_clean_result(self):
        def handler(request):
            return httpx.Response(200, json=_envelope({"organization": "Acme", "newProjects": {}}))

        async with _client(handler) as client:
            result = await client.check_policy_compliance(None, _projects(), False)
        assert not result.has_rejections


# ── malformed bodies ──────────────────────────────────────────────────────


class TestMalformedData:
    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "data",
        [
            {"newProjects": ["proj-a"]},
            {"existingProjects": {"p": {"policy": "Reject", "resource": {}}}},
            {"existingProjects": {"p": {"resource": "evil.jar"}}},
            {"newProjects": {"p": {"children": "evil.jar"}}},
        ],
    )
    async def test_policy_check_wrong_shape(self, data):
        async with _client(lambda r: httpx.Response(200, json=_envelope(data))) as client:
            with pytest.raises(NonRetryableServiceError) as exc_info:
                await client.check_policy_compliance(None, _projects(), False)
        assert exc_info.value.request_token == "rt-42"

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "data",
        [{"createdProjects": "abc"}, {"updatedProjects": {"job": 1}}, {"createdProjects": [1]}],
    )
    async def test_update_wrong_shape(self, data):
        async with _client(lambda r: httpx.Response(200, json=_envelope(data))) as client:
            with pytest.raises(NonRetryableServiceError, match="malformed data"):
                await client.update(None, _projects())
