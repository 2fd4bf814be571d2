"""Data models for the inventory sync engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

SyncState = Literal["skipped", "updated", "rejected", "failed"]

REJECT_ACTION = "Reject"


@dataclass
class PolicyRejection:
    """One library (in one project) rejected by an organization policy."""

    project: str
    library: str
    policy: str | None = None
    sha1: str | None = None


@dataclass
class ComplianceResult:
    """Outcome of a policy-compliance check.

    ``new_projects`` and ``existing_projects`` keep the raw per-project
    resource trees returned by the service so the report can be rendered
    without another round trip.
    """

    organization: str | None = None
    rejected: list[PolicyRejection] = field(default_factory=list)
    request_token: str | None = None
    new_projects: dict[str, Any] = field(default_factory=dict)
    existing_projects: dict[str, Any] = field(default_factory=dict)

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)

    @classmethod
    def from_service_data(
        cls, data: dict[str, Any], request_token: str | None = None
    ) -> ComplianceResult:
        new_projects = _mapping(data, "newProjects")
        existing_projects = _mapping(data, "existingProjects")
        rejected: list[PolicyRejection] = []
        for projects in (existing_projects, new_projects):
            for project_name, root in projects.items():
                _collect_rejections(project_name, root, rejected)
        return cls(
            organization=data.get("organization"),
            rejected=rejected,
            request_token=request_token,
            new_projects=new_projects,
            existing_projects=existing_projects,
        )


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise TypeError(f"{key} must be an object, got {type(value).__name__}")
    return value


def _names(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{key} must be a list of project names")
    return list(value)


def _collect_rejections(project: str, node: Any, out: list[PolicyRejection]) -> None:
    """Walk a resource tree depth-first and record every rejected library."""
    if not isinstance(node, dict):
        return
    policy = node.get("policy") or {}
    resource = node.get("resource") or {}
    if not isinstance(policy, dict) or not isinstance(resource, dict):
        raise TypeError(f"malformed resource node in project {project!r}")
    if policy.get("actionType") == REJECT_ACTION:
        out.append(
            PolicyRejection(
                project=project,
                library=resource.get("displayName") or resource.get("sha1") or "<unknown>",
                policy=policy.get("displayName"),
                sha1=resource.get("sha1"),
            )
        )
    children = node.get("children") or []
    if not isinstance(children, list):
        raise TypeError(f"malformed children in project {project!r}")
    for child in children:
        _collect_rejections(project, child, out)


@dataclass
class SyncOutcome:
    """Result of a successful inventory update."""

    organization: str | None = None
    created_projects: list[str] = field(default_factory=list)
    updated_projects: list[str] = field(default_factory=list)
    request_token: str | None = None
    rejection: ComplianceResult | None = None

    @classmethod
    def from_service_data(
        cls, data: dict[str, Any], request_token: str | None = None
    ) -> SyncOutcome:
        return cls(
            organization=data.get("organization"),
            created_projects=_names(data, "createdProjects"),
            updated_projects=_names(data, "updatedProjects"),
            request_token=data.get("requestToken") or request_token,
        )


@dataclass
class SyncResult:
    """Terminal state of one sync run."""

    state: SyncState
    outcome: SyncOutcome | None = None
    compliance: ComplianceResult | None = None
    error: Exception | None = None
    should_fail_build: bool = False
    message: str | None = None

    @property
    def support_token(self) -> str | None:
        if self.outcome and self.outcome.request_token:
            return self.outcome.request_token
        token = getattr(self.error, "request_token", None)
        if token:
            return token
        if self.compliance and self.compliance.request_token:
            return self.compliance.request_token
        return None
