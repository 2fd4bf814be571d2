"""Wire schemas for the inventory service agent API."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ossinventory.engines.aggregator.models import Coordinates, ProjectInfo
from ossinventory.engines.folder_scanner.models import DependencyRecord

SUCCESS_STATUS = 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinatesPayload(_CamelModel):
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None

    @classmethod
    def from_coordinates(cls, coords: Coordinates | None) -> CoordinatesPayload | None:
        if coords is None:
            return None
        return cls(group_id=coords.group_id, artifact_id=coords.artifact_id, version=coords.version)


class DependencyPayload(_CamelModel):
    artifact_id: str
    system_path: str
    sha1: str | None = None
    other_platform_sha1: str | None = None
    full_hash: str | None = None
    most_sig_bits_hash: str | None = None
    least_sig_bits_hash: str | None = None
    checksums: dict[str, str] = Field(default_factory=dict)
    group_id: str | None = None
    version: str | None = None
    type: str | None = None
    classifier: str | None = None
    scope: str | None = None

    @classmethod
    def from_record(cls, record: DependencyRecord) -> DependencyPayload:
        return cls.model_validate(record.to_dict())


class ProjectPayload(_CamelModel):
    coordinates: CoordinatesPayload | None = None
    parent_coordinates: CoordinatesPayload | None = None
    project_token: str | None = None
    dependencies: list[DependencyPayload] = Field(default_factory=list)

    @classmethod
    def from_project(cls, project: ProjectInfo) -> ProjectPayload:
        return cls(
            coordinates=CoordinatesPayload.from_coordinates(project.coordinates),
            parent_coordinates=CoordinatesPayload.from_coordinates(project.parent_coordinates),
            project_token=project.project_token,
            dependencies=[DependencyPayload.from_record(d) for d in project.dependencies],
        )


def serialize_projects(projects: list[ProjectInfo]) -> str:
    """JSON ``diff`` field sent with every agent request."""
    payload = [
        ProjectPayload.from_project(p).model_dump(by_alias=True, exclude_none=True)
        for p in projects
    ]
    return json.dumps(payload)


class ResultEnvelope(BaseModel):
    """Agent API response; ``data`` is itself a JSON document encoded as a string."""

    model_config = ConfigDict(populate_by_name=True)

    envelope_version: str | None = Field(default=None, alias="envelopeVersion")
    status: int
    message: str | None = None
    data: str | None = None
    request_token: str | None = Field(default=None, alias="requestToken")

    @field_validator("data", mode="before")
    @classmethod
    def _data_as_text(cls, v: Any) -> Any:
        # Some service versions inline the document instead of encoding it.
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS_STATUS

    def parsed_data(self) -> dict[str, Any]:
        if not self.data:
            return {}
        parsed = json.loads(self.data)
        return parsed if isinstance(parsed, dict) else {}
