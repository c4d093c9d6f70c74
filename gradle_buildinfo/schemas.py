"""Build-info record schemas populated by the collector.

Field names follow the vendor-neutral build-info JSON format; empty
optional fields are omitted on serialization.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gradle_buildinfo.models import Digests


class _Checksummed(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sha1: str | None = None
    sha256: str | None = None
    md5: str | None = None

    def set_checksum(self, digests: Digests) -> None:
        self.sha1 = digests.sha1 or None
        self.sha256 = digests.sha256 or None
        self.md5 = digests.md5 or None


class Agent(BaseModel):
    name: str
    version: str


class Artifact(_Checksummed):
    name: str
    type: str | None = None
    path: str | None = None


class Dependency(_Checksummed):
    id: str
    type: str = "jar"
    scopes: list[str] | None = None
    requested_by: list[list[str]] | None = Field(default=None, alias="requestedBy")


class Module(BaseModel):
    id: str
    type: str = "gradle"
    properties: dict[str, str] | None = None
    artifacts: list[Artifact] | None = None
    dependencies: list[Dependency] | None = None


class BuildInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    number: str
    started: str
    agent: Agent
    build_agent: Agent | None = Field(default=None, alias="buildAgent")
    modules: list[Module] = Field(default_factory=list)

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
