from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

STATUS_PROVISIONING = "provisioning"

# Attributes that may be changed without replacing the cluster.
MUTABLE_FIELDS = ("name", "auto_upgrade_capacity")


class YesNo(StrEnum):
    yes = "yes"
    no = "no"


def _text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ClusterConfig(BaseModel):
    """Desired configuration for a Typesense Cloud cluster.

    ``memory``, ``vcpu``, ``region`` and the two yes/no hardware flags are
    fixed once the cluster exists; only ``name`` and
    ``auto_upgrade_capacity`` can be changed in place.
    """

    model_config = ConfigDict(extra="forbid")

    memory: str
    vcpu: str
    region: str
    high_availability: YesNo = YesNo.no
    high_performance_disk: YesNo = YesNo.no
    name: str | None = None
    auto_upgrade_capacity: bool = False

    @field_validator("memory", "vcpu", "region", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("high_availability", "high_performance_disk", mode="before")
    @classmethod
    def _yaml_bool(cls, value: Any) -> Any:
        # YAML 1.1 reads a bare yes/no as a boolean
        if isinstance(value, bool):
            return YesNo.yes if value else YesNo.no
        return value

    @field_validator("memory", "vcpu", "region")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class ClusterCreateRequest(BaseModel):
    """Body of ``POST /clusters``. The server assigns the delivery network."""

    memory: str
    vcpu: str
    regions: list[str]
    high_availability: YesNo
    high_performance_disk: YesNo
    name: str | None = None
    auto_upgrade_capacity: bool = False

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ClusterUpdateRequest(BaseModel):
    """Body of ``PATCH /clusters/{id}``: the mutable subset only."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    auto_upgrade_capacity: bool = False

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ClusterRecord(BaseModel):
    """Cluster as returned by the Typesense Cloud management API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    memory: str = ""
    vcpu: str = ""
    regions: list[str] = Field(default_factory=list)
    high_availability: str = ""
    high_performance_disk: str = ""
    search_delivery_network: str = ""
    load_balancing: str = ""
    typesense_server_version: str = ""
    auto_upgrade_capacity: bool = False
    status: str = ""

    @field_validator(
        "name",
        "memory",
        "vcpu",
        "high_availability",
        "high_performance_disk",
        "search_delivery_network",
        "load_balancing",
        "typesense_server_version",
        "status",
        mode="before",
    )
    @classmethod
    def _null_to_text(cls, value: Any) -> Any:
        return _text(value)

    @field_validator("regions", mode="before")
    @classmethod
    def _null_regions(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("auto_upgrade_capacity", mode="before")
    @classmethod
    def _null_flag(cls, value: Any) -> Any:
        return False if value is None else value

    @property
    def region(self) -> str:
        """The authoritative region (first entry of ``regions``)."""
        return self.regions[0] if self.regions else ""

    @property
    def is_provisioning(self) -> bool:
        return self.status == STATUS_PROVISIONING


class ClusterState(BaseModel):
    """Flattened snapshot of a cluster, handed to the host for persistence."""

    id: str
    name: str
    memory: str
    vcpu: str
    region: str
    high_availability: str
    high_performance_disk: str
    search_delivery_network: str
    load_balancing: str
    typesense_server_version: str
    auto_upgrade_capacity: bool
    status: str

    @classmethod
    def from_record(cls, record: ClusterRecord) -> "ClusterState":
        return cls(
            id=record.id,
            name=record.name,
            memory=record.memory,
            vcpu=record.vcpu,
            region=record.region,
            high_availability=record.high_availability,
            high_performance_disk=record.high_performance_disk,
            search_delivery_network=record.search_delivery_network,
            load_balancing=record.load_balancing,
            typesense_server_version=record.typesense_server_version,
            auto_upgrade_capacity=record.auto_upgrade_capacity,
            status=record.status,
        )

    def to_sorted_json(self, indent: int | None = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(self.model_dump(mode="json"), indent=indent, sort_keys=True)
