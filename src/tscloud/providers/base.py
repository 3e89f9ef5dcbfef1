from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class AttributeSchema:
    """Declaration of a single resource attribute.

    ``immutable`` attributes can only change by replacing the resource; the
    engine never sends them on update.
    """

    name: str
    description: str
    type: str = "string"
    required: bool = False
    optional: bool = False
    computed: bool = False
    immutable: bool = False
    default: Any = None


@dataclass(frozen=True)
class ProviderResourceSchema:
    """Schema metadata describing a provider-managed resource."""

    name: str
    description: str
    attributes: tuple[AttributeSchema, ...] = field(default_factory=tuple)

    def attribute(self, name: str) -> AttributeSchema:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        raise KeyError(f"Resource '{self.name}' has no attribute '{name}'")

    def immutable_attributes(self) -> list[str]:
        return [a.name for a in self.attributes if a.immutable]

    def mutable_attributes(self) -> list[str]:
        """Attributes a user may set and change in place."""
        return [
            a.name
            for a in self.attributes
            if not a.immutable and (a.required or a.optional)
        ]


class LifecycleResource(Protocol):
    """Contract for resources reconciled through create/read/update/delete."""

    @staticmethod
    def schema() -> ProviderResourceSchema:
        ...

    async def create(self, desired: Any) -> Any:
        ...

    async def read(self, resource_id: str) -> Any:
        ...

    async def update(self, resource_id: str, desired: Any) -> Any:
        ...

    async def delete(self, resource_id: str) -> None:
        ...

    def import_state(self, external_id: str) -> str:
        ...


class Provider(Protocol):
    """Minimal provider interface exposed to the host."""

    name: str

    async def resources(self) -> list[ProviderResourceSchema]:
        ...

    async def aclose(self) -> None:
        ...
