from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

ProviderFactory = Callable[..., Any]


@dataclass(frozen=True)
class ProviderSpec:
    """Metadata describing a registered provider."""

    name: str
    factory: ProviderFactory
    version: str | None = None
    description: str | None = None
    resources: tuple[str, ...] = field(default_factory=tuple)


class ProviderRegistry:
    """In-memory registry mapping provider names to factories."""

    def __init__(self) -> None:
        self._providers: Dict[str, ProviderSpec] = {}

    def register(
        self,
        name: str,
        factory: ProviderFactory,
        *,
        version: str | None = None,
        description: str | None = None,
        resources: List[str] | None = None,
    ) -> None:
        if not name:
            raise ValueError("Provider name is required")
        self._providers[name] = ProviderSpec(
            name=name,
            factory=factory,
            version=version,
            description=description,
            resources=tuple(resources or ()),
        )

    def create(self, name: str, **kwargs: Any) -> Any:
        spec = self._providers.get(name)
        if spec is None:
            raise KeyError(f"Provider '{name}' is not registered")
        return spec.factory(**kwargs)

    def list(self) -> List[ProviderSpec]:
        return sorted(self._providers.values(), key=lambda s: s.name)


provider_registry = ProviderRegistry()


def register_provider(
    name: str,
    factory: ProviderFactory,
    *,
    version: str | None = None,
    description: str | None = None,
    resources: List[str] | None = None,
) -> None:
    provider_registry.register(
        name,
        factory,
        version=version,
        description=description,
        resources=resources,
    )


def create_provider(name: str, **kwargs: Any) -> Any:
    return provider_registry.create(name, **kwargs)


def list_providers() -> List[ProviderSpec]:
    return provider_registry.list()
