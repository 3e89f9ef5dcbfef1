"""
CLI commands for Typesense Cloud clusters.

Commands:
    tscloud cluster create --file cluster.yaml
    tscloud cluster read <id>
    tscloud cluster update <id> --name new-name
    tscloud cluster delete <id> --yes
    tscloud cluster import <id>

Each command runs one lifecycle operation and records the resulting
snapshot in the state file.
"""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from pathlib import Path
from typing import Any

from tscloud.cli.ux import confirm, console, info, print_key_value, spinner, success, warning
from tscloud.config.settings import Settings, get_settings
from tscloud.core.errors import (
    BlockedError,
    ConfigurationError,
    ConvergenceFailed,
    NotFound,
    ValidationError,
)
from tscloud.domain.models import ClusterConfig, ClusterState
from tscloud.logging import bind_context
from tscloud.providers.registry import create_provider
from tscloud.providers.typesense import TypesenseClusterResource, TypesenseProvider
from tscloud.state import load_state, save_state


def build_provider(settings: Settings | None = None) -> TypesenseProvider:
    """Create the registered Typesense provider from settings."""
    settings = settings or get_settings()
    if not settings.management_api_key:
        raise ConfigurationError(
            "No Typesense Cloud management API key configured",
            {"env": "TSCLOUD_MANAGEMENT_API_KEY"},
        )
    return create_provider(
        "typesense",
        api_key=settings.management_api_key,
        base_url=settings.api_base_url,
        timeout=settings.http_timeout,
        max_retries=settings.http_max_retries,
        poll_interval=settings.poll_interval,
        convergence_timeout=settings.convergence_timeout,
        max_poll_attempts=settings.max_poll_attempts,
    )


def _state_path(state_file: str | None) -> Path:
    return Path(state_file or get_settings().state_file).expanduser()


def _print_state(state: ClusterState, output_format: str, title: str) -> None:
    if output_format == "json":
        print(state.to_sorted_json())
        return
    print_key_value(
        {key: str(value) for key, value in state.model_dump(mode="json").items()},
        title=title,
    )


def config_from_state(state: ClusterState) -> ClusterConfig:
    return ClusterConfig(
        memory=state.memory,
        vcpu=state.vcpu,
        region=state.region,
        high_availability=state.high_availability or "no",
        high_performance_disk=state.high_performance_disk or "no",
        name=state.name or None,
        auto_upgrade_capacity=state.auto_upgrade_capacity,
    )


def _check_replacement(current: ClusterState, desired: ClusterConfig) -> None:
    """Refuse in-place updates that touch replace-only attributes."""
    wanted = desired.model_dump(mode="json")
    have = current.model_dump(mode="json")
    changed = [
        attr
        for attr in TypesenseClusterResource.schema().immutable_attributes()
        if attr in wanted and wanted[attr] != have.get(attr)
    ]
    if changed:
        raise ValidationError(
            "Changing these attributes requires replacing the cluster: " + ", ".join(changed),
            {"cluster_id": current.id},
        )


async def _with_provider(provider: TypesenseProvider | None, action: Any) -> Any:
    provider = provider or build_provider()
    try:
        return await action(provider.cluster())
    finally:
        await provider.aclose()


def create_cluster_command(
    config: ClusterConfig,
    *,
    state_file: str | None = None,
    output_format: str = "text",
    provider: TypesenseProvider | None = None,
) -> int:
    """Create a cluster and wait until it leaves ``provisioning``."""
    path = _state_path(state_file)
    state = load_state(path)

    progress = (
        nullcontext() if output_format == "json" else spinner(f"Creating cluster in {config.region}")
    )
    try:
        with progress:
            snapshot = asyncio.run(_with_provider(provider, lambda r: r.create(config)))
    except ConvergenceFailed as exc:
        # The cluster exists remotely; keep its id so it is not orphaned.
        if exc.cluster_id:
            state.taint(exc.cluster_id)
            save_state(state, path)
            bind_context(cluster_id=exc.cluster_id).warning("cluster_tainted", state_file=str(path))
            warning(f"Cluster {exc.cluster_id} recorded as tainted in {path}")
        raise

    state.put(snapshot)
    save_state(state, path)
    if output_format != "json":
        success(f"Cluster {snapshot.id} is {snapshot.status}")
    _print_state(snapshot, output_format, "Cluster")
    return 0


def read_cluster_command(
    cluster_id: str,
    *,
    state_file: str | None = None,
    output_format: str = "text",
    provider: TypesenseProvider | None = None,
) -> int:
    """Refresh a cluster from the API into the state file."""
    path = _state_path(state_file)
    state = load_state(path)

    try:
        snapshot = asyncio.run(_with_provider(provider, lambda r: r.read(cluster_id)))
    except NotFound:
        if state.remove(cluster_id):
            save_state(state, path)
        bind_context(cluster_id=cluster_id).info("cluster_removed_from_state", state_file=str(path))
        warning(f"Cluster {cluster_id} no longer exists; removed from state")
        return 0

    state.put(snapshot)
    save_state(state, path)
    _print_state(snapshot, output_format, "Cluster")
    return 0


def update_cluster_command(
    cluster_id: str,
    *,
    config: ClusterConfig | None = None,
    name: str | None = None,
    auto_upgrade_capacity: bool | None = None,
    state_file: str | None = None,
    output_format: str = "text",
    provider: TypesenseProvider | None = None,
) -> int:
    """Change the name or auto upgrade setting of a cluster."""
    path = _state_path(state_file)
    state = load_state(path)
    current = state.get(cluster_id)

    if config is None:
        if current is None:
            raise ConfigurationError(
                "Cluster is not in the state file; pass --file with its definition",
                {"cluster_id": cluster_id},
            )
        config = config_from_state(current)
    if current is not None:
        _check_replacement(current, config)

    overrides: dict[str, Any] = {}
    if name is not None:
        overrides["name"] = name
    if auto_upgrade_capacity is not None:
        overrides["auto_upgrade_capacity"] = auto_upgrade_capacity
    if overrides:
        config = config.model_copy(update=overrides)

    snapshot = asyncio.run(_with_provider(provider, lambda r: r.update(cluster_id, config)))
    state.put(snapshot)
    save_state(state, path)
    if output_format != "json":
        success(f"Cluster {cluster_id} updated")
    _print_state(snapshot, output_format, "Cluster")
    return 0


def delete_cluster_command(
    cluster_id: str,
    *,
    assume_yes: bool = False,
    state_file: str | None = None,
    provider: TypesenseProvider | None = None,
) -> int:
    """Terminate a cluster. Teardown continues asynchronously on the server."""
    if not assume_yes and not confirm(f"Terminate cluster {cluster_id}?"):
        raise BlockedError("Delete not confirmed", {"cluster_id": cluster_id})

    path = _state_path(state_file)
    state = load_state(path)

    asyncio.run(_with_provider(provider, lambda r: r.delete(cluster_id)))
    if state.remove(cluster_id):
        save_state(state, path)
    success(f"Cluster {cluster_id} terminated")
    return 0


def import_cluster_command(
    cluster_id: str,
    *,
    state_file: str | None = None,
    output_format: str = "text",
    provider: TypesenseProvider | None = None,
) -> int:
    """Adopt an existing cluster into the state file."""
    path = _state_path(state_file)
    state = load_state(path)

    async def _import(resource: TypesenseClusterResource) -> ClusterState:
        resource_id = resource.import_state(cluster_id)
        return await resource.read(resource_id)

    snapshot = asyncio.run(_with_provider(provider, _import))
    state.put(snapshot)
    save_state(state, path)
    if output_format != "json":
        info(f"Imported cluster {snapshot.id}")
    _print_state(snapshot, output_format, "Cluster")
    return 0


def list_providers_command() -> int:
    from tscloud.providers import list_providers

    for spec in list_providers():
        resources = ", ".join(spec.resources) or "-"
        console.print(f"{spec.name}\t{spec.version or 'unknown'}\t{resources}\t{spec.description or ''}")
    return 0
