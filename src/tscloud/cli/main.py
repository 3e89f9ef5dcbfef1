from __future__ import annotations

import argparse
from typing import Sequence

from tscloud.cli.ux import error
from tscloud.config.loader import load_cluster_file
from tscloud.config.settings import get_settings
from tscloud.core.errors import (
    ConfigurationError,
    TscloudError,
    format_error_message,
    main_with_error_handling,
)
from tscloud.domain.models import ClusterConfig
from tscloud.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tscloud", description="Typesense Cloud cluster provider")
    parser.add_argument("--state-file", help="Path to the state file (default: TSCLOUD_STATE_FILE)")
    parser.add_argument("--output", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--log-level", help="Log level (default: TSCLOUD_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    cluster_parser = subparsers.add_parser("cluster", help="Manage clusters")
    cluster_sub = cluster_parser.add_subparsers(dest="cluster_command")

    create_parser = cluster_sub.add_parser("create", help="Create a cluster and wait until it is ready")
    create_parser.add_argument("--file", help="Cluster definition YAML")
    create_parser.add_argument("--memory", help="Memory configuration, e.g. 0.5_gb")
    create_parser.add_argument("--vcpu", help="vCPU configuration")
    create_parser.add_argument("--region", help="Region")
    create_parser.add_argument("--name", help="Cluster name")
    create_parser.add_argument("--high-availability", choices=["yes", "no"])
    create_parser.add_argument("--high-performance-disk", choices=["yes", "no"])
    create_parser.add_argument(
        "--auto-upgrade-capacity",
        action=argparse.BooleanOptionalAction,
        default=None,
    )

    read_parser = cluster_sub.add_parser("read", help="Refresh a cluster from the API")
    read_parser.add_argument("cluster_id")

    update_parser = cluster_sub.add_parser("update", help="Change cluster name or auto upgrade")
    update_parser.add_argument("cluster_id")
    update_parser.add_argument("--file", help="Cluster definition YAML")
    update_parser.add_argument("--name", help="New cluster name")
    update_parser.add_argument(
        "--auto-upgrade-capacity",
        action=argparse.BooleanOptionalAction,
        default=None,
    )

    delete_parser = cluster_sub.add_parser("delete", help="Terminate a cluster")
    delete_parser.add_argument("cluster_id")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    import_parser = cluster_sub.add_parser("import", help="Adopt an existing cluster")
    import_parser.add_argument("cluster_id")

    providers_parser = subparsers.add_parser("providers", help="Provider tooling")
    providers_sub = providers_parser.add_subparsers(dest="providers_command")
    providers_sub.add_parser("list", help="List available providers")

    return parser


def _config_from_args(args: argparse.Namespace) -> ClusterConfig:
    data: dict[str, object] = {}
    if args.file:
        data.update(load_cluster_file(args.file).model_dump(exclude_none=True))
    for key in ("memory", "vcpu", "region", "name", "high_availability", "high_performance_disk"):
        value = getattr(args, key)
        if value is not None:
            data[key] = value
    if args.auto_upgrade_capacity is not None:
        data["auto_upgrade_capacity"] = args.auto_upgrade_capacity

    missing = [key for key in ("memory", "vcpu", "region") if not data.get(key)]
    if missing:
        raise ConfigurationError("Missing required cluster settings: " + ", ".join(missing))
    return ClusterConfig.model_validate(data)


def _dispatch(args: argparse.Namespace) -> int:
    from tscloud.cli import cluster

    if args.command == "providers":
        return cluster.list_providers_command()

    command = args.cluster_command
    common = {"state_file": args.state_file}
    if command == "create":
        return cluster.create_cluster_command(
            _config_from_args(args), output_format=args.output, **common
        )
    if command == "read":
        return cluster.read_cluster_command(args.cluster_id, output_format=args.output, **common)
    if command == "update":
        config = load_cluster_file(args.file) if args.file else None
        return cluster.update_cluster_command(
            args.cluster_id,
            config=config,
            name=args.name,
            auto_upgrade_capacity=args.auto_upgrade_capacity,
            output_format=args.output,
            **common,
        )
    if command == "delete":
        return cluster.delete_cluster_command(args.cluster_id, assume_yes=args.yes, **common)
    if command == "import":
        return cluster.import_cluster_command(args.cluster_id, output_format=args.output, **common)
    raise ConfigurationError(f"Unknown cluster command: {command}")


def _setup_logging(args: argparse.Namespace) -> None:
    try:
        configure_logging(args.log_level or get_settings().log_level)
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError too
        raise ConfigurationError(f"Invalid tscloud settings: {exc}") from exc


@main_with_error_handling()
def run(args: argparse.Namespace) -> int:
    try:
        _setup_logging(args)
        return _dispatch(args)
    except TscloudError as exc:
        error(format_error_message(exc))
        raise


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None or (args.command == "cluster" and args.cluster_command is None):
        parser.print_help()
        return 1
    if args.command == "providers" and args.providers_command is None:
        parser.print_help()
        return 1

    return run(args)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    raise SystemExit(main())
