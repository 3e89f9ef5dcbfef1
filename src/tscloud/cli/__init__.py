"""
CLI commands for tscloud.
"""

from tscloud.cli.cluster import (
    create_cluster_command,
    delete_cluster_command,
    import_cluster_command,
    list_providers_command,
    read_cluster_command,
    update_cluster_command,
)

__all__ = [
    "create_cluster_command",
    "read_cluster_command",
    "update_cluster_command",
    "delete_cluster_command",
    "import_cluster_command",
    "list_providers_command",
]
