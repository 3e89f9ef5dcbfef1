"""
Cluster definition loading.

A cluster file is YAML, either flat::

    memory: 0.5_gb
    vcpu: 2_vcpus_1_hr_burst_per_day
    region: oregon

or nested under a ``cluster:`` key.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from tscloud.core.errors import ConfigurationError
from tscloud.domain.models import ClusterConfig

logger = structlog.get_logger()


def load_cluster_file(path: str | Path) -> ClusterConfig:
    """Read a cluster definition from *path*.

    Raises:
        ConfigurationError: file missing, not YAML, or not a valid cluster
    """
    cluster_path = Path(path).expanduser()
    if not cluster_path.exists():
        raise ConfigurationError("Cluster file not found", {"path": str(cluster_path)})

    try:
        with open(cluster_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in cluster file: {e}", {"path": str(cluster_path)}
        ) from e

    if isinstance(data, dict) and isinstance(data.get("cluster"), dict):
        data = data["cluster"]
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Cluster file must contain a mapping", {"path": str(cluster_path)}
        )

    try:
        config = ClusterConfig.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(
            f"Invalid cluster definition ({fields})", {"path": str(cluster_path)}
        ) from e

    logger.debug("loaded_cluster_file", path=str(cluster_path), region=config.region)
    return config
