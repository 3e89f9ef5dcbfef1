"""
Local state file for clusters managed through the CLI.

Layout::

    {
      "resources": {"<cluster id>": {<ClusterState fields>}},
      "tainted": ["<cluster id>", ...]
    }

A tainted id is a cluster that was created but never reached a stable status;
it is kept so the cluster is not lost track of.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Set

from tscloud.core.errors import ConfigurationError
from tscloud.domain.models import ClusterState

DEFAULT_STATE_PATH = Path("tscloud.state.json")


@dataclass
class StateFile:
    resources: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    tainted: Set[str] = field(default_factory=set)

    def put(self, state: ClusterState) -> None:
        self.resources[state.id] = state.model_dump(mode="json")
        self.tainted.discard(state.id)

    def get(self, cluster_id: str) -> ClusterState | None:
        data = self.resources.get(cluster_id)
        return ClusterState.model_validate(data) if data is not None else None

    def remove(self, cluster_id: str) -> bool:
        self.tainted.discard(cluster_id)
        return self.resources.pop(cluster_id, None) is not None

    def taint(self, cluster_id: str) -> None:
        self.tainted.add(cluster_id)


def load_state(path: Path | None = None) -> StateFile:
    state_path = path or DEFAULT_STATE_PATH
    if not state_path.exists():
        return StateFile()
    try:
        data = json.loads(state_path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"State file is not valid JSON: {e}", {"path": str(state_path)}) from e
    return StateFile(
        resources=dict(data.get("resources", {})),
        tainted=set(data.get("tainted", [])),
    )


def save_state(state: StateFile, path: Path | None = None) -> None:
    state_path = path or DEFAULT_STATE_PATH
    payload = {"resources": state.resources, "tainted": sorted(state.tainted)}
    state_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")
