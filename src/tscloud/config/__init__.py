"""
tscloud configuration.

- Pydantic-based settings (environment variables, .env files)
- YAML cluster definitions
"""

from tscloud.config.loader import load_cluster_file
from tscloud.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_cluster_file",
]
