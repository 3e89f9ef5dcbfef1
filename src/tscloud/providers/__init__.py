"""Provider utilities and built-in registrations."""

# Import built-in providers for side effects (registration)
from tscloud.providers import typesense as _typesense  # noqa: F401
from tscloud.providers.registry import (
    create_provider,
    list_providers,
    register_provider,
)

__all__ = [
    "create_provider",
    "list_providers",
    "register_provider",
]
