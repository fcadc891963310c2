"""Connection registry: which users are reachable, and through which connections."""

from relaykit.registry.base import ConnectionRegistry, Deregistration
from relaykit.registry.memory import InMemoryConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "Deregistration",
    "InMemoryConnectionRegistry",
]
