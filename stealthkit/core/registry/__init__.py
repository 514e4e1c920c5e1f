"""
stealthkit Registry Module.

External collaborators of the crypto core: meta-address lookup and the
announcement channel.
"""

from stealthkit.core.registry.meta_registry import (
    MetaAddressRegistry,
    InMemoryRegistry,
    normalize_identifier,
)
from stealthkit.core.registry.announcer import (
    Announcer,
    InMemoryAnnouncer,
)

__all__ = [
    "MetaAddressRegistry",
    "InMemoryRegistry",
    "normalize_identifier",
    "Announcer",
    "InMemoryAnnouncer",
]
