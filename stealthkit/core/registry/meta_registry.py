"""
Meta-Address Registry - maps recipient identifiers to meta-addresses.

This module provides:
- The MetaAddressRegistry interface senders depend on
- InMemoryRegistry, a process-local implementation

On-chain registries (ERC-6538 style) implement the same two operations;
the core never needs more than the resulting MetaAddress.

Identifiers are either raw addresses (0x...) or name handles such as
ENS names. Both are normalized to lowercase so "Alice.eth" and
"alice.eth" resolve to the same entry.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from stealthkit.core.meta_address import MetaAddress
from stealthkit.errors import NotFound
from stealthkit.utils.logger import get_logger
from stealthkit.utils.validation import validate_identifier

logger = get_logger("registry")


def normalize_identifier(identifier: str) -> str:
    """
    Canonical registry key for an identifier.

    Raises:
        ValueError: identifier is empty, too long, or a malformed address
    """
    valid, err = validate_identifier(identifier)
    if not valid:
        raise ValueError(err)
    return identifier.strip().lower()


class MetaAddressRegistry(ABC):
    """Registry of recipient meta-addresses."""

    @abstractmethod
    def register(self, identifier: str, meta_address: MetaAddress) -> None:
        """Publish a meta-address under an identifier."""

    @abstractmethod
    def lookup(self, identifier: str) -> MetaAddress:
        """
        Resolve an identifier.

        Raises:
            NotFound: identifier is not registered
        """

    def is_registered(self, identifier: str) -> bool:
        try:
            self.lookup(identifier)
            return True
        except NotFound:
            return False


class InMemoryRegistry(MetaAddressRegistry):
    """
    Registry held in a dict owned by the instance.

    Re-registering an identifier replaces the previous meta-address,
    matching registries that let owners rotate keys.
    """

    def __init__(self):
        # Normalized identifier -> MetaAddress
        self._entries: Dict[str, MetaAddress] = {}

    def register(self, identifier: str, meta_address: MetaAddress) -> None:
        if not isinstance(meta_address, MetaAddress):
            raise TypeError(f"meta_address must be MetaAddress, got {type(meta_address).__name__}")

        key = normalize_identifier(identifier)
        replaced = key in self._entries
        self._entries[key] = meta_address

        if replaced:
            logger.info(f"Replaced meta-address for '{key}'")
        else:
            logger.info(f"Registered meta-address for '{key}'")

    def register_keys(
        self,
        identifier: str,
        spending_public_key: bytes,
        viewing_public_key: bytes,
    ) -> MetaAddress:
        """Register from the two public keys; returns the stored MetaAddress."""
        meta_address = MetaAddress(spending_public_key, viewing_public_key)
        self.register(identifier, meta_address)
        return meta_address

    def lookup(self, identifier: str) -> MetaAddress:
        key = normalize_identifier(identifier)
        meta_address = self._entries.get(key)
        if meta_address is None:
            logger.debug(f"Lookup miss for '{key}'")
            raise NotFound(key)
        return meta_address

    def unregister(self, identifier: str) -> None:
        """
        Remove an identifier.

        Raises:
            NotFound: identifier is not registered
        """
        key = normalize_identifier(identifier)
        if key not in self._entries:
            raise NotFound(key)
        del self._entries[key]
        logger.info(f"Unregistered '{key}'")

    def identifiers(self) -> List[str]:
        return sorted(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: str) -> bool:
        return self.is_registered(identifier)
