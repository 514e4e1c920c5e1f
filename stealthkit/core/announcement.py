"""
Announcement - the public record a sender emits for every stealth payment.

Every potential recipient observes every announcement. The first byte of
the metadata carries the view tag, which lets recipients discard
announcements that are not theirs after a single ECDH.

Announcement Layout:
-------------------
    scheme_id             1 for secp256k1 with view tags
    stealth_address       0x-prefixed 20-byte address that received funds
    ephemeral_public_key  33-byte compressed sender ephemeral key
    metadata              view_tag || reserved bytes
    caller                address that emitted the announcement
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from stealthkit.core.config import SCHEME_ID_SECP256K1
from stealthkit.crypto import ZERO_ADDRESS, bytes_to_hex, hex_to_bytes, normalize_address
from stealthkit.utils.validation import validate_announcement_data, validate_view_tag


@dataclass(frozen=True)
class Announcement:
    """
    A published stealth payment record.

    Attributes:
        scheme_id: Stealth scheme identifier
        stealth_address: One-time address (lowercase hex)
        ephemeral_public_key: 33-byte compressed ephemeral key
        metadata: View tag followed by reserved bytes
        caller: Sender address
    """
    scheme_id: int
    stealth_address: str
    ephemeral_public_key: bytes
    metadata: bytes
    caller: str = field(default=ZERO_ADDRESS)

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "stealth_address", normalize_address(self.stealth_address))
        object.__setattr__(self, "caller", normalize_address(self.caller))
        object.__setattr__(self, "ephemeral_public_key", bytes(self.ephemeral_public_key))
        object.__setattr__(self, "metadata", bytes(self.metadata))

    @property
    def view_tag(self) -> int:
        """
        View tag carried in the first metadata byte.

        Raises:
            ValueError: metadata is empty
        """
        if not self.metadata:
            raise ValueError("Announcement metadata is empty; no view tag present")
        return self.metadata[0]

    @property
    def is_supported_scheme(self) -> bool:
        return self.scheme_id == SCHEME_ID_SECP256K1

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation (hex strings)."""
        return {
            "scheme_id": self.scheme_id,
            "stealth_address": self.stealth_address,
            "ephemeral_public_key": bytes_to_hex(self.ephemeral_public_key),
            "metadata": bytes_to_hex(self.metadata),
            "caller": self.caller,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Announcement":
        """
        Parse the dict form.

        Raises:
            ValueError: a field is missing or malformed
        """
        valid, err = validate_announcement_data(data)
        if not valid:
            raise ValueError(f"Invalid announcement: {err}")

        return cls(
            scheme_id=data["scheme_id"],
            stealth_address=data["stealth_address"],
            ephemeral_public_key=hex_to_bytes(data["ephemeral_public_key"]),
            metadata=hex_to_bytes(data["metadata"]),
            caller=data.get("caller", ZERO_ADDRESS),
        )


def build_metadata(view_tag: int, extra: bytes = b"") -> bytes:
    """
    Metadata = view tag byte followed by reserved bytes.

    Raises:
        ValueError: view_tag is not a single byte value
    """
    valid, err = validate_view_tag(view_tag)
    if not valid:
        raise ValueError(err)
    return bytes([view_tag]) + bytes(extra)
