"""
Stealth Meta-Address - a recipient's published (spending, viewing) key pair.

Wire Format:
-----------
    st:eth:0x<spending pubkey hex><viewing pubkey hex>

Both keys are 33-byte compressed points, concatenated without separator
under a single 0x prefix (66 bytes, 132 hex digits). This is the only
canonical form; any deviation breaks cross-implementation lookups.

A second, colon-separated form exists for humans:

    st:eth:0x<spending>:0x<viewing>

decode() accepts it so a pasted display string still works, but encode()
never produces it.

The meta-address carries no private material. The matching private keys
live in RecipientKeys and never leave the recipient.
"""

from dataclasses import dataclass

from stealthkit.core.config import DEFAULT_CHAIN
from stealthkit.crypto import (
    COMPRESSED_POINT_SIZE,
    KeyPair,
    bytes_to_hex,
    generate_keypair,
)
from stealthkit.crypto.curve import decompress_point
from stealthkit.errors import InvalidPoint, MalformedMetaAddress


# =============================================================================
# Constants
# =============================================================================

SCHEME_PREFIX = "st"

META_ADDRESS_SIZE = 2 * COMPRESSED_POINT_SIZE  # 66 bytes


# =============================================================================
# Meta-Address
# =============================================================================


@dataclass(frozen=True)
class MetaAddress:
    """
    A recipient's stealth meta-address.

    Attributes:
        spending_public_key: 33-byte compressed spending key
        viewing_public_key: 33-byte compressed viewing key
    """
    spending_public_key: bytes
    viewing_public_key: bytes

    def __post_init__(self):
        """Both halves must be valid curve points."""
        for name, key in (
            ("spending_public_key", self.spending_public_key),
            ("viewing_public_key", self.viewing_public_key),
        ):
            try:
                decompress_point(key)
            except InvalidPoint as e:
                raise MalformedMetaAddress(f"{name}: {e}") from e

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        """66 bytes: spending || viewing."""
        return self.spending_public_key + self.viewing_public_key

    @classmethod
    def from_bytes(cls, data: bytes) -> "MetaAddress":
        """
        Parse the 66-byte form.

        Raises:
            MalformedMetaAddress: wrong length or invalid point
        """
        if len(data) != META_ADDRESS_SIZE:
            raise MalformedMetaAddress(
                f"Meta-address must be {META_ADDRESS_SIZE} bytes, got {len(data)}"
            )
        return cls(
            spending_public_key=bytes(data[:COMPRESSED_POINT_SIZE]),
            viewing_public_key=bytes(data[COMPRESSED_POINT_SIZE:]),
        )

    def encode(self, chain: str = DEFAULT_CHAIN) -> str:
        return encode(self, chain)

    @classmethod
    def decode(cls, text: str, chain: str = DEFAULT_CHAIN) -> "MetaAddress":
        return decode(text, chain)

    def display(self, chain: str = DEFAULT_CHAIN) -> str:
        """Colon-separated debug form. Not canonical."""
        return (
            f"{SCHEME_PREFIX}:{chain}:"
            f"{bytes_to_hex(self.spending_public_key)}:{bytes_to_hex(self.viewing_public_key)}"
        )

    def __str__(self) -> str:
        return self.encode()


def encode(meta_address: MetaAddress, chain: str = DEFAULT_CHAIN) -> str:
    """Canonical wire form: st:<chain>:0x<spending><viewing>."""
    return f"{SCHEME_PREFIX}:{chain}:0x{meta_address.to_bytes().hex()}"


def decode(text: str, chain: str = DEFAULT_CHAIN) -> MetaAddress:
    """
    Parse a meta-address string.

    Accepts the canonical form and the colon-separated display form.

    Raises:
        MalformedMetaAddress: unknown scheme or chain tag, bad hex, wrong
            length, or either key not on the curve. Nothing is returned
            partially decoded.
    """
    if not isinstance(text, str):
        raise MalformedMetaAddress(f"Meta-address must be str, got {type(text).__name__}")

    parts = text.strip().split(":")
    if len(parts) not in (3, 4):
        raise MalformedMetaAddress("Meta-address must look like st:<chain>:0x<keys>")

    scheme, tag = parts[0], parts[1]
    if scheme != SCHEME_PREFIX:
        raise MalformedMetaAddress(f"Unrecognized scheme prefix: {scheme!r}")
    if tag != chain:
        raise MalformedMetaAddress(f"Unrecognized chain tag: {tag!r} (expected {chain!r})")

    if len(parts) == 4:
        # Display form: each key stands alone
        halves = [_strip_hex_prefix(p) for p in parts[2:]]
        if any(len(h) != 2 * COMPRESSED_POINT_SIZE for h in halves):
            raise MalformedMetaAddress(
                f"Each meta-address key must be {2 * COMPRESSED_POINT_SIZE} hex digits"
            )
        payload = "".join(halves)
    else:
        payload = _strip_hex_prefix(parts[2])

    if len(payload) != 2 * META_ADDRESS_SIZE:
        raise MalformedMetaAddress(
            f"Meta-address keys must be {2 * META_ADDRESS_SIZE} hex digits"
        )

    try:
        data = bytes.fromhex(payload)
    except ValueError:
        raise MalformedMetaAddress("Meta-address contains invalid hex") from None

    return MetaAddress.from_bytes(data)


def _strip_hex_prefix(value: str) -> str:
    if value[:2] not in ("0x", "0X"):
        raise MalformedMetaAddress("Meta-address keys must be 0x-prefixed")
    return value[2:]


# =============================================================================
# Recipient Keys
# =============================================================================


@dataclass(frozen=True)
class RecipientKeys:
    """
    The full key set behind a meta-address.

    Owned by the recipient. The spending key controls funds; the viewing
    key only detects payments and may be handed to a scanning service.
    """
    spending: KeyPair
    viewing: KeyPair

    @classmethod
    def generate(cls, rng=None) -> "RecipientKeys":
        return cls(spending=generate_keypair(rng), viewing=generate_keypair(rng))

    @classmethod
    def from_private_keys(cls, spending_private_key: bytes, viewing_private_key: bytes) -> "RecipientKeys":
        return cls(
            spending=KeyPair.from_private_key(spending_private_key),
            viewing=KeyPair.from_private_key(viewing_private_key),
        )

    @property
    def meta_address(self) -> MetaAddress:
        return MetaAddress(
            spending_public_key=self.spending.public_key,
            viewing_public_key=self.viewing.public_key,
        )

    def __repr__(self) -> str:
        return f"RecipientKeys(meta_address={self.meta_address.encode()})"
