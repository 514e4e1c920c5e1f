"""
Cryptographic primitives for stealthkit.

This module provides:
- Keccak-256 hashing (Ethereum-style, not SHA3-256)
- Key generation and key pairs on secp256k1
- Address derivation from public keys
- Shared-secret hashing for view tags and stealth scalars

Design Notes:
-------------
We use secp256k1 with compressed (33-byte) public keys everywhere a key
crosses a boundary. Uncompressed coordinates appear only inside address
derivation, which hashes the 64-byte x || y form.

Keccak-256 is used for two things:
- Hashing the ECDH shared point (view tag + stealth scalar)
- Address derivation (Ethereum compatibility)
"""

import secrets
from dataclasses import dataclass
from typing import Any, Optional

from Crypto.Hash import keccak

from stealthkit.crypto.curve import (
    CURVE_ORDER,
    COMPRESSED_POINT_SIZE,
    INFINITY,
    PRIVATE_KEY_SIZE,
    SECP256K1_ORDER,
    SECP256K1_PRIME,
    Point,
    add_points,
    compress_point,
    decompress_point,
    derive_public_key,
    ecdh,
    is_infinity,
    is_on_curve,
    multiply_generator,
    scalar_add_mod,
    scalar_from_digest,
    scalar_from_private_key,
    scalar_to_bytes,
    uncompressed_public_key,
)


ADDRESS_SIZE = 20
ZERO_ADDRESS = "0x" + "00" * ADDRESS_SIZE


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: shared-secret hashing, address derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def hash_shared_secret(shared_secret: bytes) -> bytes:
    """
    Hash a compressed ECDH point.

    The input must be the 33-byte compressed encoding, prefix included.
    Sender and recipient both call this on the output of ecdh(), so the
    encoding can never drift between the two sides.
    """
    if len(shared_secret) != COMPRESSED_POINT_SIZE:
        raise ValueError(
            f"Shared secret must be a {COMPRESSED_POINT_SIZE}-byte compressed point, "
            f"got {len(shared_secret)} bytes"
        )
    return keccak256(shared_secret)


def view_tag_from_digest(digest: bytes) -> int:
    """First byte of the unreduced shared-secret digest."""
    return digest[0]


# =============================================================================
# Addresses
# =============================================================================


def address_from_public_key(public_key: bytes) -> str:
    """
    Derive an address from a compressed public key.

    Address = last 20 bytes of keccak256(x || y), lowercase hex with 0x prefix.
    """
    digest = keccak256(uncompressed_public_key(public_key))
    return "0x" + digest[-ADDRESS_SIZE:].hex()


def private_key_to_address(private_key: bytes) -> str:
    """Address controlled by a private key."""
    return address_from_public_key(derive_public_key(private_key))


# =============================================================================
# Key Generation
# =============================================================================


@dataclass(frozen=True)
class KeyPair:
    """
    A secp256k1 keypair.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 33-byte compressed public key
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 33 bytes (compressed)

    @classmethod
    def from_private_key(cls, private_key: bytes) -> "KeyPair":
        return cls(private_key=private_key, public_key=derive_public_key(private_key))

    @property
    def private_key_int(self) -> int:
        return int.from_bytes(self.private_key, byteorder="big")

    @property
    def address(self) -> str:
        """Address controlled by this keypair."""
        return address_from_public_key(self.public_key)

    @property
    def private_key_hex(self) -> str:
        """Return private key as hex string."""
        return bytes_to_hex(self.private_key)

    @property
    def public_key_hex(self) -> str:
        """Return public key as hex string."""
        return bytes_to_hex(self.public_key)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key_hex})"


def generate_private_key(rng: Optional[Any] = None) -> bytes:
    """
    Generate a new random private key.

    Draws 32 bytes from the OS CSPRNG and retries until the scalar is in
    [1, order-1]. Out-of-range draws never reach the caller.

    Args:
        rng: Optional seeded source exposing getrandbits(), for
            reproducible tests only

    Returns:
        32-byte private key
    """
    while True:
        if rng is None:
            candidate = secrets.token_bytes(PRIVATE_KEY_SIZE)
        else:
            candidate = rng.getrandbits(8 * PRIVATE_KEY_SIZE).to_bytes(
                PRIVATE_KEY_SIZE, byteorder="big"
            )
        k = int.from_bytes(candidate, byteorder="big")
        if 0 < k < SECP256K1_ORDER:
            return candidate


def generate_keypair(rng: Optional[Any] = None) -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator unless a
    seeded rng is passed.
    """
    return KeyPair.from_private_key(generate_private_key(rng))


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def normalize_address(address: str) -> str:
    """Lowercase an address for comparison."""
    return address.lower()


__all__ = [
    "keccak256",
    "hash_shared_secret",
    "view_tag_from_digest",
    "address_from_public_key",
    "private_key_to_address",
    "KeyPair",
    "generate_private_key",
    "generate_keypair",
    "bytes_to_hex",
    "hex_to_bytes",
    "normalize_address",
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    # curve
    "Point",
    "CURVE_ORDER",
    "SECP256K1_ORDER",
    "SECP256K1_PRIME",
    "PRIVATE_KEY_SIZE",
    "COMPRESSED_POINT_SIZE",
    "INFINITY",
    "add_points",
    "compress_point",
    "decompress_point",
    "derive_public_key",
    "ecdh",
    "is_infinity",
    "is_on_curve",
    "multiply_generator",
    "scalar_add_mod",
    "scalar_from_digest",
    "scalar_from_private_key",
    "scalar_to_bytes",
    "uncompressed_public_key",
]
