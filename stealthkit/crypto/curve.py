"""
Scalar and point primitives on secp256k1.

Group arithmetic comes from py_ecc; this module adds what the stealth
protocol needs on top of it:

- SEC1 compressed point encoding/decoding (33 bytes, 0x02/0x03 prefix)
- on-curve validation of untrusted public keys
- explicit detection of the point at infinity
- scalar reduction modulo the curve order

Encoding Contract:
-----------------
Scalars are 32-byte big-endian, left-zero-padded.
Points are 33-byte compressed: parity prefix || 32-byte x.
ECDH output is the compressed encoding of priv * Pub, prefix included.
Both sides of the protocol hash exactly these 33 bytes.

py_ecc represents the identity element as the affine pair (0, 0).
No point on secp256k1 has y == 0, so that pair is unambiguous.
"""

from typing import Tuple

from py_ecc.secp256k1 import secp256k1

from stealthkit.errors import InvalidPoint, InvalidRange, PointAtInfinity


Point = Tuple[int, int]


# =============================================================================
# Constants
# =============================================================================

# secp256k1 group order
SECP256K1_ORDER = secp256k1.N
CURVE_ORDER = SECP256K1_ORDER

# Field prime
SECP256K1_PRIME = secp256k1.P

PRIVATE_KEY_SIZE = 32
COMPRESSED_POINT_SIZE = 33
UNCOMPRESSED_POINT_SIZE = 64

INFINITY: Point = (0, 0)

_PREFIX_EVEN = 0x02
_PREFIX_ODD = 0x03


# =============================================================================
# Points
# =============================================================================


def is_infinity(point: Point) -> bool:
    return point[0] == 0 and point[1] == 0


def is_on_curve(point: Point) -> bool:
    """Check y^2 == x^3 + 7 (mod p) for an affine point."""
    x, y = point
    if not (0 <= x < SECP256K1_PRIME and 0 <= y < SECP256K1_PRIME):
        return False
    if is_infinity(point):
        return False
    return (y * y - x * x * x - secp256k1.B) % SECP256K1_PRIME == 0


def compress_point(point: Point) -> bytes:
    """
    Encode an affine point as 33 compressed bytes.

    Raises:
        PointAtInfinity: the identity element has no compressed form
    """
    if is_infinity(point):
        raise PointAtInfinity("Cannot encode the point at infinity")
    x, y = point
    prefix = _PREFIX_ODD if y & 1 else _PREFIX_EVEN
    return bytes([prefix]) + x.to_bytes(32, byteorder="big")


def decompress_point(data: bytes) -> Point:
    """
    Decode 33 compressed bytes into an affine point.

    Raises:
        InvalidPoint: wrong length, bad prefix, x out of range, or no
            curve point with that x coordinate
    """
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidPoint(f"Public key must be bytes, got {type(data).__name__}")
    if len(data) != COMPRESSED_POINT_SIZE:
        raise InvalidPoint(
            f"Compressed public key must be {COMPRESSED_POINT_SIZE} bytes, got {len(data)}"
        )

    prefix = data[0]
    if prefix not in (_PREFIX_EVEN, _PREFIX_ODD):
        raise InvalidPoint(f"Invalid compressed point prefix: 0x{prefix:02x}")

    x = int.from_bytes(data[1:], byteorder="big")
    if x >= SECP256K1_PRIME:
        raise InvalidPoint("x coordinate exceeds field prime")

    # p = 3 mod 4, so a square root is a^((p+1)/4)
    y_squared = (pow(x, 3, SECP256K1_PRIME) + secp256k1.B) % SECP256K1_PRIME
    y = pow(y_squared, (SECP256K1_PRIME + 1) // 4, SECP256K1_PRIME)
    if (y * y) % SECP256K1_PRIME != y_squared:
        raise InvalidPoint("x coordinate is not on secp256k1")

    if (y & 1) != (prefix & 1):
        y = SECP256K1_PRIME - y

    return (x, y)


def uncompressed_public_key(public_key: bytes) -> bytes:
    """
    Expand a compressed public key to 64 bytes (x || y, no 0x04 prefix).

    This is the form hashed for address derivation.
    """
    x, y = decompress_point(public_key)
    return x.to_bytes(32, byteorder="big") + y.to_bytes(32, byteorder="big")


# =============================================================================
# Scalars
# =============================================================================


def scalar_to_bytes(scalar: int) -> bytes:
    """Encode a scalar as 32 big-endian bytes."""
    return scalar.to_bytes(PRIVATE_KEY_SIZE, byteorder="big")


def scalar_from_private_key(private_key: bytes) -> int:
    """
    Parse and range-check a 32-byte private key.

    Raises:
        ValueError: not 32 bytes
        InvalidRange: scalar is 0 or >= curve order
    """
    if len(private_key) != PRIVATE_KEY_SIZE:
        raise ValueError(
            f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(private_key)}"
        )
    k = int.from_bytes(private_key, byteorder="big")
    if not (0 < k < SECP256K1_ORDER):
        raise InvalidRange("Private key scalar must be in [1, N-1]")
    return k


def scalar_from_digest(digest: bytes) -> int:
    """Interpret a digest as a big-endian integer reduced mod N."""
    return int.from_bytes(digest, byteorder="big") % SECP256K1_ORDER


def scalar_add_mod(a: int, b: int) -> int:
    """(a + b) mod N."""
    return (a + b) % SECP256K1_ORDER


# =============================================================================
# Group Operations
# =============================================================================


def multiply_generator(scalar: int) -> Point:
    """
    Compute scalar * G.

    Raises:
        PointAtInfinity: scalar is a multiple of the curve order
    """
    if scalar % SECP256K1_ORDER == 0:
        raise PointAtInfinity("Scalar is zero modulo the curve order")
    return secp256k1.multiply(secp256k1.G, scalar)


def derive_public_key(private_key: bytes) -> bytes:
    """Compressed public key k*G for a 32-byte private key."""
    k = scalar_from_private_key(private_key)
    return compress_point(secp256k1.multiply(secp256k1.G, k))


def ecdh(private_key: bytes, public_key: bytes) -> bytes:
    """
    Diffie-Hellman shared point priv * Pub, compressed (33 bytes).

    Raises:
        InvalidPoint: public_key does not decode to a curve point
    """
    k = scalar_from_private_key(private_key)
    point = decompress_point(public_key)
    return compress_point(secp256k1.multiply(point, k))


def add_points(public_key_a: bytes, public_key_b: bytes) -> bytes:
    """
    Add two compressed points.

    Raises:
        InvalidPoint: either input fails to decode
        PointAtInfinity: the inputs are inverses of each other
    """
    a = decompress_point(public_key_a)
    b = decompress_point(public_key_b)
    total = secp256k1.add(a, b)
    if is_infinity(total):
        raise PointAtInfinity("Point addition produced the identity element")
    return compress_point(total)
