"""
Input Validation - boundary checks for untrusted protocol data.

Used where data enters from outside the crypto core:
- CLI arguments
- Announcement records parsed from JSON / event logs
- Registry identifiers

Validators return (is_valid, error_message) and never raise.
"""

import re
from typing import Any, Optional, Tuple

from stealthkit.crypto import (
    ADDRESS_SIZE,
    COMPRESSED_POINT_SIZE,
    PRIVATE_KEY_SIZE,
    SECP256K1_ORDER,
    is_on_curve,
)
from stealthkit.crypto.curve import decompress_point
from stealthkit.errors import InvalidPoint

# =============================================================================
# Constants
# =============================================================================

MAX_METADATA_SIZE = 1024
MAX_IDENTIFIER_LENGTH = 256
MIN_VIEW_TAG = 0
MAX_VIEW_TAG = 255

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_hex_string(
    value: Any,
    name: str,
    expected_bytes: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded
        max_bytes: Maximum byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value[:2] in ("0x", "0X") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    if not _HEX_RE.match(hex_str):
        return False, f"{name} contains invalid hex characters"

    actual_bytes = len(hex_str) // 2
    if expected_bytes is not None and actual_bytes != expected_bytes:
        return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    if max_bytes is not None and actual_bytes > max_bytes:
        return False, f"{name} exceeds max length {max_bytes} bytes, got {actual_bytes}"

    return True, ""


def validate_private_key(private_key: Any, name: str = "private_key") -> Tuple[bool, str]:
    """Validate a 32-byte scalar in [1, N-1]."""
    valid, err = validate_bytes(private_key, name, expected_length=PRIVATE_KEY_SIZE)
    if not valid:
        return valid, err

    k = int.from_bytes(private_key, byteorder="big")
    if not (0 < k < SECP256K1_ORDER):
        return False, f"{name} must be in [1, N-1]"

    return True, ""


def validate_public_key(public_key: Any, name: str = "public_key") -> Tuple[bool, str]:
    """Validate a compressed public key that decodes to a curve point."""
    valid, err = validate_bytes(public_key, name, expected_length=COMPRESSED_POINT_SIZE)
    if not valid:
        return valid, err

    try:
        point = decompress_point(bytes(public_key))
    except InvalidPoint as e:
        return False, f"{name}: {e}"

    if not is_on_curve(point):
        return False, f"{name} is not on secp256k1"

    return True, ""


def validate_address(address: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 0x-prefixed 20-byte hex address."""
    if not isinstance(address, str):
        return False, f"{name} must be str, got {type(address).__name__}"

    if not address.startswith("0x"):
        return False, f"{name} must start with 0x"

    return validate_hex_string(address, name, expected_bytes=ADDRESS_SIZE)


def validate_view_tag(view_tag: Any) -> Tuple[bool, str]:
    """Validate a one-byte view tag."""
    if isinstance(view_tag, bool) or not isinstance(view_tag, int):
        return False, f"view_tag must be int, got {type(view_tag).__name__}"

    if not (MIN_VIEW_TAG <= view_tag <= MAX_VIEW_TAG):
        return False, f"view_tag must be in [{MIN_VIEW_TAG}, {MAX_VIEW_TAG}], got {view_tag}"

    return True, ""


def validate_identifier(identifier: Any) -> Tuple[bool, str]:
    """Validate a registry identifier (name handle or address)."""
    if not isinstance(identifier, str):
        return False, f"identifier must be str, got {type(identifier).__name__}"

    stripped = identifier.strip()
    if not stripped:
        return False, "identifier must not be empty"

    if len(stripped) > MAX_IDENTIFIER_LENGTH:
        return False, f"identifier exceeds max length {MAX_IDENTIFIER_LENGTH}"

    if stripped.lower().startswith("0x"):
        return validate_address(stripped.lower(), "identifier")

    return True, ""


# =============================================================================
# Composite Validators
# =============================================================================


def validate_announcement_data(data: Any) -> Tuple[bool, str]:
    """Validate an announcement dict (JSON / event-log form)."""
    if not isinstance(data, dict):
        return False, "Announcement data must be dict"

    required_fields = ["scheme_id", "stealth_address", "ephemeral_public_key", "metadata"]
    for field in required_fields:
        if field not in data:
            return False, f"Missing required field: {field}"

    scheme_id = data["scheme_id"]
    if isinstance(scheme_id, bool) or not isinstance(scheme_id, int) or scheme_id < 0:
        return False, f"scheme_id must be a non-negative int, got {scheme_id!r}"

    valid, err = validate_address(data["stealth_address"], "stealth_address")
    if not valid:
        return False, err

    # Point validity is checked by the scanner so a bad key surfaces as InvalidPoint
    valid, err = validate_hex_string(
        data["ephemeral_public_key"], "ephemeral_public_key", COMPRESSED_POINT_SIZE
    )
    if not valid:
        return False, err

    valid, err = validate_hex_string(data["metadata"], "metadata", max_bytes=MAX_METADATA_SIZE)
    if not valid:
        return False, err

    if "caller" in data:
        valid, err = validate_address(data["caller"], "caller")
        if not valid:
            return False, err

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_hex_string",
    "validate_private_key",
    "validate_public_key",
    "validate_address",
    "validate_view_tag",
    "validate_identifier",
    "validate_announcement_data",
    "MAX_METADATA_SIZE",
    "MAX_IDENTIFIER_LENGTH",
]
