"""
Tests for input validation helpers.

Validators return (is_valid, error_message) and never raise.
"""

import pytest

from stealthkit.crypto import SECP256K1_ORDER, generate_keypair, scalar_to_bytes
from stealthkit.utils.validation import (
    validate_address,
    validate_announcement_data,
    validate_bytes,
    validate_hex_string,
    validate_identifier,
    validate_private_key,
    validate_public_key,
    validate_view_tag,
)


class TestPrimitiveValidators:
    """Tests for bytes/hex validators."""

    def test_validate_bytes(self):
        assert validate_bytes(b"abc", "x", expected_length=3) == (True, "")
        assert not validate_bytes("abc", "x")[0]
        assert not validate_bytes(b"abc", "x", expected_length=4)[0]
        assert not validate_bytes(b"abcd", "x", max_length=3)[0]

    def test_validate_hex_string(self):
        assert validate_hex_string("0xdead", "x", expected_bytes=2)[0]
        assert validate_hex_string("DEAD", "x")[0]
        assert not validate_hex_string("0xdea", "x")[0]
        assert not validate_hex_string("0xzz", "x")[0]
        assert not validate_hex_string("0x 0", "x")[0]
        assert not validate_hex_string(12, "x")[0]
        assert not validate_hex_string("0x" + "00" * 5, "x", max_bytes=4)[0]


class TestKeyValidators:
    """Tests for key validators."""

    def test_private_key_range(self):
        assert validate_private_key(scalar_to_bytes(1))[0]
        assert not validate_private_key(bytes(32))[0]
        assert not validate_private_key(scalar_to_bytes(SECP256K1_ORDER))[0]
        assert not validate_private_key(b"\x01" * 31)[0]

    def test_public_key(self):
        assert validate_public_key(generate_keypair().public_key)[0]
        valid, err = validate_public_key(b"\x04" + bytes(32))
        assert not valid
        assert "public_key" in err


class TestProtocolValidators:
    """Tests for addresses, view tags, identifiers."""

    def test_address(self):
        assert validate_address("0x" + "ab" * 20)[0]
        assert not validate_address("ab" * 20)[0]
        assert not validate_address("0x" + "ab" * 19)[0]
        assert not validate_address(None)[0]

    def test_view_tag(self):
        assert validate_view_tag(0)[0]
        assert validate_view_tag(255)[0]
        assert not validate_view_tag(256)[0]
        assert not validate_view_tag(True)[0]
        assert not validate_view_tag("1")[0]

    def test_identifier(self):
        assert validate_identifier("alice.eth")[0]
        assert validate_identifier("0x" + "AB" * 20)[0]
        assert not validate_identifier("   ")[0]
        assert not validate_identifier("0x1234")[0]
        assert not validate_identifier("a" * 300)[0]
        assert not validate_identifier(42)[0]


class TestAnnouncementData:
    """Tests for the composite announcement validator."""

    @pytest.fixture
    def data(self):
        return {
            "scheme_id": 1,
            "stealth_address": "0x" + "11" * 20,
            "ephemeral_public_key": "0x" + generate_keypair().public_key.hex(),
            "metadata": "0x2a",
        }

    def test_valid(self, data):
        assert validate_announcement_data(data) == (True, "")

    def test_negative_scheme(self, data):
        data["scheme_id"] = -1
        assert not validate_announcement_data(data)[0]

    def test_bool_scheme(self, data):
        data["scheme_id"] = True
        assert not validate_announcement_data(data)[0]

    def test_bad_caller(self, data):
        data["caller"] = "nobody"
        valid, err = validate_announcement_data(data)
        assert not valid
        assert "caller" in err

    def test_oversized_metadata(self, data):
        data["metadata"] = "0x" + "00" * 2048
        assert not validate_announcement_data(data)[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
