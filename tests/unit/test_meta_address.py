"""
Tests for stealth meta-addresses.

Tests cover:
1. Canonical encoding
2. Decoding and round-trips
3. Malformed input rejection
4. Recipient key sets
"""

import pytest

from stealthkit.core.meta_address import (
    META_ADDRESS_SIZE,
    MetaAddress,
    RecipientKeys,
    decode,
    encode,
)
from stealthkit.crypto import generate_keypair
from stealthkit.errors import MalformedMetaAddress


@pytest.fixture
def recipient():
    return RecipientKeys.generate()


@pytest.fixture
def meta(recipient):
    return recipient.meta_address


class TestEncoding:
    """Tests for the canonical wire form."""

    def test_canonical_format(self, meta):
        """st:eth:0x + 132 hex digits, no separator."""
        text = encode(meta)
        assert text.startswith("st:eth:0x")
        payload = text[len("st:eth:0x"):]
        assert len(payload) == 2 * META_ADDRESS_SIZE
        assert ":" not in payload
        assert payload == payload.lower()

    def test_key_order(self, meta):
        """Spending key first, viewing key second."""
        payload = encode(meta)[len("st:eth:0x"):]
        assert payload[:66] == meta.spending_public_key.hex()
        assert payload[66:] == meta.viewing_public_key.hex()

    def test_method_matches_function(self, meta):
        """MetaAddress.encode() and str() give the canonical form."""
        assert meta.encode() == encode(meta)
        assert str(meta) == encode(meta)

    def test_display_form_is_separated(self, meta):
        """Debug form uses colons and per-key 0x prefixes."""
        shown = meta.display()
        assert shown == (
            f"st:eth:0x{meta.spending_public_key.hex()}:0x{meta.viewing_public_key.hex()}"
        )
        assert shown != encode(meta)


class TestDecoding:
    """Tests for parsing meta-addresses."""

    def test_roundtrip(self, meta):
        """decode(encode(m)) == m."""
        assert decode(encode(meta)) == meta

    def test_roundtrip_bytes(self, meta):
        """from_bytes(to_bytes(m)) == m."""
        assert MetaAddress.from_bytes(meta.to_bytes()) == meta

    def test_accepts_uppercase_hex(self, meta):
        """Hex digits are case-insensitive."""
        text = "st:eth:0x" + meta.to_bytes().hex().upper()
        assert decode(text) == meta

    def test_accepts_display_form(self, meta):
        """Pasted debug strings decode to the same meta-address."""
        assert decode(meta.display()) == meta

    def test_display_form_rejects_uneven_split(self, meta):
        """Each half of the display form must be one full key."""
        payload = meta.to_bytes().hex()
        with pytest.raises(MalformedMetaAddress):
            decode(f"st:eth:0x{payload[:10]}:0x{payload[10:]}")
        with pytest.raises(MalformedMetaAddress):
            decode(f"st:eth:0x{payload[:68]}:0x{payload[68:]}")

    def test_other_chain(self, meta):
        """A different chain tag round-trips when asked for explicitly."""
        text = meta.encode(chain="gno")
        assert text.startswith("st:gno:0x")
        assert MetaAddress.decode(text, chain="gno") == meta


class TestMalformed:
    """Tests for malformed input rejection."""

    def test_wrong_scheme(self, meta):
        """Scheme prefix must be st."""
        with pytest.raises(MalformedMetaAddress):
            decode(encode(meta).replace("st:", "sx:", 1))

    def test_wrong_chain(self, meta):
        """Chain tag must match."""
        with pytest.raises(MalformedMetaAddress):
            decode(encode(meta).replace(":eth:", ":btc:", 1))

    def test_missing_hex_prefix(self, meta):
        """Keys must carry 0x."""
        with pytest.raises(MalformedMetaAddress):
            decode("st:eth:" + meta.to_bytes().hex())

    def test_wrong_length(self, meta):
        """Truncated and extended payloads are rejected."""
        text = encode(meta)
        with pytest.raises(MalformedMetaAddress):
            decode(text[:-2])
        with pytest.raises(MalformedMetaAddress):
            decode(text + "00")

    def test_invalid_hex(self, meta):
        """Non-hex characters are rejected."""
        text = encode(meta)
        with pytest.raises(MalformedMetaAddress):
            decode(text[:-1] + "z")

    def test_invalid_point(self, meta):
        """A half that is not a curve point is rejected."""
        bad = b"\x05" + bytes(32) + meta.viewing_public_key
        with pytest.raises(MalformedMetaAddress):
            decode("st:eth:0x" + bad.hex())

    def test_garbage(self):
        """Random strings and non-strings are rejected."""
        for text in ("", "st:eth", "hello", "st:eth:0x:0x:0x"):
            with pytest.raises(MalformedMetaAddress):
                decode(text)
        with pytest.raises(MalformedMetaAddress):
            decode(None)

    def test_is_value_error(self):
        """MalformedMetaAddress is a ValueError."""
        with pytest.raises(ValueError):
            decode("st:eth:0x00")

    def test_constructor_validates(self):
        """MetaAddress refuses invalid keys directly."""
        good = generate_keypair().public_key
        with pytest.raises(MalformedMetaAddress):
            MetaAddress(good, b"\x02" + b"\xff" * 32)


class TestRecipientKeys:
    """Tests for the recipient's key set."""

    def test_meta_address_uses_public_halves(self, recipient):
        """Meta-address = (spending pub, viewing pub)."""
        meta = recipient.meta_address
        assert meta.spending_public_key == recipient.spending.public_key
        assert meta.viewing_public_key == recipient.viewing.public_key

    def test_keys_are_distinct(self, recipient):
        """Spending and viewing keys are independent."""
        assert recipient.spending.private_key != recipient.viewing.private_key

    def test_from_private_keys(self, recipient):
        """Rebuilding from private keys gives the same meta-address."""
        rebuilt = RecipientKeys.from_private_keys(
            recipient.spending.private_key, recipient.viewing.private_key
        )
        assert rebuilt.meta_address == recipient.meta_address

    def test_repr_hides_private_keys(self, recipient):
        """repr shows only the meta-address."""
        text = repr(recipient)
        assert recipient.spending.private_key.hex() not in text
        assert recipient.viewing.private_key.hex() not in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
