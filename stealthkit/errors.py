"""
Error taxonomy for stealthkit.

Every failure the protocol can surface derives from StealthError. Each
class also derives from the nearest builtin so callers that only know
about ValueError / LookupError keep working.

Routine outcomes are NOT errors:
- a view-tag mismatch during scanning
- an announcement carrying a foreign scheme id
Those are reported through the scanner's return values instead.
"""


class StealthError(Exception):
    """Base class for all stealthkit failures."""


class InvalidRange(StealthError, ValueError):
    """A scalar is outside [1, N-1]."""


class InvalidPoint(StealthError, ValueError):
    """Bytes do not decode to a point on secp256k1."""


class PointAtInfinity(StealthError, ArithmeticError):
    """
    A curve operation produced the identity element.

    Generation should retry with a fresh ephemeral key; scanning should
    reject the announcement.
    """


class MalformedMetaAddress(StealthError, ValueError):
    """Meta-address text or bytes are not in the wire format."""


class NotFound(StealthError, LookupError):
    """Registry has no meta-address for the identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"No meta-address registered for '{identifier}'")
        self.identifier = identifier


class RecoveryMismatch(StealthError):
    """
    View tag matched but the recovered key does not control the
    announced address.

    Signals a corrupted or adversarial announcement, or a sender using a
    different shared-secret encoding.
    """

    def __init__(self, expected_address: str, derived_address: str):
        super().__init__(
            f"View tag matched but derived address {derived_address} "
            f"!= announced {expected_address}"
        )
        self.expected_address = expected_address
        self.derived_address = derived_address
