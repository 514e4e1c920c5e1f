"""
Stealth Generator - sender side of the stealth address protocol.

Protocol Flow:
-------------
Given a recipient meta-address (P_spend, P_view):

1. Generate ephemeral key pair (r, R = r*G)
2. S = r * P_view                       (ECDH, compressed 33 bytes)
3. h = keccak256(S)                     (raw digest)
4. view_tag = h[0]                      (before any reduction)
5. s = h mod N
6. P_stealth = P_spend + s*G
7. stealth_address = address(P_stealth)
8. Announce (scheme_id=1, stealth_address, R, metadata=view_tag)

The recipient repeats step 2 as S = p_view * R, which is the same point.
Only the holder of p_spend can compute p_spend + s, the private key of
P_stealth. The sender knows s but not p_spend, so once r is dropped the
sender can neither spend nor re-derive anything.

Ephemeral Key Discipline:
------------------------
The ephemeral private key exists only inside generate_stealth_address().
It is not returned, not stored on any object, and not included in the
trace.
"""

from dataclasses import dataclass
from typing import Any, Optional

from stealthkit.core.announcement import Announcement, build_metadata
from stealthkit.core.config import SCHEME_ID_SECP256K1
from stealthkit.core.meta_address import MetaAddress
from stealthkit.core.registry import Announcer, MetaAddressRegistry
from stealthkit.crypto import (
    ZERO_ADDRESS,
    address_from_public_key,
    add_points,
    compress_point,
    ecdh,
    generate_keypair,
    hash_shared_secret,
    multiply_generator,
    scalar_from_digest,
    view_tag_from_digest,
)
from stealthkit.errors import PointAtInfinity
from stealthkit.utils.logger import get_logger

logger = get_logger("generator")


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class GenerationTrace:
    """
    Intermediate values of one generation, for inspection and display.

    Contains secrets shared with the recipient (shared point, digest,
    scalar) but never the ephemeral private key.
    """
    ephemeral_public_key: bytes
    shared_secret: bytes
    hashed_secret: bytes
    view_tag: int
    scalar: int
    stealth_public_key: bytes


@dataclass(frozen=True)
class GeneratedStealthAddress:
    """
    Output of the generator.

    Attributes:
        announcement: Record to publish
        stealth_public_key: 33-byte compressed P_stealth
        trace: Intermediate values, when requested
    """
    announcement: Announcement
    stealth_public_key: bytes
    trace: Optional[GenerationTrace] = None

    @property
    def stealth_address(self) -> str:
        return self.announcement.stealth_address

    @property
    def ephemeral_public_key(self) -> bytes:
        return self.announcement.ephemeral_public_key

    @property
    def view_tag(self) -> int:
        return self.announcement.view_tag


# =============================================================================
# Generation
# =============================================================================


def generate_stealth_address(
    meta_address: MetaAddress,
    caller: str = ZERO_ADDRESS,
    trace: bool = False,
    rng: Optional[Any] = None,
) -> GeneratedStealthAddress:
    """
    Derive a one-time stealth address for a recipient.

    Args:
        meta_address: Recipient's published meta-address
        caller: Sender address recorded in the announcement
        trace: Attach a GenerationTrace to the result
        rng: Seeded randomness source, for reproducible tests only

    Returns:
        GeneratedStealthAddress with the announcement to publish

    Raises:
        InvalidPoint: a meta-address key does not decode
        PointAtInfinity: degenerate sum; call again for a new ephemeral key
    """
    ephemeral = generate_keypair(rng)

    shared_secret = ecdh(ephemeral.private_key, meta_address.viewing_public_key)
    hashed_secret = hash_shared_secret(shared_secret)
    view_tag = view_tag_from_digest(hashed_secret)
    scalar = scalar_from_digest(hashed_secret)

    stealth_public_key = add_points(
        meta_address.spending_public_key,
        compress_point(multiply_generator(scalar)),
    )
    stealth_address = address_from_public_key(stealth_public_key)

    announcement = Announcement(
        scheme_id=SCHEME_ID_SECP256K1,
        stealth_address=stealth_address,
        ephemeral_public_key=ephemeral.public_key,
        metadata=build_metadata(view_tag),
        caller=caller,
    )

    logger.debug(f"Generated stealth address {stealth_address} (view tag {view_tag})")

    generation_trace = None
    if trace:
        generation_trace = GenerationTrace(
            ephemeral_public_key=ephemeral.public_key,
            shared_secret=shared_secret,
            hashed_secret=hashed_secret,
            view_tag=view_tag,
            scalar=scalar,
            stealth_public_key=stealth_public_key,
        )

    return GeneratedStealthAddress(
        announcement=announcement,
        stealth_public_key=stealth_public_key,
        trace=generation_trace,
    )


# =============================================================================
# Sender
# =============================================================================


class StealthSender:
    """
    Sender workflow over the external collaborators.

    Looks up the recipient's meta-address, generates a stealth address,
    and publishes the announcement. Nothing is published if any step
    fails.
    """

    MAX_ATTEMPTS = 3

    def __init__(
        self,
        registry: MetaAddressRegistry,
        announcer: Announcer,
        caller: str = ZERO_ADDRESS,
    ):
        self.registry = registry
        self.announcer = announcer
        self.caller = caller

    def send(self, identifier: str, trace: bool = False) -> GeneratedStealthAddress:
        """
        Generate and announce a stealth address for a registered recipient.

        Raises:
            NotFound: identifier is not registered
            PointAtInfinity: every attempt hit a degenerate sum
        """
        meta_address = self.registry.lookup(identifier)

        result = None
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                result = generate_stealth_address(meta_address, caller=self.caller, trace=trace)
                break
            except PointAtInfinity:
                logger.warning(f"Degenerate stealth point (attempt {attempt}), regenerating")
                if attempt == self.MAX_ATTEMPTS:
                    raise

        self.announcer.announce(result.announcement)
        logger.info(f"Announced stealth payment to '{identifier}' at {result.stealth_address}")
        return result
