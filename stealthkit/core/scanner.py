"""
Announcement Scanner - recipient side of the stealth address protocol.

Conceptual Background:
---------------------
A recipient cannot know which announcements are addressed to them without
trying each one. For every announcement (scheme 1):

1. S = p_view * R                       (same point the sender computed)
2. h = keccak256(S); tag = h[0]
3. tag != announced tag  ->  NO_MATCH   (255/256 of foreign announcements)
4. p_stealth = (p_spend + h mod N) mod N
5. address(p_stealth * G) == announced address  ->  MATCH
   otherwise                                    ->  MISMATCH

Step 3 is the fast path: one ECDH and one hash, no further curve work.
Step 5 always runs after a tag match, which separates true recoveries
from the 1/256 chance collisions on other people's announcements.

Result Shape:
------------
Routine outcomes (NO_MATCH, WRONG_SCHEME) carry no error.
Failures (MISMATCH, INVALID) carry a typed error object; recover() and
strict scans raise it, batch scans collect it.

Each announcement is checked in isolation, so batches can be spread over
worker threads. Results are always reported in input order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Iterable, List, Optional, Tuple

from stealthkit.core.announcement import Announcement
from stealthkit.core.config import StealthConfig
from stealthkit.core.meta_address import RecipientKeys
from stealthkit.core.registry import Announcer
from stealthkit.crypto import (
    bytes_to_hex,
    derive_public_key,
    address_from_public_key,
    ecdh,
    hash_shared_secret,
    scalar_add_mod,
    scalar_from_digest,
    scalar_to_bytes,
    view_tag_from_digest,
)
from stealthkit.errors import (
    InvalidPoint,
    PointAtInfinity,
    RecoveryMismatch,
)
from stealthkit.utils.logger import get_logger

logger = get_logger("scanner")


# =============================================================================
# Results
# =============================================================================


class ScanStatus(Enum):
    """Outcome of checking one announcement."""
    MATCH = "match"                # Key recovered and verified
    NO_MATCH = "no_match"          # View tag differs (routine)
    WRONG_SCHEME = "wrong_scheme"  # Not scheme 1 (routine, ignored)
    MISMATCH = "mismatch"          # Tag matched, address did not
    INVALID = "invalid"            # Announcement could not be processed


@dataclass(frozen=True)
class StealthKeyPair:
    """
    A recovered one-time key.

    Attributes:
        stealth_address: Address the key controls
        stealth_private_key: 32-byte private key
        stealth_public_key: 33-byte compressed public key
    """
    stealth_address: str
    stealth_private_key: bytes
    stealth_public_key: bytes

    @property
    def private_key_hex(self) -> str:
        return bytes_to_hex(self.stealth_private_key)

    def __repr__(self) -> str:
        return f"StealthKeyPair(stealth_address={self.stealth_address})"


@dataclass(frozen=True)
class ScanTrace:
    """Intermediate values of one check, for inspection and display."""
    shared_secret: bytes
    hashed_secret: bytes
    candidate_tag: int
    announced_tag: int
    derived_address: Optional[str] = None

    @property
    def tag_matched(self) -> bool:
        return self.candidate_tag == self.announced_tag


@dataclass(frozen=True)
class ScanResult:
    """Outcome of checking one announcement."""
    status: ScanStatus
    stealth_key: Optional[StealthKeyPair] = None
    error: Optional[Exception] = None
    trace: Optional[ScanTrace] = None

    @property
    def is_match(self) -> bool:
        return self.status is ScanStatus.MATCH

    @property
    def is_failure(self) -> bool:
        return self.status in (ScanStatus.MISMATCH, ScanStatus.INVALID)


@dataclass
class ScanReport:
    """
    Outcome of a batch scan.

    Attributes:
        results: One ScanResult per input announcement, in input order
        recovered: Keys from MATCH results, in input order
        failures: (index, result) for MISMATCH / INVALID results
    """
    results: List[ScanResult] = field(default_factory=list)
    recovered: List[StealthKeyPair] = field(default_factory=list)
    failures: List[Tuple[int, ScanResult]] = field(default_factory=list)

    @property
    def scanned(self) -> int:
        return len(self.results)

    @property
    def tag_matches(self) -> int:
        return sum(
            1 for r in self.results
            if r.status in (ScanStatus.MATCH, ScanStatus.MISMATCH)
        )

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status is ScanStatus.WRONG_SCHEME)

    def stats(self) -> dict:
        return {
            "scanned": self.scanned,
            "recovered": len(self.recovered),
            "tag_matches": self.tag_matches,
            "failures": len(self.failures),
            "skipped": self.skipped,
        }


# =============================================================================
# Single Announcement
# =============================================================================


def check_announcement(
    announcement: Announcement,
    keys: RecipientKeys,
    trace: bool = False,
) -> ScanResult:
    """
    Check whether an announcement pays the recipient.

    Never raises for announcement-level problems; see ScanResult.error.

    Args:
        announcement: Announcement to check
        keys: Recipient's spending and viewing key pairs
        trace: Attach a ScanTrace to the result

    Returns:
        ScanResult
    """
    if not announcement.is_supported_scheme:
        return ScanResult(status=ScanStatus.WRONG_SCHEME)

    try:
        announced_tag = announcement.view_tag
    except ValueError as e:
        return ScanResult(status=ScanStatus.INVALID, error=e)

    try:
        shared_secret = ecdh(keys.viewing.private_key, announcement.ephemeral_public_key)
    except InvalidPoint as e:
        logger.debug(f"Invalid ephemeral key in announcement for {announcement.stealth_address}")
        return ScanResult(status=ScanStatus.INVALID, error=e)

    hashed_secret = hash_shared_secret(shared_secret)
    candidate_tag = view_tag_from_digest(hashed_secret)

    if candidate_tag != announced_tag:
        scan_trace = None
        if trace:
            scan_trace = ScanTrace(shared_secret, hashed_secret, candidate_tag, announced_tag)
        return ScanResult(status=ScanStatus.NO_MATCH, trace=scan_trace)

    scalar = scalar_from_digest(hashed_secret)
    stealth_scalar = scalar_add_mod(keys.spending.private_key_int, scalar)
    if stealth_scalar == 0:
        return ScanResult(
            status=ScanStatus.INVALID,
            error=PointAtInfinity("Stealth private key reduces to zero"),
        )

    stealth_private_key = scalar_to_bytes(stealth_scalar)
    stealth_public_key = derive_public_key(stealth_private_key)
    derived_address = address_from_public_key(stealth_public_key)

    scan_trace = None
    if trace:
        scan_trace = ScanTrace(
            shared_secret, hashed_secret, candidate_tag, announced_tag, derived_address
        )

    if derived_address != announcement.stealth_address:
        logger.warning(
            f"View tag matched but address verification failed for "
            f"{announcement.stealth_address}"
        )
        return ScanResult(
            status=ScanStatus.MISMATCH,
            error=RecoveryMismatch(announcement.stealth_address, derived_address),
            trace=scan_trace,
        )

    return ScanResult(
        status=ScanStatus.MATCH,
        stealth_key=StealthKeyPair(
            stealth_address=derived_address,
            stealth_private_key=stealth_private_key,
            stealth_public_key=stealth_public_key,
        ),
        trace=scan_trace,
    )


def recover(announcement: Announcement, keys: RecipientKeys) -> Optional[StealthKeyPair]:
    """
    Recover the stealth key for an announcement, if it is ours.

    Returns:
        StealthKeyPair on match, None for a routine non-match

    Raises:
        RecoveryMismatch: tag matched but the address did not
        InvalidPoint: ephemeral key does not decode
        PointAtInfinity: degenerate stealth key
    """
    result = check_announcement(announcement, keys)
    if result.error is not None:
        raise result.error
    return result.stealth_key


# =============================================================================
# Batch Scanning
# =============================================================================


def scan(
    announcements: Iterable[Announcement],
    keys: RecipientKeys,
    workers: int = 1,
    strict: bool = False,
    trace: bool = False,
) -> ScanReport:
    """
    Scan a sequence of announcements.

    Args:
        announcements: Announcements in observed order
        keys: Recipient's key pairs
        workers: Threads to spread checks over
        strict: Raise the first failure (in input order) instead of collecting
        trace: Attach traces to every result

    Returns:
        ScanReport with results in input order
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    batch = list(announcements)
    check = partial(check_announcement, keys=keys, trace=trace)

    if workers == 1 or len(batch) <= 1:
        results = [check(a) for a in batch]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(check, batch))

    report = ScanReport(results=results)
    for index, result in enumerate(results):
        if result.is_match:
            report.recovered.append(result.stealth_key)
        elif result.is_failure:
            if strict:
                raise result.error
            report.failures.append((index, result))

    logger.info(
        f"Scanned {report.scanned} announcements: {len(report.recovered)} recovered, "
        f"{len(report.failures)} failures, {report.skipped} skipped"
    )
    return report


class AnnouncementScanner:
    """
    Scanner bound to one recipient's keys and a config.

    Holds no per-scan state; concurrent scans on one instance are safe.
    """

    def __init__(self, keys: RecipientKeys, config: Optional[StealthConfig] = None):
        if not isinstance(keys, RecipientKeys):
            raise TypeError(f"keys must be RecipientKeys, got {type(keys).__name__}")
        self.keys = keys
        self.config = config or StealthConfig()

    @classmethod
    def from_private_keys(
        cls,
        spending_private_key: bytes,
        viewing_private_key: bytes,
        config: Optional[StealthConfig] = None,
    ) -> "AnnouncementScanner":
        return cls(RecipientKeys.from_private_keys(spending_private_key, viewing_private_key), config)

    def check(self, announcement: Announcement) -> ScanResult:
        return check_announcement(announcement, self.keys, trace=self.config.collect_trace)

    def scan(self, announcements: Iterable[Announcement]) -> ScanReport:
        return scan(
            announcements,
            self.keys,
            workers=self.config.scan_workers,
            strict=self.config.strict_scan,
            trace=self.config.collect_trace,
        )

    def scan_announcer(self, announcer: Announcer, start: int = 0) -> ScanReport:
        """
        Scan an announcer's log from index start.

        The caller advances start by report.scanned to continue later.
        """
        return self.scan(announcer.read(start))


__all__ = [
    "ScanStatus",
    "StealthKeyPair",
    "ScanTrace",
    "ScanResult",
    "ScanReport",
    "check_announcement",
    "recover",
    "scan",
    "AnnouncementScanner",
]
