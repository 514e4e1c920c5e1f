"""
stealthkit core protocol.

Meta-addresses, announcements, the sender-side generator and the
recipient-side scanner.
"""

from stealthkit.core.config import (
    StealthConfig,
    load_config,
    SCHEME_ID_SECP256K1,
    DEFAULT_CHAIN,
)
from stealthkit.core.meta_address import (
    MetaAddress,
    RecipientKeys,
    encode,
    decode,
)
from stealthkit.core.announcement import Announcement, build_metadata
from stealthkit.core.generator import (
    GeneratedStealthAddress,
    GenerationTrace,
    StealthSender,
    generate_stealth_address,
)
from stealthkit.core.scanner import (
    AnnouncementScanner,
    ScanReport,
    ScanResult,
    ScanStatus,
    ScanTrace,
    StealthKeyPair,
    check_announcement,
    recover,
    scan,
)

__all__ = [
    "StealthConfig",
    "load_config",
    "SCHEME_ID_SECP256K1",
    "DEFAULT_CHAIN",
    "MetaAddress",
    "RecipientKeys",
    "encode",
    "decode",
    "Announcement",
    "build_metadata",
    "GeneratedStealthAddress",
    "GenerationTrace",
    "StealthSender",
    "generate_stealth_address",
    "AnnouncementScanner",
    "ScanReport",
    "ScanResult",
    "ScanStatus",
    "ScanTrace",
    "StealthKeyPair",
    "check_announcement",
    "recover",
    "scan",
]
