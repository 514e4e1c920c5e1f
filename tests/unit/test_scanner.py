"""
Tests for the recipient-side Announcement Scanner.

Tests cover:
1. Recovery of own announcements
2. View-tag filtering of foreign announcements
3. Mismatch and invalid-announcement reporting
4. Batch scans (ordering, workers, strict mode)
5. AnnouncementScanner with config and announcer
"""

import logging
import random

import pytest
from py_ecc.secp256k1 import secp256k1

from stealthkit.core.announcement import Announcement, build_metadata
from stealthkit.core.config import StealthConfig
from stealthkit.core.generator import generate_stealth_address
from stealthkit.core.meta_address import RecipientKeys
from stealthkit.core.registry import InMemoryAnnouncer
from stealthkit.core.scanner import (
    AnnouncementScanner,
    ScanStatus,
    check_announcement,
    recover,
    scan,
)
from stealthkit.crypto import (
    CURVE_ORDER,
    compress_point,
    decompress_point,
    derive_public_key,
    ecdh,
    generate_keypair,
    hash_shared_secret,
    private_key_to_address,
    scalar_to_bytes,
)
from stealthkit.errors import InvalidPoint, RecoveryMismatch


@pytest.fixture
def recipient():
    return RecipientKeys.generate()


@pytest.fixture
def stranger():
    return RecipientKeys.generate()


def _tag_for(keys: RecipientKeys, ephemeral_public_key: bytes) -> int:
    return hash_shared_secret(ecdh(keys.viewing.private_key, ephemeral_public_key))[0]


def _foreign_announcement(owner: RecipientKeys, scanner_keys: RecipientKeys) -> Announcement:
    """Announcement to owner whose view tag does not collide for scanner_keys."""
    while True:
        a = generate_stealth_address(owner.meta_address).announcement
        if _tag_for(scanner_keys, a.ephemeral_public_key) != a.view_tag:
            return a


class TestRecovery:
    """Tests for recovering own announcements."""

    def test_recovers_own_announcement(self, recipient):
        """Scanner recovers the key for a self-addressed announcement."""
        sent = generate_stealth_address(recipient.meta_address)
        result = check_announcement(sent.announcement, recipient)

        assert result.status is ScanStatus.MATCH
        assert result.error is None
        assert result.stealth_key.stealth_address == sent.stealth_address

    def test_recovered_key_controls_address(self, recipient):
        """priv -> pub equals the sender's stealth public key."""
        sent = generate_stealth_address(recipient.meta_address)
        key = recover(sent.announcement, recipient)

        assert derive_public_key(key.stealth_private_key) == sent.stealth_public_key
        assert key.stealth_public_key == sent.stealth_public_key
        assert private_key_to_address(key.stealth_private_key) == sent.stealth_address

    def test_view_tag_always_matches_for_owner(self, recipient):
        """Self-generated announcements always pass the tag filter."""
        for _ in range(5):
            sent = generate_stealth_address(recipient.meta_address)
            assert _tag_for(recipient, sent.ephemeral_public_key) == sent.view_tag

    def test_checksummed_address_still_matches(self, recipient):
        """Announced addresses are compared case-insensitively."""
        sent = generate_stealth_address(recipient.meta_address)
        data = sent.announcement.to_dict()
        data["stealth_address"] = data["stealth_address"].upper().replace("0X", "0x")
        result = check_announcement(Announcement.from_dict(data), recipient)
        assert result.is_match

    def test_scan_trace(self, recipient):
        """Scan trace mirrors the generation trace."""
        sent = generate_stealth_address(recipient.meta_address, trace=True)
        result = check_announcement(sent.announcement, recipient, trace=True)

        assert result.trace.shared_secret == sent.trace.shared_secret
        assert result.trace.hashed_secret == sent.trace.hashed_secret
        assert result.trace.tag_matched
        assert result.trace.derived_address == sent.stealth_address


class TestFiltering:
    """Tests for the view-tag fast path."""

    def test_foreign_announcement_is_no_match(self, recipient, stranger):
        """Non-colliding foreign announcements are routine non-matches."""
        a = _foreign_announcement(stranger, recipient)
        result = check_announcement(a, recipient, trace=True)

        assert result.status is ScanStatus.NO_MATCH
        assert result.error is None
        assert result.stealth_key is None
        assert not result.is_failure
        assert not result.trace.tag_matched
        assert result.trace.derived_address is None

    def test_recover_returns_none_for_non_match(self, recipient, stranger):
        """recover() returns None rather than raising for a non-match."""
        assert recover(_foreign_announcement(stranger, recipient), recipient) is None

    def test_no_match_skips_key_derivation(self, recipient, stranger, monkeypatch):
        """Tag mismatch stops before any point multiplication for the stealth key."""
        import stealthkit.core.scanner as scanner_module

        def boom(*args, **kwargs):
            raise AssertionError("derive_public_key called on a tag mismatch")

        a = _foreign_announcement(stranger, recipient)
        monkeypatch.setattr(scanner_module, "derive_public_key", boom)
        assert check_announcement(a, recipient).status is ScanStatus.NO_MATCH

    def test_wrong_scheme_ignored(self, recipient):
        """Other scheme ids are skipped without processing."""
        sent = generate_stealth_address(recipient.meta_address)
        a = sent.announcement
        other = Announcement(2, a.stealth_address, a.ephemeral_public_key, a.metadata)

        result = check_announcement(other, recipient)
        assert result.status is ScanStatus.WRONG_SCHEME
        assert result.error is None
        assert recover(other, recipient) is None

    def test_unrelated_keys_never_recover(self, recipient, stranger):
        """Stranger's scan never yields a key for recipient's announcements."""
        for _ in range(20):
            a = generate_stealth_address(recipient.meta_address).announcement
            result = check_announcement(a, stranger)
            assert result.status in (ScanStatus.NO_MATCH, ScanStatus.MISMATCH)
            assert result.stealth_key is None


class TestFailures:
    """Tests for mismatch and invalid announcements."""

    def test_forced_tag_collision_is_mismatch(self, recipient, stranger, caplog):
        """A colliding tag on someone else's announcement is a RecoveryMismatch."""
        sent = generate_stealth_address(recipient.meta_address)
        a = sent.announcement
        forged = Announcement(
            scheme_id=1,
            stealth_address=a.stealth_address,
            ephemeral_public_key=a.ephemeral_public_key,
            metadata=build_metadata(_tag_for(stranger, a.ephemeral_public_key)),
        )

        with caplog.at_level(logging.WARNING, logger="stealthkit.scanner"):
            result = check_announcement(forged, stranger)

        assert result.status is ScanStatus.MISMATCH
        assert result.is_failure
        assert result.stealth_key is None
        assert isinstance(result.error, RecoveryMismatch)
        assert result.error.expected_address == a.stealth_address
        assert "verification failed" in caplog.text

        with pytest.raises(RecoveryMismatch):
            recover(forged, stranger)

    def test_corrupted_address_is_mismatch(self, recipient):
        """Right tag, wrong address: the true recipient sees a mismatch."""
        a = generate_stealth_address(recipient.meta_address).announcement
        corrupted = Announcement(
            1, generate_keypair().address, a.ephemeral_public_key, a.metadata
        )
        result = check_announcement(corrupted, recipient)
        assert result.status is ScanStatus.MISMATCH
        assert isinstance(result.error, RecoveryMismatch)

    def test_invalid_ephemeral_key(self, recipient):
        """Undecodable ephemeral keys are INVALID with InvalidPoint."""
        bad = Announcement(1, generate_keypair().address, b"\x02" + b"\xff" * 32, b"\x00")
        result = check_announcement(bad, recipient)
        assert result.status is ScanStatus.INVALID
        assert isinstance(result.error, InvalidPoint)

        with pytest.raises(InvalidPoint):
            recover(bad, recipient)

    def test_empty_metadata(self, recipient):
        """Announcements without a view tag are INVALID."""
        a = generate_stealth_address(recipient.meta_address).announcement
        bad = Announcement(1, a.stealth_address, a.ephemeral_public_key, b"")
        result = check_announcement(bad, recipient)
        assert result.status is ScanStatus.INVALID
        assert isinstance(result.error, ValueError)


class TestBatchScan:
    """Tests for scanning many announcements."""

    @pytest.fixture
    def log(self, recipient, stranger):
        """Own announcements at indices 1 and 4, foreign elsewhere."""
        own = [generate_stealth_address(recipient.meta_address) for _ in range(2)]
        foreign = [_foreign_announcement(stranger, recipient) for _ in range(4)]
        announcements = [
            foreign[0],
            own[0].announcement,
            foreign[1],
            foreign[2],
            own[1].announcement,
            foreign[3],
        ]
        return announcements, [o.stealth_address for o in own]

    def test_recovers_in_order(self, recipient, log):
        """Recovered keys follow input order."""
        announcements, expected = log
        report = scan(announcements, recipient)

        assert report.scanned == 6
        assert [k.stealth_address for k in report.recovered] == expected
        assert report.failures == []
        assert report.tag_matches == 2

    def test_results_align_with_input(self, recipient, log):
        """results[i] describes announcements[i]."""
        announcements, _ = log
        report = scan(announcements, recipient)
        statuses = [r.status for r in report.results]
        assert statuses == [
            ScanStatus.NO_MATCH,
            ScanStatus.MATCH,
            ScanStatus.NO_MATCH,
            ScanStatus.NO_MATCH,
            ScanStatus.MATCH,
            ScanStatus.NO_MATCH,
        ]

    def test_parallel_matches_sequential(self, recipient, log):
        """Worker threads do not change results or order."""
        announcements, _ = log
        sequential = scan(announcements, recipient, workers=1)
        parallel = scan(announcements, recipient, workers=4)
        assert parallel.recovered == sequential.recovered
        assert [r.status for r in parallel.results] == [r.status for r in sequential.results]

    def test_generator_input(self, recipient, log):
        """Any iterable is accepted."""
        announcements, expected = log
        report = scan(iter(announcements), recipient)
        assert [k.stealth_address for k in report.recovered] == expected

    def test_failures_collected(self, recipient, log):
        """Bad announcements are reported with their index and do not stop the scan."""
        announcements, expected = log
        bad = Announcement(1, generate_keypair().address, b"\x02" + b"\xff" * 32, b"\x00")
        report = scan([bad] + announcements, recipient)

        assert len(report.failures) == 1
        index, result = report.failures[0]
        assert index == 0
        assert isinstance(result.error, InvalidPoint)
        assert [k.stealth_address for k in report.recovered] == expected

    def test_strict_raises(self, recipient, log):
        """strict=True raises the first failure."""
        announcements, _ = log
        bad = Announcement(1, generate_keypair().address, b"\x02" + b"\xff" * 32, b"\x00")
        with pytest.raises(InvalidPoint):
            scan(announcements + [bad], recipient, strict=True)

    def test_skipped_schemes_counted(self, recipient, log):
        """Foreign schemes are counted as skipped, not failures."""
        announcements, _ = log
        a = announcements[1]
        other = Announcement(7, a.stealth_address, a.ephemeral_public_key, a.metadata)
        report = scan([other], recipient)
        assert report.skipped == 1
        assert report.failures == []
        assert report.recovered == []

    def test_empty_scan(self, recipient):
        """Empty input gives an empty report."""
        report = scan([], recipient)
        assert report.stats() == {
            "scanned": 0,
            "recovered": 0,
            "tag_matches": 0,
            "failures": 0,
            "skipped": 0,
        }

    def test_invalid_workers(self, recipient):
        """workers must be positive."""
        with pytest.raises(ValueError):
            scan([], recipient, workers=0)


class TestAnnouncementScanner:
    """Tests for the configured scanner class."""

    def test_uses_config(self, recipient):
        """collect_trace in config attaches traces."""
        sent = generate_stealth_address(recipient.meta_address)
        scanner = AnnouncementScanner(recipient, StealthConfig(collect_trace=True))
        result = scanner.check(sent.announcement)
        assert result.is_match
        assert result.trace is not None

    def test_strict_config(self, recipient):
        """strict_scan in config raises failures."""
        bad = Announcement(1, generate_keypair().address, b"\x02" + b"\xff" * 32, b"\x00")
        scanner = AnnouncementScanner(recipient, StealthConfig(strict_scan=True))
        with pytest.raises(InvalidPoint):
            scanner.scan([bad])

    def test_scan_announcer_incrementally(self, recipient, stranger):
        """Scanning from an offset only sees newer announcements."""
        announcer = InMemoryAnnouncer()
        first = generate_stealth_address(recipient.meta_address)
        announcer.announce(first.announcement)
        announcer.announce(_foreign_announcement(stranger, recipient))

        scanner = AnnouncementScanner.from_private_keys(
            recipient.spending.private_key, recipient.viewing.private_key
        )
        report = scanner.scan_announcer(announcer)
        assert [k.stealth_address for k in report.recovered] == [first.stealth_address]

        cursor = report.scanned
        second = generate_stealth_address(recipient.meta_address)
        announcer.announce(second.announcement)
        report = scanner.scan_announcer(announcer, start=cursor)
        assert report.scanned == 1
        assert [k.stealth_address for k in report.recovered] == [second.stealth_address]

    def test_rejects_non_keys(self):
        """Scanner requires RecipientKeys."""
        with pytest.raises(TypeError):
            AnnouncementScanner(("a", "b"))


class TestViewTagFalsePositives:
    """Foreign announcements pass the tag filter about 1 time in 256."""

    TRIALS = 10_000

    def test_false_positive_rate(self):
        """Tag hit rate over many viewing keys is close to 1/256."""
        rng = random.Random(2024)
        ephemeral = generate_keypair(rng)
        announced_tag = rng.randrange(256)

        # Viewing keys v0, v0+1, ... give shared points S, S+R, S+2R, ...
        # so each step costs one point addition.
        v0 = rng.randrange(1, CURVE_ORDER - self.TRIALS)
        r_point = decompress_point(ephemeral.public_key)
        shared_point = secp256k1.multiply(r_point, v0)

        hits = 0
        for i in range(self.TRIALS):
            shared_secret = compress_point(shared_point)
            if i % 2500 == 0:
                assert shared_secret == ecdh(scalar_to_bytes(v0 + i), ephemeral.public_key)
            if hash_shared_secret(shared_secret)[0] == announced_tag:
                hits += 1
            shared_point = secp256k1.add(shared_point, r_point)

        # Binomial(10000, 1/256): mean ~39, sd ~6.2
        assert 8 <= hits <= 71


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
