"""
stealthkit CLI - Command Line Interface for stealth address tooling

Main entry point for all CLI commands.
"""

import json
import logging
from pathlib import Path

import click

from stealthkit.utils.logger import setup_logging, get_logger

logger = get_logger("cli")


def _parse_private_key(value: str, name: str) -> bytes:
    """Parse and validate a hex private key argument."""
    from stealthkit.crypto import hex_to_bytes
    from stealthkit.utils.validation import validate_hex_string, validate_private_key

    valid, err = validate_hex_string(value, name, expected_bytes=32)
    if not valid:
        raise click.BadParameter(err, param_hint=name)
    key = hex_to_bytes(value)
    valid, err = validate_private_key(key, name)
    if not valid:
        raise click.BadParameter(err, param_hint=name)
    return key


def _parse_public_key(value: str, name: str) -> bytes:
    """Parse and validate a hex compressed public key argument."""
    from stealthkit.crypto import hex_to_bytes
    from stealthkit.utils.validation import validate_hex_string, validate_public_key

    valid, err = validate_hex_string(value, name, expected_bytes=33)
    if not valid:
        raise click.BadParameter(err, param_hint=name)
    key = hex_to_bytes(value)
    valid, err = validate_public_key(key, name)
    if not valid:
        raise click.BadParameter(err, param_hint=name)
    return key


def _load_announcements(path: Path):
    """Read announcements from a JSON list or {"announcements": [...]}."""
    from stealthkit.core import Announcement

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path}: invalid JSON ({e})")

    if isinstance(data, dict):
        data = data.get("announcements")
    if not isinstance(data, list):
        raise click.ClickException(f"{path}: expected a list of announcements")

    announcements = []
    for i, item in enumerate(data):
        try:
            announcements.append(Announcement.from_dict(item))
        except ValueError as e:
            raise click.ClickException(f"{path}: announcement #{i}: {e}")
    return announcements


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="dotenv file with STEALTHKIT_* settings")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file):
    """Stealth address toolkit (ERC-5564 / ERC-6538)"""
    from stealthkit.core import load_config

    try:
        config = load_config(env_file)
    except ValueError as e:
        raise click.ClickException(str(e))

    level = logging.DEBUG if debug else config.log_level
    setup_logging(level=level, log_dir=config.log_dir, log_to_file=config.log_to_file, force=True)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Key Commands
# =============================================================================

@cli.group()
def keys():
    """Recipient key management commands"""
    pass


@keys.command("generate")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.pass_context
def keys_generate(ctx, as_json):
    """Generate a recipient key set and its meta-address"""
    from stealthkit.core import RecipientKeys

    chain = ctx.obj["config"].chain
    recipient = RecipientKeys.generate()
    meta = recipient.meta_address

    if as_json:
        click.echo(json.dumps({
            "meta_address": meta.encode(chain),
            "spending_private_key": recipient.spending.private_key_hex,
            "viewing_private_key": recipient.viewing.private_key_hex,
            "spending_public_key": recipient.spending.public_key_hex,
            "viewing_public_key": recipient.viewing.public_key_hex,
        }, indent=2))
        return

    click.echo(f"✓ Recipient keys generated")
    click.echo(f"  Meta-address:      {meta.encode(chain)}")
    click.echo(f"  Spending PubKey:   {recipient.spending.public_key_hex}")
    click.echo(f"  Viewing PubKey:    {recipient.viewing.public_key_hex}")
    click.echo(f"  Spending PrivKey:  {recipient.spending.private_key_hex}")
    click.echo(f"  Viewing PrivKey:   {recipient.viewing.private_key_hex}")
    click.echo(f"  ⚠️  Private keys are not stored - keep them safe!")


# =============================================================================
# Meta-Address Commands
# =============================================================================

@cli.group()
def meta():
    """Meta-address encoding commands"""
    pass


@meta.command("encode")
@click.argument("spending_public_key")
@click.argument("viewing_public_key")
@click.pass_context
def meta_encode(ctx, spending_public_key, viewing_public_key):
    """Build a meta-address from two compressed public keys"""
    from stealthkit.core import MetaAddress

    spending = _parse_public_key(spending_public_key, "spending_public_key")
    viewing = _parse_public_key(viewing_public_key, "viewing_public_key")
    click.echo(MetaAddress(spending, viewing).encode(ctx.obj["config"].chain))


@meta.command("decode")
@click.argument("meta_address")
@click.option("--display", is_flag=True, help="Also print the colon-separated debug form")
@click.pass_context
def meta_decode(ctx, meta_address, display):
    """Split a meta-address into its public keys"""
    from stealthkit.core import decode
    from stealthkit.crypto import bytes_to_hex
    from stealthkit.errors import MalformedMetaAddress

    chain = ctx.obj["config"].chain
    try:
        meta = decode(meta_address, chain)
    except MalformedMetaAddress as e:
        raise click.ClickException(f"Malformed meta-address: {e}")

    click.echo(f"Spending PubKey: {bytes_to_hex(meta.spending_public_key)}")
    click.echo(f"Viewing PubKey:  {bytes_to_hex(meta.viewing_public_key)}")
    if display:
        click.echo(f"Display form:    {meta.display(chain)}")


# =============================================================================
# Send / Scan Commands
# =============================================================================

@cli.command("send")
@click.argument("meta_address")
@click.option("--caller", default=None, help="Sender address recorded in the announcement")
@click.option("--trace", is_flag=True, help="Include intermediate values")
@click.pass_context
def send(ctx, meta_address, caller, trace):
    """Generate a stealth address and print its announcement as JSON"""
    from stealthkit.core import decode, generate_stealth_address
    from stealthkit.crypto import ZERO_ADDRESS, bytes_to_hex
    from stealthkit.errors import MalformedMetaAddress, PointAtInfinity
    from stealthkit.utils.validation import validate_address

    if caller is not None:
        valid, err = validate_address(caller, "caller")
        if not valid:
            raise click.BadParameter(err, param_hint="--caller")

    try:
        meta = decode(meta_address, ctx.obj["config"].chain)
    except MalformedMetaAddress as e:
        raise click.ClickException(f"Malformed meta-address: {e}")

    try:
        result = generate_stealth_address(meta, caller=caller or ZERO_ADDRESS, trace=trace)
    except PointAtInfinity as e:
        raise click.ClickException(f"Degenerate stealth point, try again: {e}")

    output = {"announcement": result.announcement.to_dict()}
    output["stealth_public_key"] = bytes_to_hex(result.stealth_public_key)
    if result.trace is not None:
        output["trace"] = {
            "ephemeral_public_key": bytes_to_hex(result.trace.ephemeral_public_key),
            "shared_secret": bytes_to_hex(result.trace.shared_secret),
            "hashed_secret": bytes_to_hex(result.trace.hashed_secret),
            "view_tag": result.trace.view_tag,
            "stealth_public_key": bytes_to_hex(result.trace.stealth_public_key),
        }
    click.echo(json.dumps(output, indent=2))


@cli.command("scan")
@click.argument("announcements_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--spending-key", required=True, help="Spending private key (hex)")
@click.option("--viewing-key", required=True, help="Viewing private key (hex)")
@click.option("--workers", default=None, type=int, help="Worker threads (default from config)")
@click.option("--strict", is_flag=True, help="Fail on the first bad announcement")
@click.pass_context
def scan_cmd(ctx, announcements_file, spending_key, viewing_key, workers, strict):
    """Scan announcements for payments to the given keys"""
    from dataclasses import replace

    from stealthkit.core import AnnouncementScanner, RecipientKeys
    from stealthkit.errors import StealthError

    config = ctx.obj["config"]
    overrides = {}
    if workers is not None:
        overrides["scan_workers"] = workers
    if strict:
        overrides["strict_scan"] = True
    try:
        config = replace(config, **overrides)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--workers")

    recipient = RecipientKeys.from_private_keys(
        _parse_private_key(spending_key, "spending_key"),
        _parse_private_key(viewing_key, "viewing_key"),
    )
    announcements = _load_announcements(announcements_file)

    scanner = AnnouncementScanner(recipient, config)
    try:
        report = scanner.scan(announcements)
    except StealthError as e:
        raise click.ClickException(f"Scan aborted: {type(e).__name__}: {e}")

    click.echo(json.dumps({
        "stats": report.stats(),
        "recovered": [
            {"stealth_address": k.stealth_address, "stealth_private_key": k.private_key_hex}
            for k in report.recovered
        ],
        "failures": [
            {"index": i, "status": r.status.value, "error": f"{type(r.error).__name__}: {r.error}"}
            for i, r in report.failures
        ],
    }, indent=2))


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
def demo():
    """Walk through registration, sending, scanning and recovery"""
    from stealthkit.core import (
        AnnouncementScanner,
        RecipientKeys,
        StealthConfig,
        StealthSender,
    )
    from stealthkit.core.registry import InMemoryAnnouncer, InMemoryRegistry
    from stealthkit.crypto import bytes_to_hex, generate_keypair

    click.echo("=" * 60)
    click.echo("  STEALTH ADDRESS PROTOCOL - DEMO")
    click.echo("=" * 60)
    click.echo()

    # Recipient setup
    click.echo("🔑 Recipient generates spending and viewing keys...")
    recipient = RecipientKeys.generate()
    meta = recipient.meta_address
    click.echo(f"  ✓ Meta-address: {meta.encode()}")
    click.echo(f"  ✓ Display form: {meta.display()}")
    click.echo()

    # Registry: handle and raw address both work
    click.echo("📇 Registering meta-address...")
    registry = InMemoryRegistry()
    raw_address = generate_keypair().address
    registry.register("alice.eth", meta)
    registry.register(raw_address, meta)
    click.echo(f"  ✓ Registered under 'alice.eth'")
    click.echo(f"  ✓ Registered under {raw_address}")
    click.echo()

    # Sender
    click.echo(f"💸 Sender looks up {raw_address} and derives a stealth address...")
    announcer = InMemoryAnnouncer()
    sender = StealthSender(registry, announcer, caller=generate_keypair().address)
    result = sender.send(raw_address, trace=True)
    trace = result.trace
    click.echo(f"  Ephemeral PubKey: {bytes_to_hex(trace.ephemeral_public_key)}")
    click.echo(f"  Shared Secret:    {bytes_to_hex(trace.shared_secret)}")
    click.echo(f"  Hashed Secret:    {bytes_to_hex(trace.hashed_secret)}")
    click.echo(f"  View Tag:         {trace.view_tag}")
    click.echo(f"  Stealth PubKey:   {bytes_to_hex(trace.stealth_public_key)}")
    click.echo(f"  ✓ Stealth address: {result.stealth_address}")
    click.echo()

    # Noise from other senders
    click.echo("📢 Other senders announce payments to unrelated recipients...")
    for _ in range(5):
        other = RecipientKeys.generate().meta_address
        StealthSender(_single_entry_registry(other), announcer).send("someone.eth")
    click.echo(f"  ✓ Announcement log holds {len(announcer)} entries")
    click.echo()

    # Recipient scan
    click.echo("🔍 Recipient scans the announcement log...")
    scanner = AnnouncementScanner(recipient, StealthConfig(collect_trace=True))
    report = scanner.scan_announcer(announcer)
    for index, r in enumerate(report.results):
        tag = f"tag {r.trace.candidate_tag:3d} vs {r.trace.announced_tag:3d}" if r.trace else ""
        click.echo(f"    #{index}: {r.status.value:<12} {tag}")
    click.echo()

    # Verification
    click.echo("✅ Recovered keys:")
    for key in report.recovered:
        click.echo(f"  Address:      {key.stealth_address}")
        click.echo(f"  Private key:  {key.private_key_hex}")
        status = "controls" if key.stealth_address == result.stealth_address else "DOES NOT control"
        click.echo(f"  ✓ Derived key {status} the announced stealth address")
    click.echo()
    click.echo(f"📊 {report.stats()}")


def _single_entry_registry(meta_address):
    from stealthkit.core.registry import InMemoryRegistry

    registry = InMemoryRegistry()
    registry.register("someone.eth", meta_address)
    return registry


if __name__ == "__main__":
    cli()
