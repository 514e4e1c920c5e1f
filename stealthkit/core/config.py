"""
Runtime configuration for stealthkit.

Defines the protocol constants and the operational knobs of the scanner
and the CLI. The crypto core never reads this module implicitly; callers
pass values in.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ERC-5564 scheme id for secp256k1 with view tags
SCHEME_ID_SECP256K1 = 1

# Chain tag used in the meta-address wire format
DEFAULT_CHAIN = "eth"

ENV_PREFIX = "STEALTHKIT_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StealthConfig:
    """Protocol and runtime parameters"""

    # Protocol
    scheme_id: int = SCHEME_ID_SECP256K1
    chain: str = DEFAULT_CHAIN

    # Scanner
    scan_workers: int = 1  # Threads used by batch scans
    strict_scan: bool = False  # Raise on first failure instead of collecting
    collect_trace: bool = False  # Return intermediate values alongside results

    # Logging
    log_level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_to_file: bool = False

    def __post_init__(self):
        """Validate parameters"""
        if self.scheme_id != SCHEME_ID_SECP256K1:
            raise ValueError(f"Unsupported scheme id: {self.scheme_id}")
        if self.scan_workers < 1:
            raise ValueError(f"scan_workers must be >= 1, got {self.scan_workers}")
        if not self.chain or ":" in self.chain:
            raise ValueError(f"Invalid chain tag: {self.chain!r}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        self.log_level = self.log_level.upper()
        self.log_dir = Path(self.log_dir)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(ENV_PREFIX + name)
    return default if raw is None else raw.strip()


def load_config(env_file: Optional[str] = None) -> StealthConfig:
    """
    Load configuration from the environment.

    Values from env_file (or a .env in the working directory) are loaded
    first without overriding variables already set in the process.

    Args:
        env_file: Optional path to a dotenv file

    Returns:
        StealthConfig instance
    """
    if env_file is not None:
        if not Path(env_file).is_file():
            raise ValueError(f"Config file not found: {env_file}")
        load_dotenv(env_file, override=False)
    elif (Path.cwd() / ".env").is_file():
        load_dotenv(Path.cwd() / ".env", override=False)

    defaults = StealthConfig()
    log_level = _env_str("LOG_LEVEL", defaults.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}"
        )

    return StealthConfig(
        chain=_env_str("CHAIN", defaults.chain),
        scan_workers=_env_int("SCAN_WORKERS", defaults.scan_workers),
        strict_scan=_env_bool("STRICT_SCAN", defaults.strict_scan),
        collect_trace=_env_bool("COLLECT_TRACE", defaults.collect_trace),
        log_level=log_level,
        log_dir=Path(_env_str("LOG_DIR", str(defaults.log_dir))),
        log_to_file=_env_bool("LOG_TO_FILE", defaults.log_to_file),
    )
