"""Indiana Hash configuration: loads and validates ~/.indiana-hash/config.yaml.

The config file picks the preselected algorithm, the engine mode and its
tuning knobs, and the MCP tool timeout. Every key is optional.

If no config exists, create_default() writes a commented starter file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from indiana_hash import paths
from indiana_hash.algorithms import Algorithm, from_name
from indiana_hash.digest import PIPELINE_DEPTH, Mode, digest_bytes
from indiana_hash.errors import ConfigError, UnknownAlgorithm

DEFAULT_TOOL_TIMEOUT = 300.0  # seconds


@dataclass
class HashConfig:
    """Parsed config.yaml."""

    algorithm: Algorithm | None = None
    mode: Mode = Mode.SEQUENTIAL
    pipeline_depth: int = PIPELINE_DEPTH
    chunk_size: int = 0  # 0 = host page size
    tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    sha256: str = ""  # checksum of the raw config file


_DEFAULT_CONFIG = """\
# Indiana Hash configuration
# Every key is optional; the values below are the defaults.

# Algorithm preselected by the CLI when --algorithm is not given.
# One of: SHA512/256, SHA512, SHA384, SHA256, SHA1, MD5, or none.
algorithm: none

# Engine mode: "sequential" reads and hashes on one thread,
# "pipelined" reads on a second thread while hashing.
mode: sequential

# Pipelined mode only: how many chunks may wait between reader and hasher.
pipeline_depth: 4

# Bytes per read. 0 uses the host memory page size.
chunk_size: 0

# MCP server: seconds before a hash_file call is cancelled.
tool_timeout: 300
"""


def create_default(path: Path | None = None) -> Path:
    """Write a starter config.yaml if it doesn't exist. Returns the path."""
    p = path or paths.config_path()
    if not p.exists():
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(_DEFAULT_CONFIG, encoding="utf-8")
    return p


def _int_at_least(data: dict, key: str, default: int, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"'{key}' must be an integer >= {minimum}, got {value!r}")
    return value


def load_config(path: Path | None = None) -> HashConfig:
    """Load and validate config.yaml. Returns defaults if the file is missing."""
    p = path or paths.config_path()
    if not p.exists():
        return HashConfig()

    raw = p.read_text(encoding="utf-8")
    sha = digest_bytes(raw.encode("utf-8"), Algorithm.SHA256)

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"expected a YAML mapping in {p}, got {type(data).__name__}")

    algorithm = None
    raw_algorithm = data.get("algorithm")
    if raw_algorithm is not None and str(raw_algorithm).strip().lower() not in ("", "none"):
        try:
            algorithm = from_name(str(raw_algorithm))
        except UnknownAlgorithm as e:
            raise ConfigError(str(e), hint=f"Fix 'algorithm' in {p}.") from e

    raw_mode = str(data.get("mode", Mode.SEQUENTIAL.value)).strip().lower()
    try:
        mode = Mode(raw_mode)
    except ValueError as e:
        raise ConfigError(
            f"unknown mode '{raw_mode}'", hint="Use 'sequential' or 'pipelined'."
        ) from e

    timeout = data.get("tool_timeout", DEFAULT_TOOL_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"'tool_timeout' must be a positive number, got {timeout!r}")

    return HashConfig(
        algorithm=algorithm,
        mode=mode,
        pipeline_depth=_int_at_least(data, "pipeline_depth", PIPELINE_DEPTH, 1),
        chunk_size=_int_at_least(data, "chunk_size", 0, 0),
        tool_timeout=float(timeout),
        sha256=sha,
    )
