"""Canonical directory names for Indiana Hash.

Layout:
  ~/.indiana-hash/             home_dir()    : config, server log, call logs
  ~/.indiana-hash/config.yaml  config_path()
  ~/.indiana-hash/logs/        logs_dir()    : per-PID JSONL call logs

``INDIANA_HASH_HOME`` overrides the home directory (used by tests).
"""

from __future__ import annotations

import os
from pathlib import Path

DOT_DIR = ".indiana-hash"
HOME_ENV = "INDIANA_HASH_HOME"


def home_dir() -> Path:
    """Return ~/.indiana-hash/ unless INDIANA_HASH_HOME points elsewhere."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override)
    return Path.home() / DOT_DIR


def config_path() -> Path:
    return home_dir() / "config.yaml"


def logs_dir() -> Path:
    return home_dir() / "logs"
