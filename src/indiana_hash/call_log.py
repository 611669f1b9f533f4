"""Digest request logging.

Writes to ~/.indiana-hash/logs/: one JSONL file per process, one line per
tool call. Per-PID files avoid races between concurrent servers.
File naming: {start_datetime}_{pid}.jsonl
"""

from __future__ import annotations

import json
import os
from datetime import UTC, datetime
from pathlib import Path

from indiana_hash import paths

# Session state: initialized on first log_call()
_session_file: Path | None = None


def _init_session() -> Path:
    """Create the session log file with a metadata header line."""
    global _session_file
    logs = paths.logs_dir()
    logs.mkdir(parents=True, exist_ok=True)
    now = datetime.now(UTC)
    pid = os.getpid()
    _session_file = logs / f"{now.strftime('%Y%m%d_%H%M%S')}_{pid}.jsonl"
    meta = {
        "type": "session_start",
        "ts": now.strftime("%Y-%m-%dT%H:%M:%S"),
        "pid": pid,
    }
    _session_file.write_text(json.dumps(meta) + "\n", encoding="utf-8")
    return _session_file


def session_file() -> Path:
    if _session_file is None or not _session_file.parent.exists():
        return _init_session()
    return _session_file


def reset() -> None:
    """Forget the current session file; the next call starts a new one."""
    global _session_file
    _session_file = None


def log_call(
    tool: str,
    params: dict,
    duration_ms: float,
    status: str = "ok",
    error: str = "",
) -> None:
    """Append one call record to the session JSONL file."""
    f = session_file()
    # Truncate large param values to keep log readable
    short_params = {}
    for k, v in params.items():
        s = str(v)
        short_params[k] = s[:200] + "…" if len(s) > 200 else s
    entry = {
        "type": "call",
        "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S"),
        "tool": tool,
        "params": short_params,
        "ms": round(duration_ms, 1),
        "status": status,
    }
    if error:
        entry["error"] = error[:500]
    with open(f, "a", encoding="utf-8") as fp:
        fp.write(json.dumps(entry) + "\n")
