"""Indiana Hash MCP server: file digests as MCP tools.

Run with: python -m indiana_hash serve  (or: python -m indiana_hash.server)
The server uses stdio transport for MCP client communication.
"""

from __future__ import annotations

import functools
import json
import logging
import logging.handlers
import sys
import threading
import time
import traceback
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from indiana_hash import call_log, paths
from indiana_hash import config as hash_config
from indiana_hash.algorithms import from_name, list_all
from indiana_hash.cancellation import Cancelled, clear_token, install_token, new_token
from indiana_hash.digest import compute, parse_mode
from indiana_hash.errors import IndianaHashError
from indiana_hash.session import format_result

mcp_server = FastMCP("Indiana Hash")

# ---------------------------------------------------------------------------
# Logging: stderr always, file handler added by main()
# ---------------------------------------------------------------------------

logger = logging.getLogger("indiana_hash")
logger.setLevel(logging.DEBUG)

# Stderr handler (WARNING+): visible in MCP client logs
_stderr_handler = logging.StreamHandler(sys.stderr)
_stderr_handler.setLevel(logging.WARNING)
_stderr_handler.setFormatter(
    logging.Formatter(
        "%(asctime)s [%(process)d] %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
    )
)
logger.addHandler(_stderr_handler)

_file_handler: logging.Handler | None = None


def _attach_file_log(home: Path) -> None:
    """Attach a rotating file handler to ~/.indiana-hash/server.log (idempotent)."""
    global _file_handler
    if _file_handler is not None:
        return
    home.mkdir(parents=True, exist_ok=True)
    log_path = home / "server.log"
    fh = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        logging.Formatter("%(asctime)s [%(process)d] %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(fh)
    _file_handler = fh
    logger.info("Indiana Hash server started, log attached to %s", log_path)


# Loaded by main(); tests may replace it.
_config = hash_config.HashConfig()


# ---------------------------------------------------------------------------
# Tool invocation logging: every tool runs in a worker thread with a fresh
# cancellation token. A watchdog sets the token once tool_timeout expires;
# the digest engine notices it between chunks and the worker returns.
# ---------------------------------------------------------------------------

_original_tool = mcp_server.tool


async def _run_with_watchdog(call, token: threading.Event, timeout: float):
    """Run *call* in a worker thread, setting *token* after *timeout* seconds.

    The worker is never abandoned: the wrapper waits for it to notice the
    token and return. Returns ``(result, error, timed_out)``.
    """
    import anyio

    timed_out = False
    result = error = None

    async with anyio.create_task_group() as tg:

        async def watchdog():
            nonlocal timed_out
            await anyio.sleep(timeout)
            timed_out = True
            token.set()

        tg.start_soon(watchdog)
        try:
            result = await anyio.to_thread.run_sync(call)
        except Exception as exc:
            error = exc
        tg.cancel_scope.cancel()

    return result, error, timed_out


def _logging_tool(**kwargs):
    """Drop-in replacement for ``mcp_server.tool()`` that adds invocation logging.

    The returned wrapper is **async**: it dispatches the (sync) tool function
    to a worker thread so the event loop stays responsive for the watchdog.
    Each call writes exactly one call-log line.
    """
    decorator = _original_tool(**kwargs)

    def wrapper(fn):
        @functools.wraps(fn)
        async def logged(*args, **kw):
            name = fn.__name__
            logger.info("TOOL %s called", name)
            t0 = time.monotonic()
            token = new_token()
            timeout = _config.tool_timeout

            def _run_in_thread():
                install_token(token)
                try:
                    return fn(*args, **kw)
                finally:
                    clear_token()

            try:
                result, error, timed_out = await _run_with_watchdog(
                    _run_in_thread, token, timeout
                )
            finally:
                clear_token()
            dt = time.monotonic() - t0

            if error is None:
                logger.info("TOOL %s completed in %.2fs", name, dt)
                call_log.log_call(name, kw, dt * 1000, status="ok")
                return result

            if isinstance(error, Cancelled) and timed_out:
                call_log.log_call(name, kw, dt * 1000, status="timeout", error="timeout")
                logger.error(
                    "TOOL %s timed out after %.2fs (limit %.0fs), cancellation token set",
                    name,
                    dt,
                    timeout,
                )
                raise IndianaHashError(
                    f"Tool {name} timed out after {int(timeout)}s. The operation was cancelled."
                ) from error

            if isinstance(error, Cancelled):
                call_log.log_call(name, kw, dt * 1000, status="cancelled", error="cancelled")
                logger.info("TOOL %s cancelled after %.2fs", name, dt)
                raise IndianaHashError(f"Tool {name} was cancelled.") from error

            if isinstance(error, IndianaHashError):
                call_log.log_call(name, kw, dt * 1000, status="error", error=str(error))
                logger.warning(
                    "TOOL %s failed (%s) after %.2fs: %s",
                    name,
                    type(error).__name__,
                    dt,
                    error,
                )
                raise error

            call_log.log_call(name, kw, dt * 1000, status="crash", error=str(error))
            logger.error(
                "TOOL %s crashed after %.2fs:\n%s",
                name,
                dt,
                "".join(traceback.format_exception(error)),
            )
            raise IndianaHashError(
                f"Internal error in {name}: {type(error).__name__}: {error}"
            ) from error

        return decorator(logged)

    return wrapper


mcp_server.tool = _logging_tool  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Sync helpers (called from the worker thread, tested directly)
# ---------------------------------------------------------------------------


def _algorithms() -> list[dict[str, Any]]:
    return [
        {"index": i, "name": a.display_name, "digest_size": a.digest_size}
        for i, a in enumerate(list_all(), start=1)
    ]


def _hash_file(path: str, algorithm: str, mode: str = "") -> dict[str, Any]:
    """Hash one file; raises the engine's error on failure."""
    algo = from_name(algorithm)
    result = compute(
        path,
        algo,
        mode=parse_mode(mode) if mode else _config.mode,
        chunk_size=_config.chunk_size,
        pipeline_depth=_config.pipeline_depth,
    )
    if result.cancelled:
        raise Cancelled(f"Hashing {path} was cancelled")
    if not result.ok:
        raise result.error
    return {
        "path": path,
        "algorithm": algo.display_name,
        "digest": result.digest,
        "display": format_result(result).text,
    }


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp_server.tool()
def algorithms() -> str:
    """List the supported digest algorithms.

    Index 0 is reserved for "no algorithm"; the algorithms start at 1.
    """
    return json.dumps({"algorithms": _algorithms()}, indent=2)


@mcp_server.tool()
def hash_file(path: str, algorithm: str, mode: str = "") -> str:
    """Compute the hex digest of a file.

    Args:
        path: File to hash.
        algorithm: SHA512/256, SHA512, SHA384, SHA256, SHA1 or MD5.
        mode: "sequential" or "pipelined"; empty uses the configured mode.
    """
    return json.dumps(_hash_file(path, algorithm, mode), indent=2)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(config_file: Path | None = None) -> None:
    """Run the Indiana Hash MCP server on stdio."""
    global _config
    _config = hash_config.load_config(config_file)
    _attach_file_log(paths.home_dir())
    try:
        mcp_server.run()
    except KeyboardInterrupt:
        logger.info("Indiana Hash server stopped (keyboard interrupt)")


if __name__ == "__main__":
    main()
