"""Cancellation tokens for digest computations.

A token is a plain ``threading.Event`` owned by whoever started the
computation: the presentation session sets it when newer input supersedes
the file being hashed, the MCP tool wrapper when ``tool_timeout`` expires.
The digest engine polls it between chunks and stops without finalizing
the hasher.

The engine takes a token argument; when it is omitted, the token
installed on the current thread with :func:`new_token` or
:func:`install_token` is used. Worker threads start without one, so the
tool wrapper installs the invocation's token inside the worker.
"""

from __future__ import annotations

import logging
import threading
from contextvars import ContextVar

logger = logging.getLogger("indiana_hash")


class Cancelled(Exception):
    """Raised by :func:`check_cancelled` once the token is set."""


_current_token: ContextVar[threading.Event | None] = ContextVar("_current_token", default=None)


def new_token() -> threading.Event:
    """Create a token for one tool invocation and install it."""
    token = threading.Event()
    _current_token.set(token)
    return token


def install_token(token: threading.Event | None) -> None:
    """Make *token* the current one on this thread."""
    _current_token.set(token)


def clear_token() -> None:
    _current_token.set(None)


def current_token() -> threading.Event | None:
    return _current_token.get()


def check_cancelled(context: str = "", token: threading.Event | None = None) -> None:
    """Raise :class:`Cancelled` if *token* (or the installed token) is set.

    Args:
        context: Where the engine stopped, e.g. "chunk 12 of big.iso".
        token: Explicit token; falls back to the installed one.
    """
    if token is None:
        token = _current_token.get()
    if token is not None and token.is_set():
        msg = f"Digest cancelled{f' at {context}' if context else ''}"
        logger.info("CANCEL %s", msg)
        raise Cancelled(msg)
