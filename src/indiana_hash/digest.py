"""Streaming digest engine.

:func:`compute` reads a byte source in page-sized chunks, feeds each chunk
to a fresh hasher from the registry and returns the lowercase hex digest
wrapped in a :class:`DigestResult`. Memory use is bounded by the chunk size
(sequential mode) or by ``pipeline_depth`` chunks (pipelined mode).

Two execution modes share the chunk loop and the finalize step:

- ``Mode.SEQUENTIAL`` reads and hashes on the calling thread.
- ``Mode.PIPELINED`` starts one reader thread that pushes owned ``bytes``
  chunks into a bounded FIFO queue; the calling thread hashes them in
  order. A read failure travels through the queue and surfaces as the
  same :class:`~indiana_hash.errors.ReadFailure` as in sequential mode.

Open and read failures never propagate as exceptions; they come back as
``Status.ERROR`` results, and a set cancellation token as
``Status.CANCELLED``. An aborted computation never finalizes its hasher.
"""

from __future__ import annotations

import io
import logging
import mmap
import os
import queue
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Union

from indiana_hash.algorithms import Algorithm, new_hasher
from indiana_hash.cancellation import Cancelled, check_cancelled, current_token
from indiana_hash.errors import IndianaHashError, OpenFailure, ReadFailure

logger = logging.getLogger("indiana_hash")

# Queue capacity for the pipelined mode; the reader blocks once this many
# chunks are waiting to be hashed.
PIPELINE_DEPTH = 4

# Poll interval for blocking queue operations, so both threads notice a
# stop request or a cancellation token.
_POLL_SECS = 0.05

Source = Union[str, os.PathLike, BinaryIO]


class Mode(Enum):
    """How chunks move from the reader to the hasher."""

    SEQUENTIAL = "sequential"
    PIPELINED = "pipelined"


def parse_mode(text: str) -> Mode:
    """Parse ``"sequential"`` / ``"pipelined"`` from user input."""
    try:
        return Mode(text.strip().lower())
    except ValueError as e:
        raise IndianaHashError(
            f"Unknown mode '{text}'. Use 'sequential' or 'pipelined'."
        ) from e


class Status(Enum):
    OK = "ok"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DigestResult:
    """Outcome of one :func:`compute` call."""

    status: Status
    algorithm: Algorithm
    digest: str = ""  # lowercase hex, only set when status is OK
    error: IndianaHashError | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @property
    def cancelled(self) -> bool:
        return self.status is Status.CANCELLED


def page_size() -> int:
    """Memory page size of the host, queried at call time."""
    if hasattr(os, "sysconf"):
        return os.sysconf("SC_PAGE_SIZE")
    return mmap.PAGESIZE


def iter_chunks(stream: BinaryIO, chunk_size: int, label: str = "") -> Iterator[bytes]:
    """Yield successive chunks from *stream* until end of stream.

    Raises:
        ReadFailure: If a read raises ``OSError``.
    """
    while True:
        try:
            chunk = stream.read(chunk_size)
        except OSError as exc:
            raise ReadFailure(label, exc) from exc
        if not chunk:
            return
        if not isinstance(chunk, bytes):
            chunk = bytes(chunk)
        yield chunk


def _label(source: Source) -> str:
    if hasattr(source, "read"):
        return str(getattr(source, "name", "<stream>"))
    return os.fspath(source)


@contextmanager
def _open_source(source: Source, label: str) -> Iterator[BinaryIO]:
    """Yield a buffered binary stream for *source*.

    Paths are opened here and closed on exit. Caller-provided streams are
    left open; unbuffered raw streams get a page-sized buffer for the
    duration of the computation.
    """
    if hasattr(source, "read"):
        if isinstance(source, io.RawIOBase):
            buffered = io.BufferedReader(source, buffer_size=page_size())
            try:
                yield buffered
            finally:
                buffered.detach()
        else:
            yield source
        return

    try:
        stream = open(source, "rb", buffering=page_size())
    except OSError as exc:
        raise OpenFailure(label, exc) from exc
    with stream:
        yield stream


def _hash_sequential(stream, hasher, chunk_size: int, token, label: str) -> int:
    total = 0
    for index, chunk in enumerate(iter_chunks(stream, chunk_size, label)):
        check_cancelled(f"chunk {index} of {label}", token)
        hasher.update(chunk)
        total += len(chunk)
    return total


_END = object()


def _put(channel: queue.Queue, item, stop: threading.Event) -> bool:
    """Put *item* on *channel*, giving up once *stop* is set."""
    while not stop.is_set():
        try:
            channel.put(item, timeout=_POLL_SECS)
            return True
        except queue.Full:
            continue
    return False


def _produce(stream, chunk_size: int, label: str, channel: queue.Queue, stop: threading.Event):
    """Reader thread: forward chunks, then the end marker or the failure."""
    try:
        for chunk in iter_chunks(stream, chunk_size, label):
            if not _put(channel, chunk, stop):
                return
    except Exception as exc:
        _put(channel, exc, stop)
        return
    _put(channel, _END, stop)


def _hash_pipelined(stream, hasher, chunk_size: int, token, label: str, depth: int) -> int:
    channel: queue.Queue = queue.Queue(maxsize=max(1, depth))
    stop = threading.Event()
    reader = threading.Thread(
        target=_produce,
        args=(stream, chunk_size, label, channel, stop),
        name="indiana-hash-reader",
        daemon=True,
    )
    reader.start()

    total = 0
    index = 0
    try:
        while True:
            try:
                item = channel.get(timeout=_POLL_SECS)
            except queue.Empty:
                check_cancelled(f"waiting for {label}", token)
                continue
            if item is _END:
                break
            if isinstance(item, BaseException):
                raise item
            check_cancelled(f"chunk {index} of {label}", token)
            hasher.update(item)
            total += len(item)
            index += 1
    finally:
        stop.set()
        reader.join()
    return total


def compute(
    source: Source,
    algorithm: Algorithm,
    *,
    mode: Mode | str = Mode.SEQUENTIAL,
    chunk_size: int | None = None,
    token: threading.Event | None = None,
    pipeline_depth: int = PIPELINE_DEPTH,
) -> DigestResult:
    """Compute the hex digest of *source* with *algorithm*.

    Args:
        source: Filesystem path, or an open binary stream (left open).
        algorithm: Member of the supported set.
        mode: ``Mode.SEQUENTIAL`` or ``Mode.PIPELINED`` (or their values).
        chunk_size: Bytes per read; ``None`` or ``0`` means the host page size.
        token: Cancellation token checked between chunks. Defaults to the
            current invocation's token, if any.
        pipeline_depth: Queue capacity in pipelined mode.

    Returns:
        A :class:`DigestResult`. Open and read errors are reported as
        ``Status.ERROR`` with an ``OpenFailure`` / ``ReadFailure``.
    """
    mode = Mode(mode)
    if not chunk_size or chunk_size <= 0:
        chunk_size = page_size()
    if token is None:
        token = current_token()
    label = _label(source)

    t0 = time.monotonic()
    logger.debug("DIGEST %s (%s) started: %s", algorithm, mode.value, label)
    try:
        with _open_source(source, label) as stream:
            hasher = new_hasher(algorithm)
            if mode is Mode.PIPELINED:
                total = _hash_pipelined(stream, hasher, chunk_size, token, label, pipeline_depth)
            else:
                total = _hash_sequential(stream, hasher, chunk_size, token, label)
    except (OpenFailure, ReadFailure) as exc:
        logger.warning("DIGEST %s failed for %s: %s", algorithm, label, exc)
        return DigestResult(Status.ERROR, algorithm, error=exc)
    except Cancelled:
        logger.info("DIGEST %s cancelled after %.2fs: %s", algorithm, time.monotonic() - t0, label)
        return DigestResult(Status.CANCELLED, algorithm)

    digest = hasher.hexdigest()
    logger.debug(
        "DIGEST %s completed: %d bytes in %.3fs", algorithm, total, time.monotonic() - t0
    )
    return DigestResult(Status.OK, algorithm, digest=digest)


def digest_bytes(data: bytes, algorithm: Algorithm) -> str:
    """Hex digest of an in-memory buffer. Not subject to cancellation."""
    h = new_hasher(algorithm)
    h.update(data)
    return h.hexdigest()
