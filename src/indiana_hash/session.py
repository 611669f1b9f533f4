"""Presentation-side caller of the digest engine.

Turns the user's current input (a path and a selection index) into one
line of display text, and recomputes on every edit. The selection list
shows "None" at index 0, so index 0 never maps to a real algorithm.

:class:`HashSession` implements "latest input wins": starting a new
computation sets the cancellation token of the one still running, and a
superseded computation never overwrites the status of a newer one.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path

from indiana_hash.algorithms import Algorithm, list_all
from indiana_hash.config import HashConfig
from indiana_hash.digest import DigestResult, compute
from indiana_hash.errors import NoAlgorithmSelected, OpenFailure

APP_NAME = "Indiana Hash"
PROMPT = "Enter a filename and a hashing algorithm"
NO_SELECTION_LABEL = "None"


@dataclass(frozen=True)
class StatusLine:
    """Text to display; errors are rendered differently (e.g. in red)."""

    text: str
    is_error: bool = False


@dataclass
class HashRequest:
    """Current user input."""

    path: str = ""
    algorithm: Algorithm | None = None


def selection_labels() -> list[str]:
    """Labels for a selection widget: "None" followed by every algorithm."""
    return [NO_SELECTION_LABEL] + [a.display_name for a in list_all()]


def algorithm_from_index(index: int) -> Algorithm | None:
    """Map a selection index to an algorithm; 0 means nothing selected."""
    if index == 0:
        return None
    algorithms = list_all()
    if not 1 <= index <= len(algorithms):
        raise IndexError(f"Algorithm index {index} out of range 0-{len(algorithms)}")
    return algorithms[index - 1]


def window_title(path: str | os.PathLike[str]) -> str:
    """Title bar text, prefixed with the file name when there is one."""
    file_name = Path(path).name
    if not file_name:
        return APP_NAME
    return f"{file_name} ‒ {APP_NAME}"


def format_result(result: DigestResult) -> StatusLine:
    if result.ok:
        return StatusLine(f"{result.algorithm.display_name}: {result.digest}")
    if result.cancelled:
        return StatusLine("Cancelled", is_error=True)
    return StatusLine(str(result.error), is_error=True)


def describe(
    path: str | os.PathLike[str],
    algorithm: Algorithm | None,
    *,
    config: HashConfig | None = None,
    token: threading.Event | None = None,
) -> StatusLine:
    """Hash *path* with *algorithm* and return the line to display.

    The file is opened before the algorithm is checked, so an unreadable
    path is reported even when no algorithm is selected yet.
    """
    cfg = config or HashConfig()
    try:
        stream = open(path, "rb", buffering=0)
    except OSError as exc:
        return StatusLine(str(OpenFailure(os.fspath(path), exc)), is_error=True)

    with stream:
        if algorithm is None:
            return StatusLine(str(NoAlgorithmSelected()), is_error=True)
        result = compute(
            stream,
            algorithm,
            mode=cfg.mode,
            chunk_size=cfg.chunk_size,
            token=token,
            pipeline_depth=cfg.pipeline_depth,
        )
    return format_result(result)


class HashSession:
    """Holds the current request and the latest status line."""

    def __init__(self, config: HashConfig | None = None):
        self.config = config or HashConfig()
        self.request = HashRequest(algorithm=self.config.algorithm)
        self.status = StatusLine(PROMPT)
        self._lock = threading.Lock()
        self._generation = 0
        self._token: threading.Event | None = None

    @property
    def title(self) -> str:
        return window_title(self.request.path)

    def set_path(self, path: str | os.PathLike[str]) -> StatusLine:
        with self._lock:
            self.request.path = os.fspath(path)
        return self._recompute()

    def select_algorithm(self, algorithm: Algorithm | None) -> StatusLine:
        with self._lock:
            self.request.algorithm = algorithm
        return self._recompute()

    def select_index(self, index: int) -> StatusLine:
        return self.select_algorithm(algorithm_from_index(index))

    def cancel(self) -> bool:
        """Cancel the computation in flight, if any."""
        with self._lock:
            if self._token is None:
                return False
            self._token.set()
            return True

    def _recompute(self) -> StatusLine:
        with self._lock:
            if self._token is not None:
                self._token.set()
            self._generation += 1
            generation = self._generation
            token = threading.Event()
            self._token = token
            path, algorithm = self.request.path, self.request.algorithm

        line = describe(path, algorithm, config=self.config, token=token)

        with self._lock:
            # A newer edit owns the status now.
            if generation == self._generation:
                self.status = line
                self._token = None
        return line
