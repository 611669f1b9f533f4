"""Exception hierarchy for Indiana Hash.

The digest engine never lets these escape ``compute()``: they are carried
inside a :class:`~indiana_hash.digest.DigestResult` so the caller can show
the message in place of the digest. Front ends (CLI, MCP server) decide
whether to turn them into exit codes or raised errors.
"""

from __future__ import annotations


class IndianaHashError(Exception):
    """Base class for all Indiana Hash errors."""


class NoAlgorithmSelected(IndianaHashError):
    """A computation was requested with no algorithm chosen."""

    def __init__(self):
        super().__init__("No hashing algorithm selected")


class OpenFailure(IndianaHashError):
    """The byte source could not be opened at all."""

    def __init__(self, path: str, cause: BaseException | str):
        super().__init__(f"Cannot open file: {cause}")
        self.path = path
        self.cause = cause


class ReadFailure(IndianaHashError):
    """The byte source failed mid-stream, after it was opened."""

    def __init__(self, path: str, cause: BaseException | str):
        super().__init__(f"Cannot read file: {cause}")
        self.path = path
        self.cause = cause


class UnknownAlgorithm(IndianaHashError):
    """An algorithm name outside the supported set."""

    def __init__(self, name: str, available: list[str]):
        avail_str = ", ".join(available)
        super().__init__(f"Unknown hashing algorithm '{name}'. Available: {avail_str}")
        self.name = name
        self.available = available


class ConfigError(IndianaHashError):
    """Configuration file is invalid."""

    def __init__(self, detail: str, hint: str = ""):
        msg = f"Configuration error: {detail}."
        if hint:
            msg += f" {hint}"
        super().__init__(msg)
        self.detail = detail
        self.hint = hint
