"""Registry of the supported digest algorithms.

The :class:`Algorithm` enum is the single dispatch table: each member maps
to its display name and its ``hashlib`` constructor. Adding an algorithm
means adding one member here.
"""

from __future__ import annotations

import hashlib
from enum import Enum

from indiana_hash.errors import UnknownAlgorithm


class Algorithm(Enum):
    """Supported digest algorithms, in selection-list order."""

    SHA512_256 = ("SHA512/256", "sha512_256")
    SHA512 = ("SHA512", "sha512")
    SHA384 = ("SHA384", "sha384")
    SHA256 = ("SHA256", "sha256")
    SHA1 = ("SHA1", "sha1")
    MD5 = ("MD5", "md5")

    def __init__(self, display_name: str, hashlib_name: str):
        self.display_name = display_name
        self.hashlib_name = hashlib_name

    def __str__(self) -> str:
        return self.display_name

    @property
    def digest_size(self) -> int:
        """Length of the finalized digest in bytes."""
        return new_hasher(self).digest_size


def list_all() -> list[Algorithm]:
    """All algorithms in their fixed, stable order."""
    return list(Algorithm)


def name(algorithm: Algorithm) -> str:
    """Canonical display name, e.g. ``"SHA512/256"``."""
    return algorithm.display_name


def new_hasher(algorithm: Algorithm):
    """Fresh incremental hash state for *algorithm*.

    SHA-512/256 resolves to the FIPS 180-4 variant with its own initial
    values, not to a truncated SHA-512.
    """
    return hashlib.new(algorithm.hashlib_name)


def _normalize(text: str) -> str:
    return text.strip().upper().replace("-", "").replace("_", "/")


def from_name(text: str) -> Algorithm:
    """Parse an algorithm from user input.

    Accepts display names (``SHA512/256``), member names (``sha512_256``)
    and hyphenated forms (``SHA-256``), case-insensitively.

    Raises:
        UnknownAlgorithm: If *text* matches no supported algorithm.
    """
    wanted = _normalize(text)
    for algorithm in Algorithm:
        if wanted == _normalize(algorithm.display_name):
            return algorithm
    raise UnknownAlgorithm(text, [a.display_name for a in Algorithm])
