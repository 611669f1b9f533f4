"""Shared test fixtures for Indiana Hash."""

from pathlib import Path

import pytest

from indiana_hash import call_log
from indiana_hash.cancellation import clear_token

# Published digests of the empty input.
_EMPTY_DIGESTS = {
    "SHA512/256": "c672b8d1ef56ed28ab87c3622c5114069bdd3ad7b8f9737498d0c01ecef0967a",
    "SHA512": (
        "cf83e1357eefb8bdf1542850d66d8007d620e4050b5715dc83f4a921d36ce9ce"
        "47d0d13c5d85f2b0ff8318d2877eec2f63b931bd47417a81a538327af927da3e"
    ),
    "SHA384": (
        "38b060a751ac96384cd9327eb1b1e36a21fdb71114be0743"
        "4c0cc7bf63f6e1da274edebfe76f65fbd51ad2f14898b95b"
    ),
    "SHA256": "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
    "SHA1": "da39a3ee5e6b4b0d3255bfef95601890afd80709",
    "MD5": "d41d8cd98f00b204e9800998ecf8427e",
}


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point ~/.indiana-hash at a temp directory for every test."""
    home = tmp_path / "home"
    monkeypatch.setenv("INDIANA_HASH_HOME", str(home))
    call_log.reset()
    clear_token()
    yield home
    call_log.reset()
    clear_token()


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """A file spanning many pages, with non-repeating content."""
    p = tmp_path / "sample.bin"
    p.write_bytes(bytes(range(256)) * 97 + b"tail")
    return p



class FlakyStream:
    """Binary stream that serves *good_reads* chunks, then raises OSError."""

    def __init__(self, data: bytes, good_reads: int):
        self._data = data
        self._pos = 0
        self._good_reads = good_reads
        self.reads = 0

    def read(self, n: int = -1) -> bytes:
        if self.reads >= self._good_reads:
            raise OSError(5, "Input/output error")
        self.reads += 1
        chunk = self._data[self._pos : self._pos + n]
        self._pos += len(chunk)
        return chunk


@pytest.fixture
def empty_digests() -> dict[str, str]:
    return dict(_EMPTY_DIGESTS)


@pytest.fixture
def flaky_stream():
    """Factory: ``flaky_stream(data, good_reads)``."""
    return FlakyStream
