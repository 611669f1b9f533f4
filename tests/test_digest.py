"""Tests for indiana_hash.digest: the streaming digest engine."""

import hashlib
import io
import threading
from pathlib import Path

import pytest

from indiana_hash.algorithms import Algorithm, list_all
from indiana_hash.cancellation import clear_token, new_token
from indiana_hash.digest import (
    DigestResult,
    Mode,
    Status,
    compute,
    digest_bytes,
    iter_chunks,
    page_size,
    parse_mode,
)
from indiana_hash.errors import IndianaHashError, OpenFailure, ReadFailure

BOTH_MODES = [Mode.SEQUENTIAL, Mode.PIPELINED]


def _reader_threads() -> list[threading.Thread]:
    return [t for t in threading.enumerate() if t.name == "indiana-hash-reader"]


# ---------------------------------------------------------------------------
# Known vectors
# ---------------------------------------------------------------------------


class TestKnownVectors:
    @pytest.mark.parametrize("mode", BOTH_MODES)
    @pytest.mark.parametrize("algorithm", list_all())
    def test_empty_file(self, tmp_path: Path, empty_digests, algorithm, mode):
        p = tmp_path / "empty"
        p.write_bytes(b"")
        result = compute(p, algorithm, mode=mode)
        assert result.ok
        assert result.digest == empty_digests[algorithm.display_name]

    def test_abc_sha256(self):
        assert digest_bytes(b"abc", Algorithm.SHA256) == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_abc_md5(self):
        assert digest_bytes(b"abc", Algorithm.MD5) == "900150983cd24fb0d6963f7d28e17f72"

    def test_abc_sha1(self):
        assert digest_bytes(b"abc", Algorithm.SHA1) == (
            "a9993e364706816aba3e25717850c26c9cd0d89d"
        )

    def test_digest_bytes_ignores_cancelled_token(self):
        new_token().set()
        try:
            assert digest_bytes(b"abc", Algorithm.MD5) == "900150983cd24fb0d6963f7d28e17f72"
        finally:
            clear_token()

    def test_digest_format(self, sample_file: Path):
        result = compute(sample_file, Algorithm.SHA384)
        assert len(result.digest) == 96
        assert all(c in "0123456789abcdef" for c in result.digest)

    def test_matches_hashlib(self, sample_file: Path):
        expected = hashlib.sha512(sample_file.read_bytes()).hexdigest()
        assert compute(sample_file, Algorithm.SHA512).digest == expected


# ---------------------------------------------------------------------------
# Equivalence properties
# ---------------------------------------------------------------------------


class TestEquivalence:
    def test_idempotent(self, sample_file: Path):
        first = compute(sample_file, Algorithm.SHA256)
        second = compute(sample_file, Algorithm.SHA256)
        assert first == second

    @pytest.mark.parametrize("chunk_size", [1, 7, 4096, 65536, 10_000_000])
    def test_chunk_size_invariant(self, sample_file: Path, chunk_size):
        expected = hashlib.sha256(sample_file.read_bytes()).hexdigest()
        assert compute(sample_file, Algorithm.SHA256, chunk_size=chunk_size).digest == expected

    @pytest.mark.parametrize("algorithm", list_all())
    def test_sequential_equals_pipelined(self, sample_file: Path, algorithm):
        seq = compute(sample_file, algorithm, mode=Mode.SEQUENTIAL)
        pipe = compute(sample_file, algorithm, mode=Mode.PIPELINED)
        assert seq.digest == pipe.digest
        assert seq.ok and pipe.ok

    def test_pipelined_depth_one_keeps_order(self, sample_file: Path):
        expected = hashlib.md5(sample_file.read_bytes()).hexdigest()
        result = compute(
            sample_file, Algorithm.MD5, mode=Mode.PIPELINED, chunk_size=13, pipeline_depth=1
        )
        assert result.digest == expected

    def test_mode_accepts_string(self, sample_file: Path):
        assert compute(sample_file, Algorithm.SHA1, mode="pipelined").ok

    def test_different_content_different_digest(self):
        assert digest_bytes(b"hello", Algorithm.SHA256) != digest_bytes(
            b"world", Algorithm.SHA256
        )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestSources:
    def test_binary_stream(self):
        data = b"stream contents" * 1000
        result = compute(io.BytesIO(data), Algorithm.SHA256)
        assert result.digest == hashlib.sha256(data).hexdigest()

    def test_stream_left_open(self, sample_file: Path):
        with open(sample_file, "rb") as f:
            compute(f, Algorithm.MD5)
            assert not f.closed

    def test_unbuffered_stream_left_open(self, sample_file: Path):
        expected = hashlib.sha1(sample_file.read_bytes()).hexdigest()
        with open(sample_file, "rb", buffering=0) as f:
            result = compute(f, Algorithm.SHA1, mode=Mode.PIPELINED)
            assert not f.closed
        assert result.digest == expected

    def test_str_path(self, sample_file: Path):
        assert compute(str(sample_file), Algorithm.MD5).ok

    def test_page_size_positive(self):
        size = page_size()
        assert size > 0
        assert size & (size - 1) == 0  # power of two

    def test_iter_chunks_sizes(self):
        chunks = list(iter_chunks(io.BytesIO(b"abcdefg"), 3))
        assert chunks == [b"abc", b"def", b"g"]

    def test_iter_chunks_empty(self):
        assert list(iter_chunks(io.BytesIO(b""), 3)) == []


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    @pytest.mark.parametrize("mode", BOTH_MODES)
    def test_nonexistent_path_is_open_failure(self, tmp_path: Path, mode):
        result = compute(tmp_path / "missing.txt", Algorithm.SHA256, mode=mode)
        assert result.status is Status.ERROR
        assert not result.ok
        assert result.digest == ""
        assert isinstance(result.error, OpenFailure)
        assert str(result.error).startswith("Cannot open file: ")
        assert "No such file or directory" in str(result.error)

    def test_open_failure_keeps_cause(self, tmp_path: Path):
        result = compute(tmp_path / "missing.txt", Algorithm.MD5)
        assert isinstance(result.error.cause, FileNotFoundError)
        assert result.error.path.endswith("missing.txt")

    def test_directory_never_succeeds(self, tmp_path: Path):
        result = compute(tmp_path, Algorithm.MD5)
        assert not result.ok
        assert isinstance(result.error, (OpenFailure, ReadFailure))

    @pytest.mark.parametrize("mode", BOTH_MODES)
    def test_mid_stream_read_error(self, flaky_stream, mode):
        stream = flaky_stream(b"x" * 10_000, good_reads=3)
        result = compute(stream, Algorithm.SHA256, mode=mode, chunk_size=100)
        assert result.status is Status.ERROR
        assert isinstance(result.error, ReadFailure)
        assert result.digest == ""
        assert str(result.error) == "Cannot read file: [Errno 5] Input/output error"

    def test_read_error_on_first_read(self, flaky_stream):
        result = compute(flaky_stream(b"data", good_reads=0), Algorithm.MD5)
        assert isinstance(result.error, ReadFailure)

    def test_pipelined_failure_joins_reader(self, flaky_stream):
        compute(flaky_stream(b"y" * 5000, good_reads=2), Algorithm.SHA1, mode=Mode.PIPELINED)
        assert _reader_threads() == []

    def test_unexpected_error_in_reader_propagates(self):
        class Broken:
            def read(self, n):
                raise ValueError("I/O operation on closed file")

        with pytest.raises(ValueError, match="closed file"):
            compute(Broken(), Algorithm.MD5, mode=Mode.PIPELINED)
        assert _reader_threads() == []


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class _CancellingStream:
    """Sets *token* after serving *after* chunks."""

    def __init__(self, token: threading.Event, after: int):
        self._token = token
        self._after = after
        self.reads = 0

    def read(self, n):
        self.reads += 1
        if self.reads > self._after:
            self._token.set()
        return b"z" * n


class TestCancellation:
    @pytest.mark.parametrize("mode", BOTH_MODES)
    def test_preset_token(self, sample_file: Path, mode):
        token = threading.Event()
        token.set()
        result = compute(sample_file, Algorithm.SHA256, mode=mode, token=token)
        assert result.status is Status.CANCELLED
        assert result.cancelled
        assert result.digest == ""
        assert result.error is None

    def test_cancel_mid_stream_sequential(self):
        token = threading.Event()
        stream = _CancellingStream(token, after=5)
        result = compute(stream, Algorithm.MD5, chunk_size=64, token=token)
        assert result.cancelled
        assert stream.reads == 6

    def test_cancel_endless_stream_pipelined(self):
        token = threading.Event()
        stream = _CancellingStream(token, after=20)
        result = compute(
            stream, Algorithm.MD5, mode=Mode.PIPELINED, chunk_size=64, token=token, pipeline_depth=2
        )
        assert result.cancelled
        assert _reader_threads() == []

    def test_current_token_used_when_not_passed(self, sample_file: Path):
        token = new_token()
        token.set()
        try:
            assert compute(sample_file, Algorithm.SHA1).cancelled
        finally:
            clear_token()

    def test_unset_token_completes(self, sample_file: Path):
        result = compute(sample_file, Algorithm.SHA1, token=threading.Event())
        assert result.ok


class TestDigestResult:
    def test_frozen(self):
        result = DigestResult(Status.OK, Algorithm.MD5, digest="abc")
        with pytest.raises(AttributeError):
            result.digest = "other"


class TestParseMode:
    def test_values(self):
        assert parse_mode("Pipelined") is Mode.PIPELINED
        assert parse_mode(" sequential ") is Mode.SEQUENTIAL

    def test_unknown(self):
        with pytest.raises(IndianaHashError, match="Unknown mode"):
            parse_mode("parallel")
