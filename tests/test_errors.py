"""Tests for indiana_hash.errors: hierarchy and display messages."""

from indiana_hash.errors import (
    ConfigError,
    IndianaHashError,
    NoAlgorithmSelected,
    OpenFailure,
    ReadFailure,
    UnknownAlgorithm,
)


class TestHierarchy:
    def test_all_inherit_base(self):
        for cls in (NoAlgorithmSelected, OpenFailure, ReadFailure, UnknownAlgorithm, ConfigError):
            assert issubclass(cls, IndianaHashError), cls.__name__

    def test_base_is_exception(self):
        assert issubclass(IndianaHashError, Exception)


class TestMessages:
    def test_no_algorithm(self):
        assert str(NoAlgorithmSelected()) == "No hashing algorithm selected"

    def test_open_failure_verbatim_cause(self):
        cause = PermissionError(13, "Permission denied", "/secret")
        e = OpenFailure("/secret", cause)
        assert str(e) == f"Cannot open file: {cause}"
        assert e.path == "/secret"
        assert e.cause is cause

    def test_read_failure(self):
        e = ReadFailure("a.bin", "device gone")
        assert str(e) == "Cannot read file: device gone"

    def test_unknown_algorithm(self):
        e = UnknownAlgorithm("crc32", ["MD5", "SHA1"])
        assert "crc32" in str(e)
        assert "MD5, SHA1" in str(e)

    def test_config_error_hint(self):
        e = ConfigError("bad mode", hint="Use 'sequential'.")
        assert str(e) == "Configuration error: bad mode. Use 'sequential'."
        assert e.detail == "bad mode"

    def test_config_error_no_hint(self):
        assert str(ConfigError("oops")) == "Configuration error: oops."
