"""Tests for the reversible cipher."""

import re

import pytest

from secret_scrubber.core.exceptions import ConfigurationError, DecryptionError
from secret_scrubber.processors.cipher import ReversibleCipher

KEY = "0123456789abcdef0123456789abcdef-test"
OTHER_KEY = "fedcba9876543210fedcba9876543210-test"
BLOB_FORMAT = re.compile(r"^v1\$[0-9a-f]{32}:[A-Za-z0-9+/]+={0,2}$")


class TestCipherConstruction:
    """Test key validation."""

    @pytest.mark.parametrize("key", ["", "short", "x" * 31, None])
    def test_short_key_rejected(self, key) -> None:
        """Test keys under 32 characters fail at construction."""
        with pytest.raises(ConfigurationError, match="at least 32"):
            ReversibleCipher(key)

    def test_minimum_key_accepted(self) -> None:
        """Test a 32 character key is enough."""
        assert ReversibleCipher("x" * 32) is not None


class TestCipherRoundTrip:
    """Test encrypt and decrypt."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.cipher = ReversibleCipher(KEY)

    @pytest.mark.parametrize(
        "plaintext",
        [
            "",
            "a",
            "4532015112830366",
            "exactly sixteen!",
            "日本語のテキスト 🔐 émoji",
            "line1\nline2\ttab:colon$dollar",
            "x" * 5000,
        ],
    )
    def test_round_trip(self, plaintext: str) -> None:
        """Test decrypt(encrypt(s)) == s."""
        assert self.cipher.decrypt(self.cipher.encrypt(plaintext)) == plaintext

    def test_blob_format(self) -> None:
        """Test the versioned blob layout."""
        blob = self.cipher.encrypt("secret")
        assert BLOB_FORMAT.match(blob)
        assert blob.count(":") == 1

    def test_fresh_iv_per_call(self) -> None:
        """Test the same plaintext encrypts differently each time."""
        blobs = {self.cipher.encrypt("same text") for _ in range(20)}
        assert len(blobs) == 20
        ivs = {blob[3:35] for blob in blobs}
        assert len(ivs) == 20

    def test_same_key_other_instance(self) -> None:
        """Test blobs decrypt under another cipher with the same key."""
        blob = self.cipher.encrypt("portable")
        assert ReversibleCipher(KEY).decrypt(blob) == "portable"


class TestCipherFailures:
    """Test decryption failures are distinguishable."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.cipher = ReversibleCipher(KEY)

    def test_wrong_key(self) -> None:
        """Test a blob does not decrypt under another key."""
        blob = self.cipher.encrypt("top secret")
        with pytest.raises(DecryptionError, match="Authentication failed"):
            ReversibleCipher(OTHER_KEY).decrypt(blob)

    @pytest.mark.parametrize(
        "blob",
        [
            "",
            "not a blob",
            "v1$",
            "v1$abc:def",
            "v2$" + "0" * 32 + ":AAAA",
            "v1$" + "0" * 32,
            "v1$" + "0" * 32 + ":AAAA:BBBB",
            "v1$" + "Z" * 32 + ":AAAA",
            "v1$" + "0" * 32 + ":not base64!",
            "v1$" + "0" * 32 + ":AAAA",
        ],
    )
    def test_malformed_blob(self, blob: str) -> None:
        """Test malformed blobs raise DecryptionError."""
        with pytest.raises(DecryptionError):
            self.cipher.decrypt(blob)

    def test_non_string_blob(self) -> None:
        """Test non-string input raises DecryptionError."""
        with pytest.raises(DecryptionError):
            self.cipher.decrypt(None)  # type: ignore

    def test_tampered_ciphertext(self) -> None:
        """Test a modified ciphertext is rejected."""
        blob = self.cipher.encrypt("do not touch")
        prefix, body = blob.split(":")
        tampered = prefix + ":" + ("B" if body[0] == "A" else "A") + body[1:]
        with pytest.raises(DecryptionError):
            self.cipher.decrypt(tampered)

    def test_tampered_iv(self) -> None:
        """Test a modified IV is rejected."""
        blob = self.cipher.encrypt("do not touch")
        iv_char = blob[3]
        tampered = blob[:3] + ("1" if iv_char == "0" else "0") + blob[4:]
        with pytest.raises(DecryptionError):
            self.cipher.decrypt(tampered)

    @pytest.mark.parametrize("suffix", ["\n", " ", "\r\n"])
    def test_iv_with_trailing_whitespace(self, suffix: str) -> None:
        """Test an IV followed by whitespace is rejected."""
        prefix, body = self.cipher.encrypt("hi").split(":")
        with pytest.raises(DecryptionError, match="Invalid encrypted format"):
            self.cipher.decrypt(prefix + suffix + ":" + body)

    def test_is_decryptable(self) -> None:
        """Test the boolean check."""
        blob = self.cipher.encrypt("check")
        assert self.cipher.is_decryptable(blob)
        assert not ReversibleCipher(OTHER_KEY).is_decryptable(blob)
        assert not self.cipher.is_decryptable("garbage")
