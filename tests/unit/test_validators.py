"""Tests for validator predicates."""

import pytest

from secret_scrubber.processors.validators import (
    VALIDATORS,
    has_mixed_case_and_digit,
    is_aws_secret_key,
    is_public_ipv4,
    luhn_check,
)


class TestLuhnCheck:
    """Test the card checksum."""

    @pytest.mark.parametrize(
        "number",
        ["4532015112830366", "4111111111111111", "4111-1111-1111-1111", "378282246310005"],
    )
    def test_valid_numbers(self, number: str) -> None:
        """Test known valid card numbers pass."""
        assert luhn_check(number)

    def test_invalid_checksum(self) -> None:
        """Test a wrong check digit fails."""
        assert not luhn_check("4111111111111112")

    def test_length_bounds(self) -> None:
        """Test digit counts outside 13..19 fail even with a valid checksum."""
        assert not luhn_check("42")  # checksum valid, too short
        assert not luhn_check("0" * 20)
        assert luhn_check("0" * 13)

    def test_deterministic(self) -> None:
        """Test the result does not change across calls."""
        results = {luhn_check("4532015112830366") for _ in range(5)}
        assert results == {True}

    def test_non_ascii_digits_ignored(self) -> None:
        """Test non-ASCII digits are stripped like separators."""
        assert not luhn_check("٤٥٣٢٠١٥١١٢٨٣٠٣٦٦")


class TestSecretKeyValidators:
    """Test secret key validators."""

    def test_mixed_case_and_digit(self) -> None:
        """Test all three character classes are required."""
        assert has_mixed_case_and_digit("abcDEF123")
        assert not has_mixed_case_and_digit("abcdef123")
        assert not has_mixed_case_and_digit("ABCDEF123")
        assert not has_mixed_case_and_digit("abcDEFghi")

    def test_aws_secret_key(self) -> None:
        """Test the 40 character secret key check."""
        assert is_aws_secret_key("wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY")
        assert not is_aws_secret_key("wJalrXUtnFEMI/K7MDENG")
        assert not is_aws_secret_key("a" * 40)


class TestPublicIpv4:
    """Test the public IP validator."""

    @pytest.mark.parametrize(
        "address",
        ["10.0.0.1", "172.16.0.1", "172.31.255.255", "192.168.1.1", "127.0.0.1",
         "169.254.10.20"],
    )
    def test_private_ranges_rejected(self, address: str) -> None:
        """Test private, loopback and link-local addresses are rejected."""
        assert not is_public_ipv4(address)

    @pytest.mark.parametrize("address", ["8.8.8.8", "172.32.0.1", "203.0.113.7"])
    def test_public_addresses_accepted(self, address: str) -> None:
        """Test public addresses pass."""
        assert is_public_ipv4(address)


def test_validators_by_name():
    """Test validators addressable from pattern files."""
    assert VALIDATORS["luhn"] is luhn_check
    assert VALIDATORS["public_ipv4"] is is_public_ipv4
