"""Validator predicates run on raw pattern matches to reject false positives."""

import re
from typing import Callable, Dict

_NON_DIGIT = re.compile(r"[^0-9]")
_PRIVATE_IPV4 = (
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[01])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^127\."),
    re.compile(r"^169\.254\."),
)


def luhn_check(candidate: str) -> bool:
    """
    Check a card number candidate with the mod-10 checksum.

    Separators are stripped first; the remaining digit count must be
    between 13 and 19.

    Args:
        candidate: Raw matched text

    Returns:
        True if the digits form a valid card number
    """
    digits = _NON_DIGIT.sub("", candidate)
    if len(digits) < 13 or len(digits) > 19:
        return False

    total = 0
    for i, char in enumerate(reversed(digits)):
        digit = int(char)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return total % 10 == 0


def has_mixed_case_and_digit(candidate: str) -> bool:
    """True if the candidate has an uppercase, a lowercase and a digit."""
    return (
        any(c.isupper() for c in candidate)
        and any(c.islower() for c in candidate)
        and any(c.isdigit() for c in candidate)
    )


def is_aws_secret_key(candidate: str) -> bool:
    return len(candidate) == 40 and has_mixed_case_and_digit(candidate)


def is_public_ipv4(candidate: str) -> bool:
    """Reject private, loopback and link-local IPv4 addresses."""
    return not any(prefix.match(candidate) for prefix in _PRIVATE_IPV4)


# Validators addressable by name from custom pattern files
VALIDATORS: Dict[str, Callable[[str], bool]] = {
    "luhn": luhn_check,
    "mixed_case_and_digit": has_mixed_case_and_digit,
    "aws_secret_key": is_aws_secret_key,
    "public_ipv4": is_public_ipv4,
}
