"""Type-specific, partially revealing mask tokens."""

import re
from typing import Callable, Dict

from ..config.constants import DetectionType, MaskToken

_NON_DIGIT = re.compile(r"[^0-9]")
EMAIL_MASK_RUN = "*" * 4


def _mask_card(value: str) -> str:
    digits = _NON_DIGIT.sub("", value)
    if len(digits) >= 4:
        return f"[CARD-****{digits[-4:]}]"
    return MaskToken.CARD.value


def _mask_ssn(value: str) -> str:
    return MaskToken.SSN.value


def _mask_key(value: str) -> str:
    if len(value) > 8:
        return f"[KEY-{value[:4]}...{value[-4:]}]"
    return MaskToken.KEY.value


def _mask_password(value: str) -> str:
    return MaskToken.PASSWORD.value


def _mask_email(value: str) -> str:
    parts = value.split("@")
    if len(parts) == 2 and parts[0] and parts[1]:
        username, domain = parts
        return f"[EMAIL-{username[0]}{EMAIL_MASK_RUN}@{domain}]"
    return MaskToken.EMAIL.value


def _mask_phone(value: str) -> str:
    digits = _NON_DIGIT.sub("", value)
    if len(digits) >= 4:
        return f"[PHONE-****{digits[-4:]}]"
    return MaskToken.PHONE.value


def _mask_ip(value: str) -> str:
    octets = value.split(".")
    if len(octets) == 4:
        return f"[IP-{octets[0]}.XXX.XXX.{octets[3]}]"
    return MaskToken.IP.value


def _mask_generic(value: str) -> str:
    return MaskToken.DEFAULT.value


_MASKERS: Dict[DetectionType, Callable[[str], str]] = {
    DetectionType.CREDIT_CARD: _mask_card,
    DetectionType.SSN: _mask_ssn,
    DetectionType.API_KEY: _mask_key,
    DetectionType.PASSWORD: _mask_password,
    DetectionType.EMAIL: _mask_email,
    DetectionType.PHONE: _mask_phone,
    DetectionType.IP_ADDRESS: _mask_ip,
    DetectionType.CUSTOM: _mask_generic,
    DetectionType.HIGH_ENTROPY: _mask_generic,
}

_missing = set(DetectionType) - set(_MASKERS)
if _missing:
    raise RuntimeError(f"No mask policy for: {sorted(t.value for t in _missing)}")


def mask(value: str, detection_type: DetectionType) -> str:
    """
    Build the mask token for a detected value.

    Args:
        value: The matched text
        detection_type: Type of the match

    Returns:
        Mask token revealing at most what the type's policy allows
    """
    try:
        masker = _MASKERS[DetectionType(detection_type)]
    except ValueError:
        masker = _mask_generic
    return masker(value)
