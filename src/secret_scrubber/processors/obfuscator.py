"""Reversible redaction of detected matches."""

import secrets
from collections import Counter
from typing import Dict, Iterable, List

from ..config.constants import DetectionType
from ..core.interfaces import Match, ObfuscationResult
from .cipher import ReversibleCipher
from .masking import mask

_TYPE_LABELS = {
    DetectionType.CREDIT_CARD: "credit card",
    DetectionType.SSN: "SSN",
    DetectionType.API_KEY: "API key",
    DetectionType.PASSWORD: "password",
    DetectionType.EMAIL: "email address",
    DetectionType.PHONE: "phone number",
    DetectionType.IP_ADDRESS: "IP address",
    DetectionType.CUSTOM: "sensitive item",
    DetectionType.HIGH_ENTROPY: "high entropy string",
}


def _unique_token(token: str, taken: Dict[str, str], text: str) -> str:
    """
    Suffix a token (``[X]`` -> ``[X#2]``) until it is unique.

    The token must be absent from both the mapping and the original text,
    so restore only ever finds the spliced copy.
    """
    candidate = token
    n = 2
    while candidate in taken or candidate in text:
        candidate = f"{token[:-1]}#{n}]"
        n += 1
    return candidate


class Obfuscator:
    """Masks matches and keeps encrypted originals for later reversal."""

    def __init__(self, cipher: ReversibleCipher) -> None:
        self.cipher = cipher

    def obfuscate(self, text: str, matches: Iterable[Match]) -> ObfuscationResult:
        """
        Replace every match with its mask token.

        Matches are applied from the highest start offset down, so offsets
        computed against the original text stay valid.

        Args:
            text: Original text
            matches: Matches with offsets into ``text``

        Returns:
            ObfuscationResult with redacted text and token -> blob mapping
        """
        ordered = sorted(matches, key=lambda m: m.start, reverse=True)
        mapping: Dict[str, str] = {}
        redacted = text

        for match in ordered:
            token = _unique_token(
                mask(match.text, match.detection_type), mapping, text
            )
            mapping[token] = self.cipher.encrypt(match.text)
            redacted = redacted[: match.start] + token + redacted[match.end :]

        return ObfuscationResult(
            redacted_text=redacted, mapping=mapping, matches=ordered[::-1]
        )

    def restore(self, redacted_text: str, mapping: Dict[str, str]) -> str:
        """
        Put decrypted originals back in place of their mask tokens.

        Only the first occurrence of each token is replaced.

        Raises:
            DecryptionError: If a blob does not decrypt under this key
        """
        restored = redacted_text
        for token, blob in mapping.items():
            restored = restored.replace(token, self.cipher.decrypt(blob), 1)
        return restored

    @staticmethod
    def summarize(matches: Iterable[Match]) -> str:
        """Human readable count of what was obfuscated."""
        counts = Counter(m.detection_type for m in matches)
        if not counts:
            return "No sensitive data detected"

        parts: List[str] = []
        for detection_type, count in counts.items():
            label = _TYPE_LABELS.get(detection_type, "sensitive data")
            if count > 1:
                label += "es" if label.endswith("s") else "s"
            parts.append(f"{count} {label}")
        return "Obfuscated: " + ", ".join(parts)

    @staticmethod
    def generate_record_id() -> str:
        """Random identifier for the caller's obfuscation record."""
        return secrets.token_hex(16)
