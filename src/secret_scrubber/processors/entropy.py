"""Shannon entropy heuristics for secret-like tokens."""

import math
import re
from collections import Counter
from typing import Iterator, List, Tuple

from ..config.constants import DEFAULT_ENTROPY_MIN_LENGTH, DEFAULT_ENTROPY_THRESHOLD

_TOKEN = re.compile(r"\S+")


def shannon_entropy(token: str) -> float:
    """
    Compute the Shannon entropy of a string's character distribution.

    Args:
        token: String to score

    Returns:
        Entropy in bits per character (0.0 for an empty string)
    """
    length = len(token)
    if length == 0:
        return 0.0

    entropy = 0.0
    for count in Counter(token).values():
        probability = count / length
        entropy -= probability * math.log2(probability)
    return entropy


def iter_high_entropy_tokens(
    text: str,
    threshold: float = DEFAULT_ENTROPY_THRESHOLD,
    min_length: int = DEFAULT_ENTROPY_MIN_LENGTH,
) -> Iterator[Tuple[str, int]]:
    """Yield (token, offset) for whitespace-separated tokens above threshold."""
    for m in _TOKEN.finditer(text):
        token = m.group()
        if len(token) >= min_length and shannon_entropy(token) >= threshold:
            yield token, m.start()


def detect_high_entropy(
    text: str,
    threshold: float = DEFAULT_ENTROPY_THRESHOLD,
    min_length: int = DEFAULT_ENTROPY_MIN_LENGTH,
) -> List[str]:
    """Return whitespace-separated tokens whose entropy reaches threshold."""
    return [token for token, _ in iter_high_entropy_tokens(text, threshold, min_length)]
