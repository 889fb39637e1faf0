"""Pattern and entropy based detection of sensitive data."""

from typing import Any, Dict, Iterable, List, Optional

from ..config.constants import (
    DEFAULT_ENTROPY_MIN_LENGTH,
    DEFAULT_ENTROPY_THRESHOLD,
    DetectionType,
    Severity,
)
from ..core.interfaces import Match, Processor
from .entropy import iter_high_entropy_tokens
from .registry import PatternRegistry, default_registry

HIGH_ENTROPY_DESCRIPTION = "High entropy string detected (possible secret)"


class Detector(Processor):
    """Runs the pattern registry and the entropy pass over text."""

    def __init__(
        self,
        registry: Optional[PatternRegistry] = None,
        entropy_min_length: int = DEFAULT_ENTROPY_MIN_LENGTH,
    ) -> None:
        """
        Initialize detector.

        Args:
            registry: Detection rules (built-in rules if None)
            entropy_min_length: Shortest token the entropy pass scores
        """
        self.registry = registry if registry is not None else default_registry()
        self.entropy_min_length = entropy_min_length

    def detect(
        self, text: str, enabled_types: Optional[Iterable[DetectionType]] = None
    ) -> List[Match]:
        """
        Find every validated occurrence of every enabled rule.

        The same span may be reported by more than one rule.

        Args:
            text: Input text to scan
            enabled_types: Types to scan for (all rules if None)

        Returns:
            Matches in rule order, then by offset
        """
        matches: List[Match] = []
        for rule in self.registry.for_types(enabled_types):
            for m in rule.pattern.finditer(text):
                candidate = m.group()
                if not rule.accepts(candidate):
                    continue
                matches.append(
                    Match(
                        detection_type=rule.detection_type,
                        severity=rule.severity,
                        text=candidate,
                        start=m.start(),
                        rule_name=rule.name,
                        description=rule.description,
                    )
                )
        return matches

    def detect_high_entropy_matches(
        self, text: str, threshold: float = DEFAULT_ENTROPY_THRESHOLD
    ) -> List[Match]:
        """Report high-entropy tokens as low-confidence matches."""
        return [
            Match(
                detection_type=DetectionType.HIGH_ENTROPY,
                severity=Severity.MEDIUM,
                text=token,
                start=offset,
                rule_name="High Entropy String",
                description=HIGH_ENTROPY_DESCRIPTION,
            )
            for token, offset in iter_high_entropy_tokens(
                text, threshold, self.entropy_min_length
            )
        ]

    def process(self, text: str, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Detect sensitive data according to the context's channel options.

        Args:
            text: Input text to scan
            context: Processing context; reads ``enabled_types``,
                ``detect_high_entropy`` and ``entropy_threshold``

        Returns:
            Updated context with ``matches`` and ``match_types``
        """
        matches = self.detect(text, context.get("enabled_types"))

        if context.get("detect_high_entropy", False):
            threshold = context.get("entropy_threshold", DEFAULT_ENTROPY_THRESHOLD)
            matches.extend(self.detect_high_entropy_matches(text, threshold))

        context["matches"] = matches
        context["match_types"] = sorted({m.detection_type.value for m in matches})
        return context
