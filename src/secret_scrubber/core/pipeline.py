"""Main scan pipeline orchestrator."""

import logging
from typing import Any, Dict, List, Optional

from ..config.constants import Severity
from ..config.secrets import load_encryption_key
from ..config.settings import get_settings
from ..processors.cipher import ReversibleCipher
from ..processors.detector import Detector
from ..processors.obfuscator import Obfuscator
from ..processors.registry import PatternRegistry, build_registry
from ..quota.arbiter import QuotaArbiter
from .interfaces import AdmissionDecision, ChannelConfig, Match, ScanResult

logger = logging.getLogger(__name__)


class ScanPipeline:
    """Admission check, detection and reversible redaction of one message."""

    def __init__(
        self,
        cipher: Optional[ReversibleCipher] = None,
        registry: Optional[PatternRegistry] = None,
        arbiter: Optional[QuotaArbiter] = None,
        detector: Optional[Detector] = None,
    ) -> None:
        """
        Initialize scan pipeline.

        Args:
            cipher: Cipher for originals (key from settings if None)
            registry: Detection rules (built-in plus configured custom rules
                if None)
            arbiter: Quota arbiter (Redis-backed from settings if None)
            detector: Detector (built over ``registry`` if None)

        Raises:
            ConfigurationError: If no usable encryption key is configured
        """
        self.settings = get_settings()
        self.cipher = cipher or ReversibleCipher(load_encryption_key(self.settings))
        self.detector = detector or Detector(
            registry
            if registry is not None
            else build_registry(self.settings.custom_patterns_file),
            entropy_min_length=self.settings.entropy_min_length,
        )
        self.arbiter = arbiter or QuotaArbiter.from_settings(self.settings)
        self.obfuscator = Obfuscator(self.cipher)

    def scan(
        self,
        text: str,
        actor_id: str,
        destination_id: str,
        channel_config: Optional[ChannelConfig] = None,
    ) -> ScanResult:
        """
        Execute full scan pipeline.

        Args:
            text: Message text
            actor_id: Identifier of the message author
            destination_id: Identifier of the channel
            channel_config: Scanning options of the channel (defaults if None)

        Returns:
            ScanResult; ``allowed`` is False when a quota rejected the request
        """
        # Step 1: Quota admission
        decision = self.arbiter.admit(actor_id, destination_id)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for actor %s in destination %s",
                actor_id,
                destination_id,
            )
            return ScanResult(allowed=False, decision=decision)

        # Step 2: Channel options
        config = channel_config or ChannelConfig(
            entropy_threshold=self.settings.entropy_threshold
        )
        if not config.enabled:
            return self._untouched(text, decision)
        if actor_id in config.exempted_actors:
            logger.info(
                "Actor %s is exempted from scanning in %s", actor_id, destination_id
            )
            return self._untouched(text, decision)

        # Step 3: Detection
        context: Dict[str, Any] = {
            "enabled_types": config.enabled_types,
            "detect_high_entropy": config.detect_high_entropy,
            "entropy_threshold": config.entropy_threshold,
        }
        context = self.detector.process(text, context)
        matches: List[Match] = context["matches"]
        if not matches:
            return self._untouched(text, decision)

        # Step 4: Reversible redaction
        obfuscation = self.obfuscator.obfuscate(text, resolve_overlaps(matches))

        result = ScanResult(
            allowed=True,
            decision=decision,
            matches=matches,
            redacted_text=obfuscation.redacted_text,
            mapping=obfuscation.mapping,
            encrypted_original=self.cipher.encrypt(text),
            severity=Severity.max_of(m.severity for m in matches),
            summary=self.obfuscator.summarize(obfuscation.matches),
            record_id=self.obfuscator.generate_record_id(),
        )
        logger.info(
            "Obfuscated message from %s in %s with %d detections",
            actor_id,
            destination_id,
            len(matches),
        )
        return result

    def _untouched(self, text: str, decision: AdmissionDecision) -> ScanResult:
        return ScanResult(
            allowed=True,
            decision=decision,
            redacted_text=text,
            summary=self.obfuscator.summarize([]),
        )


def resolve_overlaps(matches: List[Match]) -> List[Match]:
    """
    Keep one match per overlapping region.

    Higher severity wins, then the longer span, then the earlier offset.

    Args:
        matches: Matches that may overlap

    Returns:
        Non-overlapping matches sorted by offset
    """
    ranked = sorted(matches, key=lambda m: (-m.severity.rank, -len(m.text), m.start))
    taken: List[Match] = []
    for m in ranked:
        if not any(m.start < t.end and m.end > t.start for t in taken):
            taken.append(m)
    return sorted(taken, key=lambda m: m.start)
