"""Abstract base classes and data models for the secret scrubber."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from ..config.constants import (
    DEFAULT_DETECTORS,
    DEFAULT_ENTROPY_THRESHOLD,
    DEFAULT_WINDOW_SECONDS,
    DetectionType,
    QuotaScope,
    Severity,
)


@dataclass(frozen=True)
class DetectionRule:
    """A single detection rule of the pattern registry."""

    name: str
    detection_type: DetectionType
    pattern: Pattern[str]
    severity: Severity
    validator: Optional[Callable[[str], bool]] = None
    description: str = ""

    def accepts(self, candidate: str) -> bool:
        """Return True if the candidate passes this rule's validator."""
        return self.validator is None or self.validator(candidate)


@dataclass(frozen=True)
class Match:
    """A detected span of sensitive data in the original text."""

    detection_type: DetectionType
    severity: Severity
    text: str
    start: int
    rule_name: str = ""
    description: str = ""

    @property
    def end(self) -> int:
        return self.start + len(self.text)


@dataclass
class ObfuscationResult:
    """Redacted text plus what is needed to reverse it."""

    redacted_text: str
    mapping: Dict[str, str] = field(default_factory=dict)  # mask token -> blob
    matches: List[Match] = field(default_factory=list)


@dataclass(frozen=True)
class ScopeLimit:
    """Point budget of one quota scope per counter window."""

    points: int
    duration_seconds: float = DEFAULT_WINDOW_SECONDS


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a quota admission check."""

    allowed: bool
    scope: Optional[QuotaScope] = None
    retry_after_seconds: Optional[float] = None
    reason: Optional[str] = None
    degraded: bool = False


@dataclass
class ChannelConfig:
    """Per-destination scanning configuration supplied by the caller."""

    enabled: bool = True
    sensitivity_level: Severity = Severity.MEDIUM
    enabled_types: Optional[List[DetectionType]] = None
    detect_high_entropy: bool = True
    entropy_threshold: float = DEFAULT_ENTROPY_THRESHOLD
    exempted_actors: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.enabled_types is None:
            self.enabled_types = list(DEFAULT_DETECTORS[self.sensitivity_level])

    @classmethod
    def for_sensitivity(cls, level: Severity, **kwargs: Any) -> "ChannelConfig":
        """Build a config with the default detectors of a sensitivity level."""
        return cls(sensitivity_level=level, **kwargs)


@dataclass
class ScanResult:
    """Result of scanning one message."""

    allowed: bool
    decision: AdmissionDecision
    matches: List[Match] = field(default_factory=list)
    redacted_text: Optional[str] = None
    mapping: Dict[str, str] = field(default_factory=dict)
    encrypted_original: Optional[str] = None
    severity: Optional[Severity] = None
    summary: str = ""
    record_id: Optional[str] = None

    @property
    def has_detections(self) -> bool:
        return bool(self.matches)


class Processor(ABC):
    """Base class for all scan processors."""

    @abstractmethod
    def process(self, text: str, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process text and return updated context.

        Args:
            text: Input text to process
            context: Processing context containing intermediate results

        Returns:
            Updated context dictionary
        """
        pass


class CounterStore(ABC):
    """Abstract shared counter store backing the quota arbiter."""

    @abstractmethod
    def consume(
        self, key: str, points: int, duration_seconds: float
    ) -> Tuple[int, int]:
        """
        Atomically add points to a windowed counter.

        Args:
            key: Counter key
            points: Points to consume
            duration_seconds: Window length, started by the first consumption

        Returns:
            (points consumed in the current window, milliseconds until reset)
        """
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Tuple[int, int]]:
        """
        Read a counter without consuming.

        Args:
            key: Counter key

        Returns:
            (consumed, milliseconds until reset) or None if no window is open
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Drop a counter.

        Args:
            key: Counter key
        """
        pass
