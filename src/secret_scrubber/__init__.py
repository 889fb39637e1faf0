"""Detection and reversible redaction of secrets and PII in short messages."""

__version__ = "0.1.0"

from .config.constants import DetectionType, QuotaScope, Severity
from .core.exceptions import (
    ConfigurationError,
    DecryptionError,
    ProcessingError,
    QuotaUnavailableError,
    ScrubberError,
)
from .core.interfaces import (
    AdmissionDecision,
    ChannelConfig,
    DetectionRule,
    Match,
    ObfuscationResult,
    ScanResult,
    ScopeLimit,
)

__all__ = [
    "ScrubberError",
    "ConfigurationError",
    "ProcessingError",
    "DecryptionError",
    "QuotaUnavailableError",
    "DetectionType",
    "QuotaScope",
    "Severity",
    "AdmissionDecision",
    "ChannelConfig",
    "DetectionRule",
    "Match",
    "ObfuscationResult",
    "ScanResult",
    "ScopeLimit",
]
