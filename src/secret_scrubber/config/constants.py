"""Constants and enums for the secret scrubber."""

from enum import Enum
from typing import Iterable


class DetectionType(str, Enum):
    """Types of sensitive data that can be detected."""

    CREDIT_CARD = "credit_card"
    SSN = "ssn"
    API_KEY = "api_key"
    PASSWORD = "password"
    EMAIL = "email"
    PHONE = "phone"
    IP_ADDRESS = "ip_address"
    CUSTOM = "custom"
    HIGH_ENTROPY = "high_entropy"


class Severity(str, Enum):
    """Severity of a detection, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @classmethod
    def max_of(cls, severities: Iterable["Severity"]) -> "Severity":
        """Return the highest severity, LOW when there is none."""
        return max(severities, key=lambda s: s.rank, default=cls.LOW)


_SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class QuotaScope(str, Enum):
    """Independent consumption budgets, checked in declaration order."""

    GLOBAL = "global"
    ACTOR = "actor"
    DESTINATION = "destination"


class MaskToken(str, Enum):
    """Fixed mask tokens for types that never reveal anything."""

    CARD = "[CARD-REDACTED]"
    SSN = "[SSN-XXX-XX-XXXX]"
    KEY = "[KEY-REDACTED]"
    PASSWORD = "[PASSWORD-REDACTED]"
    EMAIL = "[EMAIL-REDACTED]"
    PHONE = "[PHONE-REDACTED]"
    IP = "[IP-REDACTED]"
    DEFAULT = "[DATA-REDACTED]"


# Detector sets enabled by default for each channel sensitivity level
DEFAULT_DETECTORS = {
    Severity.LOW: (
        DetectionType.CREDIT_CARD,
        DetectionType.SSN,
        DetectionType.API_KEY,
    ),
    Severity.MEDIUM: (
        DetectionType.CREDIT_CARD,
        DetectionType.SSN,
        DetectionType.API_KEY,
        DetectionType.PASSWORD,
    ),
    Severity.HIGH: (
        DetectionType.CREDIT_CARD,
        DetectionType.SSN,
        DetectionType.API_KEY,
        DetectionType.PASSWORD,
        DetectionType.EMAIL,
        DetectionType.PHONE,
    ),
    Severity.CRITICAL: (
        DetectionType.CREDIT_CARD,
        DetectionType.SSN,
        DetectionType.API_KEY,
        DetectionType.PASSWORD,
        DetectionType.EMAIL,
        DetectionType.PHONE,
        DetectionType.IP_ADDRESS,
    ),
}

# Default values
DEFAULT_ENTROPY_THRESHOLD = 4.5
DEFAULT_ENTROPY_MIN_LENGTH = 20
MIN_ENCRYPTION_KEY_LENGTH = 32
DEFAULT_WINDOW_SECONDS = 1
DEFAULT_GLOBAL_LIMIT = 1000
DEFAULT_ACTOR_LIMIT = 10
DEFAULT_DESTINATION_LIMIT = 100
DEFAULT_QUOTA_KEY_PREFIX = "rl"
DEFAULT_REDIS_TIMEOUT = 0.5  # seconds
