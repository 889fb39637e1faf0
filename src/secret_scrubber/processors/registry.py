"""Pattern registry: the ordered, immutable set of detection rules."""

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

import yaml

from ..config.constants import DetectionType, Severity
from ..core.exceptions import ProcessingError
from ..core.interfaces import DetectionRule
from .validators import VALIDATORS, is_aws_secret_key, is_public_ipv4, luhn_check

logger = logging.getLogger(__name__)

# Minimum length of a plaintext password value after "password:"
PASSWORD_MIN_LENGTH = 6

_FLAGS = {"IGNORECASE": re.IGNORECASE, "MULTILINE": re.MULTILINE, "ASCII": re.ASCII}


def _rule(
    name: str,
    detection_type: DetectionType,
    regex: str,
    severity: Severity,
    description: str,
    validator=None,
    flags: int = 0,
) -> DetectionRule:
    return DetectionRule(
        name=name,
        detection_type=detection_type,
        pattern=re.compile(regex, flags | re.ASCII),
        severity=severity,
        validator=validator,
        description=description,
    )


def _github_token(prefix: str, label: str) -> DetectionRule:
    return _rule(
        f"GitHub {label}",
        DetectionType.API_KEY,
        rf"\b{prefix}_[a-zA-Z0-9]{{36}}\b",
        Severity.CRITICAL,
        f"GitHub {label} detected",
    )


DEFAULT_RULES: Tuple[DetectionRule, ...] = (
    _rule(
        "Credit Card",
        DetectionType.CREDIT_CARD,
        r"\b(?:\d[ -]*?){13,19}\b",
        Severity.CRITICAL,
        "Credit card number detected",
        validator=luhn_check,
    ),
    _rule(
        "US Social Security Number",
        DetectionType.SSN,
        r"\b(?!000|666|9\d{2})(?:[0-8]\d{2}|7(?:[0-6]\d|7[0-2]))"
        r"-(?!00)\d{2}-(?!0000)\d{4}\b",
        Severity.CRITICAL,
        "Social Security Number detected",
    ),
    _rule(
        "AWS Access Key",
        DetectionType.API_KEY,
        r"\bAKIA[0-9A-Z]{16}\b",
        Severity.CRITICAL,
        "AWS Access Key detected",
    ),
    _rule(
        "AWS Secret Key",
        DetectionType.API_KEY,
        r"\b[A-Za-z0-9/+=]{40}\b",
        Severity.CRITICAL,
        "AWS Secret Key detected",
        validator=is_aws_secret_key,
    ),
    _github_token("ghp", "Personal Access Token"),
    _github_token("gho", "OAuth Token"),
    _github_token("ghs", "App Token"),
    _github_token("ghr", "Refresh Token"),
    _rule(
        "Slack Token",
        DetectionType.API_KEY,
        r"\bxox[baprs]-[a-zA-Z0-9-]+\b",
        Severity.CRITICAL,
        "Slack Token detected",
    ),
    _rule(
        "Slack Webhook",
        DetectionType.API_KEY,
        r"https://hooks\.slack\.com/services/[A-Z0-9]+/[A-Z0-9]+/[a-zA-Z0-9]+",
        Severity.HIGH,
        "Slack Webhook URL detected",
    ),
    _rule(
        "Generic API Key",
        DetectionType.API_KEY,
        r"\b(?:api[_-]?key|apikey|api[_-]?secret|api[_-]?token)['\"\s]*[:=]['\"\s]*"
        r"[a-zA-Z0-9_-]{32,}\b",
        Severity.HIGH,
        "Generic API Key detected",
        flags=re.IGNORECASE,
    ),
    # Quoted values run to the closing quote, bare values to whitespace or a quote
    _rule(
        "Password in Plain Text",
        DetectionType.PASSWORD,
        r"\b(?:password|passwd|pwd|pass)['\"\s]*[:=]\s*"
        rf"(?:\"[^\"\n]{{{PASSWORD_MIN_LENGTH},}}\"|'[^'\n]{{{PASSWORD_MIN_LENGTH},}}'"
        rf"|['\"]?[^'\"\s]{{{PASSWORD_MIN_LENGTH},}})",
        Severity.CRITICAL,
        "Password in plain text detected",
        flags=re.IGNORECASE,
    ),
    _rule(
        "Private Key",
        DetectionType.API_KEY,
        r"-----BEGIN\s+(?:RSA|DSA|EC|OPENSSH|PGP)\s+PRIVATE\s+KEY-----",
        Severity.CRITICAL,
        "Private key detected",
        flags=re.IGNORECASE,
    ),
    _rule(
        "Email Address",
        DetectionType.EMAIL,
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        Severity.LOW,
        "Email address detected",
    ),
    _rule(
        "US Phone Number",
        DetectionType.PHONE,
        r"\b(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b",
        Severity.MEDIUM,
        "Phone number detected",
    ),
    _rule(
        "IPv4 Address",
        DetectionType.IP_ADDRESS,
        r"\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
        r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b",
        Severity.MEDIUM,
        "Public IP address detected",
        validator=is_public_ipv4,
    ),
    _rule(
        "Database Connection String",
        DetectionType.API_KEY,
        r"\b(?:mongodb|mysql|postgresql|postgres|redis)://\S+",
        Severity.CRITICAL,
        "Database connection string detected",
        flags=re.IGNORECASE,
    ),
    _rule(
        "JWT Token",
        DetectionType.API_KEY,
        r"\beyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\b",
        Severity.HIGH,
        "JWT token detected",
    ),
)


class PatternRegistry:
    """Ordered, immutable collection of detection rules.

    Assembled once at startup and passed to the detector, so tests can
    inject a reduced rule set.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Iterable[DetectionRule]) -> None:
        self._rules: Tuple[DetectionRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[DetectionRule, ...]:
        return self._rules

    def __iter__(self) -> Iterator[DetectionRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def for_types(
        self, types: Optional[Iterable[DetectionType]] = None
    ) -> Tuple[DetectionRule, ...]:
        """Rules whose type is enabled; every rule when types is None.

        Unknown type tags are skipped with a warning.
        """
        if types is None:
            return self._rules
        enabled = set()
        for t in types:
            try:
                enabled.add(DetectionType(t))
            except ValueError:
                logger.warning("Ignoring unknown detection type: %s", t)
        return tuple(r for r in self._rules if r.detection_type in enabled)

    def extend(self, rules: Iterable[DetectionRule]) -> "PatternRegistry":
        """Return a new registry with extra rules appended."""
        return PatternRegistry(self._rules + tuple(rules))

    @classmethod
    def from_yaml(
        cls, patterns_file: str, base: Optional["PatternRegistry"] = None
    ) -> "PatternRegistry":
        """
        Load detection rules from a YAML file.

        Args:
            patterns_file: Path to YAML file with a top-level ``patterns`` list
            base: Registry the loaded rules are appended to

        Returns:
            New registry

        Raises:
            ProcessingError: If the file is missing or a rule is invalid
        """
        patterns_path = Path(patterns_file)
        if not patterns_path.exists():
            raise ProcessingError(f"Patterns file not found: {patterns_file}")

        try:
            with open(patterns_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ProcessingError(f"Failed to load patterns: {e}")

        rules = [_rule_from_config(entry) for entry in data.get("patterns", [])]
        logger.debug("Loaded %d detection rules from %s", len(rules), patterns_file)

        if base is None:
            return cls(rules)
        return base.extend(rules)


def _rule_from_config(entry: dict) -> DetectionRule:
    name = entry.get("name", "<unnamed>")
    try:
        detection_type = DetectionType(entry.get("type", DetectionType.CUSTOM.value))
        severity = Severity(entry.get("severity", Severity.MEDIUM.value))
    except ValueError as e:
        raise ProcessingError(f"Invalid rule '{name}': {e}")
    if detection_type is DetectionType.HIGH_ENTROPY:
        raise ProcessingError(f"Invalid rule '{name}': high_entropy is not a rule type")

    validator_name = entry.get("validator")
    validator = None
    if validator_name is not None:
        validator = VALIDATORS.get(validator_name)
        if validator is None:
            raise ProcessingError(
                f"Invalid rule '{name}': unknown validator '{validator_name}'"
            )

    flags = 0
    for flag_name in entry.get("flags", []):
        if flag_name not in _FLAGS:
            raise ProcessingError(f"Invalid rule '{name}': unknown flag '{flag_name}'")
        flags |= _FLAGS[flag_name]

    if "regex" not in entry:
        raise ProcessingError(f"Invalid rule '{name}': missing regex")
    try:
        pattern = re.compile(entry["regex"], flags)
    except re.error as e:
        raise ProcessingError(f"Invalid regex pattern '{name}': {e}")

    return DetectionRule(
        name=name,
        detection_type=detection_type,
        pattern=pattern,
        severity=severity,
        validator=validator,
        description=entry.get("description", ""),
    )


def default_registry() -> PatternRegistry:
    """The built-in rule set."""
    return PatternRegistry(DEFAULT_RULES)


def build_registry(patterns_file: Optional[str] = None) -> PatternRegistry:
    """Built-in rules, plus the rules of ``patterns_file`` when given."""
    registry = default_registry()
    if patterns_file:
        registry = PatternRegistry.from_yaml(patterns_file, base=registry)
    return registry
