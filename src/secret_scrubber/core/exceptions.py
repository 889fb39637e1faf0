"""Custom exceptions for the secret scrubber."""


class ScrubberError(Exception):
    """Base exception for all secret scrubber errors."""

    pass


class ConfigurationError(ScrubberError):
    """Raised when the scrubber is constructed with unusable configuration."""

    pass


class ProcessingError(ScrubberError):
    """Raised when detection rules cannot be loaded or compiled."""

    pass


class DecryptionError(ScrubberError):
    """Raised when an encrypted blob cannot be decrypted."""

    pass


class QuotaUnavailableError(ScrubberError):
    """Raised when the quota counter store cannot be reached."""

    pass
