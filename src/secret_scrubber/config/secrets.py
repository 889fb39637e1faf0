"""Secret lookup from mounted files or environment variables.

A secret ``NAME`` is looked up as the file named by ``NAME_FILE`` first
and the ``NAME`` environment variable second.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..core.exceptions import ConfigurationError
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _read_secret_file(path: str) -> Optional[str]:
    secret_path = Path(path)
    if not secret_path.exists():
        logger.warning("Secret file not found: %s", path)
        return None
    try:
        secret = secret_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.error("Failed to read secret from file %s: %s", path, e)
        return None
    return secret or None


def get_secret(name: str) -> Optional[str]:
    """Read a secret from ``<name>_FILE`` or the ``<name>`` variable."""
    file_path = os.environ.get(f"{name}_FILE")
    if file_path:
        secret = _read_secret_file(file_path)
        if secret:
            logger.debug("Secret %s loaded from file: %s", name, file_path)
            return secret

    value = os.environ.get(name)
    if value:
        logger.debug("Secret %s loaded from environment variable", name)
        return value

    logger.warning("Secret %s not found in file or environment variable", name)
    return None


def get_required_secret(name: str) -> str:
    """Like :func:`get_secret` but raise when the secret is missing."""
    secret = get_secret(name)
    if not secret:
        raise ConfigurationError(
            f"Required secret {name} not found in file or environment variable"
        )
    return secret


def load_encryption_key(settings: Optional[Settings] = None) -> str:
    """
    Resolve the encryption key from settings.

    Args:
        settings: Settings to read from (defaults to the cached instance)

    Returns:
        The key, file contents taking precedence over the plain value

    Raises:
        ConfigurationError: If neither source provides a key
    """
    settings = settings or get_settings()
    if settings.encryption_key_file:
        key = _read_secret_file(settings.encryption_key_file)
        if key:
            return key
    if settings.encryption_key:
        return settings.encryption_key
    raise ConfigurationError("Encryption key is not configured")
