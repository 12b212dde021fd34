"""Utility functions for envi."""

import hashlib
import os
from collections.abc import Iterable
from pathlib import Path

from .exceptions import RequiredEnvVarsMissingError


def resolve_value(env: str, default: str) -> str:
    """Resolve a value from the environment, falling back to a default.

    An environment variable that is set but empty counts as unset.

    Args:
        env: Name of the environment variable; empty means none
        default: Value used when the variable is unset or empty

    Returns:
        The environment value if set and non-empty, else the default

    Examples:
        >>> resolve_value("", "PAN")
        'PAN'
    """
    if env:
        value = os.environ.get(env, "")
        if value:
            return value
    return default


def resolve_path(env: str, default: str) -> Path:
    """Resolve a file path from the environment or a default, made absolute."""
    return Path(os.path.abspath(resolve_value(env, default)))


def content_hash(content: bytes) -> str:
    """SHA-256 hex digest of file content."""
    return hashlib.sha256(content).hexdigest()


def load_env_vars(required: Iterable[str], optional: Iterable[str] = ()) -> dict[str, str]:
    """Load the named environment variables into a dictionary.

    Args:
        required: Variables that must be set and non-empty
        optional: Variables included as empty strings when unset

    Returns:
        Dictionary mapping variable name -> value

    Raises:
        RequiredEnvVarsMissingError: If any required variable is unset or empty,
            listing all of them
    """
    loaded = {key: os.environ.get(key, "") for key in required}

    missing = [key for key, value in loaded.items() if not value]
    if missing:
        raise RequiredEnvVarsMissingError(missing)

    for key in optional:
        loaded[key] = os.environ.get(key, "")

    return loaded
