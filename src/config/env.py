"""Helpers for reading injected configuration (secret files and environment)."""

import os
from pathlib import Path

DEFAULT_SECRETS_DIR = "/vault/secrets"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def secrets_dir() -> Path:
    """Directory where the Vault agent renders secret files."""
    return Path(os.getenv("SECRETS_DIR", DEFAULT_SECRETS_DIR))


def read_secret(name: str, env: str, default: str | None = None) -> str | None:
    """
    Read a secret rendered by the Vault agent, or fall back to environment.

    Args:
        name: File name inside SECRETS_DIR
        env: Environment variable consulted when the file is absent
        default: Value used when neither is set

    Returns:
        Secret value (file content stripped of surrounding whitespace)
    """
    try:
        with open(secrets_dir() / name, encoding="utf-8") as f:
            return f.read().strip()
    except (OSError, UnicodeDecodeError):
        # Нет файла, нет прав или мусор вместо текста: берём из окружения
        return os.getenv(env, default)


def env_bool(env: str, default: bool = False) -> bool:
    """Read a boolean flag; unset means default."""
    raw = os.getenv(env)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES
