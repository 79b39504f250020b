"""Secret provenance and masking rules."""

from enum import Enum

MASK = "***"
# Префикс, которым помечены тестовые значения в Vault (secret/myapp/*)
VAULT_VALUE_PREFIX = "dev-"
VAULT_DB_USERNAME = "devuser"


class Source(str, Enum):
    """Where a configuration value came from."""

    VAULT = "vault"
    DEFAULT = "default"


def secret_source(value: str | None) -> Source:
    """Classify a secret by the dev- prefix the demo Vault values carry."""
    if value is not None and value.startswith(VAULT_VALUE_PREFIX):
        return Source.VAULT
    return Source.DEFAULT


def username_source(value: str | None) -> Source:
    """Classify the datasource username by exact match with the Vault user."""
    return Source.VAULT if value == VAULT_DB_USERNAME else Source.DEFAULT


def mask_secret(secret: str | None) -> str:
    """
    Mask a secret for display.

    Values of six characters or fewer are hidden entirely. Longer values
    keep the first and last three characters around a fixed-width mask, so
    the output does not reveal the exact length.
    """
    if secret is None or len(secret) <= 6:
        return MASK
    return f"{secret[:3]}{MASK}{secret[-3:]}"
