"""Application configuration snapshot populated from injected secrets."""

import os
from dataclasses import dataclass

from src.config.env import env_bool, read_secret

DEFAULT_API_KEY = "default-key"
DEFAULT_JWT_SECRET = "default-secret"
DEFAULT_DATASOURCE_URL = "postgresql://localhost:5432/myapp"
DEFAULT_DATASOURCE_USERNAME = "myapp"


@dataclass(frozen=True)
class AppConfiguration:
    """
    Immutable view of the values the Vault agent injected at startup.

    Built once by from_env() and shared by every request handler.
    Missing bindings fall back to the compiled-in defaults without error.
    """

    external_api_key: str | None = DEFAULT_API_KEY
    jwt_secret: str | None = DEFAULT_JWT_SECRET
    vault_integration_enabled: bool = False
    database_enabled: bool = False
    datasource_url: str = DEFAULT_DATASOURCE_URL
    datasource_username: str = DEFAULT_DATASOURCE_USERNAME

    @classmethod
    def from_env(cls) -> "AppConfiguration":
        """Read secret files / environment variables into a snapshot."""
        return cls(
            external_api_key=read_secret(
                "external_api_key", "EXTERNAL_API_KEY", DEFAULT_API_KEY
            ),
            jwt_secret=read_secret("jwt_secret", "JWT_SECRET", DEFAULT_JWT_SECRET),
            vault_integration_enabled=env_bool("VAULT_INTEGRATION_ENABLED"),
            database_enabled=env_bool("DATABASE_ENABLED"),
            datasource_url=os.getenv("DATABASE_URL", DEFAULT_DATASOURCE_URL),
            datasource_username=read_secret(
                "db_username", "DB_USER", DEFAULT_DATASOURCE_USERNAME
            ),
        )

    def is_api_key_configured(self) -> bool:
        """API key is present and is not the default literal."""
        return self.external_api_key is not None and self.external_api_key != DEFAULT_API_KEY

    def is_jwt_secret_configured(self) -> bool:
        """JWT secret is set, non-empty and not the default literal."""
        return bool(self.jwt_secret) and self.jwt_secret != DEFAULT_JWT_SECRET

    def is_properly_configured(self) -> bool:
        """
        Check whether both secrets came from the secret store.

        Plain string comparison against the defaults: a store value that
        equals a default literal is indistinguishable from a default.
        """
        return (
            self.is_api_key_configured()
            and self.jwt_secret is not None
            and self.jwt_secret != DEFAULT_JWT_SECRET
        )

    def configuration_source(self) -> str:
        """Return "vault" or "defaults"."""
        return "vault" if self.is_properly_configured() else "defaults"
