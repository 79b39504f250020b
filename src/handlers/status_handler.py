"""Handlers for the status and diagnostics endpoints."""

import time
from typing import Any

import psycopg2

from src.config.app import AppConfiguration
from src.database.postgres import PostgresClient
from src.domain.config import mask_secret, secret_source, username_source
from src.logger.logger import get_logger
from src.logger.types import Category, category, error, param

APPLICATION_NAME = "MyApp with Vault Integration"


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class StatusHandler:
    """
    Builds the diagnostic payloads served over HTTP.

    Every method is a read: the configuration snapshot is immutable and the
    only shared resource touched is the Postgres pool in health().
    """

    def __init__(self, config: AppConfiguration, postgres_client: PostgresClient) -> None:
        """
        Initialize StatusHandler.

        Args:
            config: Configuration snapshot built at startup
            postgres_client: Pooled PostgreSQL client used by the health probe
        """
        self.config = config
        self.postgres = postgres_client
        self.logger = get_logger().with_category(Category.SECURITY)

    def home(self) -> dict[str, Any]:
        """Liveness summary."""
        return {
            "application": APPLICATION_NAME,
            "status": "running",
            "vault-integration": "enabled",
            "timestamp": now_ms(),
        }

    def configuration(self) -> dict[str, Any]:
        """Configuration summary. The API key is shown as-is (demo only)."""
        return {
            "external-api-key": self.config.external_api_key,
            "jwt-secret-configured": self.config.is_jwt_secret_configured(),
            "database-url": self.config.datasource_url,
            "database-username": self.config.datasource_username,
        }

    def health(self) -> dict[str, Any]:
        """
        Health summary with a single database probe.

        A database failure is reported in the body; the overall status
        stays "healthy" so the orchestrator does not restart the pod
        because of the database.
        """
        health: dict[str, Any] = {}

        try:
            url = self.postgres.ping()
            self.logger.trace(
                "Database probe succeeded",
                category(Category.DATABASE),
                param("url", url),
            )
            health["database"] = "connected"
            health["database-url"] = url
        except (psycopg2.Error, ConnectionError) as e:
            self.logger.warn(
                "Database probe failed",
                category(Category.DATABASE),
                error(e),
            )
            health["database"] = "disconnected"
            health["database-error"] = str(e).strip()

        health["vault-secrets"] = (
            "configured" if self.config.is_api_key_configured() else "using-defaults"
        )
        health["status"] = "healthy"
        health["timestamp"] = now_ms()
        return health

    def vault_test(self) -> dict[str, Any]:
        """Report where each secret came from, with masked previews."""
        result = {
            "external-api-key-source": secret_source(self.config.external_api_key).value,
            "jwt-secret-source": secret_source(self.config.jwt_secret).value,
            "database-user-source": username_source(self.config.datasource_username).value,
            "external-api-key-masked": mask_secret(self.config.external_api_key),
            "jwt-secret-masked": mask_secret(self.config.jwt_secret),
        }
        self.logger.debug(
            "Vault provenance checked",
            param("configuration_source", self.config.configuration_source()),
        )
        return result
