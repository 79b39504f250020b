"""Settings module for the vault-demo service."""

import os

from src.config.app import AppConfiguration
from src.database.postgres import PostgresConfig


class HttpConfig:
    """HTTP server configuration."""

    def __init__(self) -> None:
        self.host = os.getenv("HTTP_HOST", "0.0.0.0")
        self.port = int(os.getenv("HTTP_PORT", "8080"))


class Settings:
    """Application settings."""

    def __init__(self) -> None:
        # Service info
        self.environment = os.getenv("ENVIRONMENT", "dev")
        self.service_name = os.getenv("SERVICE_NAME", "myapp")
        self.service_version = os.getenv("SERVICE_VERSION", "0.1.0")
        self.log_level = os.getenv("LOG_LEVEL", "info")

        # HTTP
        self.http = HttpConfig()

        # PostgreSQL
        self.postgres = PostgresConfig()

        # Значения, которые Vault agent внедрил до старта процесса
        self.app = AppConfiguration.from_env()
