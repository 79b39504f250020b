"""
Vault demo service - secret provenance and database diagnostics over HTTP.

Secrets are injected by the Vault agent (Kubernetes auth) before the
process starts; the service only reads them.
"""

import uvicorn

from src.api.app import create_app
from src.config.settings import Settings
from src.logger.logger import init_logger
from src.logger.stream_writer import StreamWriter
from src.logger.types import Category, Level, category, param

_UVICORN_LEVELS = {Level.WARN: "warning", Level.FATAL: "critical"}


def main() -> None:
    """Main entry point."""
    settings = Settings()

    log_writer = StreamWriter()
    logger = init_logger(
        service_name=settings.service_name,
        environment=settings.environment,
        writer=log_writer,
        level=settings.log_level,
    )

    logger.info(
        "Starting service",
        category(Category.CONFIG),
        param("service_name", settings.service_name),
        param("http_host", settings.http.host),
        param("http_port", settings.http.port),
    )

    app = create_app(settings)

    try:
        # access log отключён: запросы логирует middleware
        uvicorn.run(
            app,
            host=settings.http.host,
            port=settings.http.port,
            access_log=False,
            log_level=_UVICORN_LEVELS.get(logger.min_level, logger.min_level.value),
        )
    finally:
        log_writer.close()


if __name__ == "__main__":
    main()
