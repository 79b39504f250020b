"""Основной logger для структурированного логирования."""

import inspect
import os
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.logger.stream_writer import StreamWriter
from src.logger.types import Category, Field, Level, LogEntry


class Logger:
    """Logger для структурированного логирования в JSON lines."""

    def __init__(
        self,
        service_name: str,
        environment: str,
        writer: StreamWriter | None = None,
        min_level: Level = Level.INFO,
    ) -> None:
        """
        Initialize Logger.

        Args:
            service_name: Имя сервиса
            environment: Окружение (dev, stage, prod)
            writer: StreamWriter для записи логов
            min_level: Минимальный уровень, ниже которого записи отбрасываются
        """
        self.service_name = service_name
        self.environment = environment
        self.writer = writer
        self.min_level = min_level
        self.instance_id = self._get_instance_id()
        self.node_name = self._get_node_name()

        # Контекстные поля
        self._fields: dict[str, Any] = {}
        self._category: Category | None = None
        self._request_id: str | None = None

    def trace(self, msg: str, *fields: Field) -> None:
        """Log trace level message."""
        self._log(Level.TRACE, msg, None, *fields)

    def debug(self, msg: str, *fields: Field) -> None:
        """Log debug level message."""
        self._log(Level.DEBUG, msg, None, *fields)

    def info(self, msg: str, *fields: Field) -> None:
        """Log info level message."""
        self._log(Level.INFO, msg, None, *fields)

    def warn(self, msg: str, *fields: Field) -> None:
        """Log warn level message."""
        self._log(Level.WARN, msg, None, *fields)

    def error(self, msg: str, err: Exception | None = None, *fields: Field) -> None:
        """Log error level message."""
        self._log(Level.ERROR, msg, err, *fields)

    def fatal(self, msg: str, err: Exception | None = None, *fields: Field) -> None:
        """Log fatal level message and exit."""
        self._log(Level.FATAL, msg, err, *fields)
        raise SystemExit(1)

    def enabled_for(self, level: Level) -> bool:
        """Проверяет, пройдёт ли уровень фильтр."""
        return level.severity >= self.min_level.severity

    def _log(
        self,
        level: Level,
        msg: str,
        err: Exception | None,
        *fields: Field,
    ) -> None:
        """Основной метод логирования."""
        if not self.enabled_for(level):
            return

        # Получаем информацию о caller
        frame = inspect.currentframe()
        caller_frame = frame.f_back.f_back if frame and frame.f_back else None

        function_name = None
        file_path = None
        line_number = None

        if caller_frame:
            function_name = caller_frame.f_code.co_name
            file_path = self._clean_file_path(caller_frame.f_code.co_filename)
            line_number = caller_frame.f_lineno

        # Формируем context из полей
        context: dict[str, Any] = dict(self._fields)
        category = self._category

        for field in fields:
            # Извлекаем категорию если она задана
            if field.key == "_category":
                if isinstance(field.value, Category):
                    category = field.value
                continue
            context[field.key] = field.value

        duration_ms = context.pop("duration_ms", None)
        if duration_ms is not None:
            duration_ms = int(duration_ms)

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            service_name=self.service_name,
            instance_id=self.instance_id,
            node_name=self.node_name,
            environment=self.environment,
            level=level,
            category=category,
            request_id=self._request_id,
            function_name=function_name,
            file_path=file_path,
            line_number=line_number,
            message=msg,
            context=context if context else None,
            duration_ms=duration_ms,
        )

        if err:
            entry.error_message = str(err)
            # Stack trace только для серьёзных ошибок
            if level in (Level.ERROR, Level.FATAL):
                entry.stack_trace = "".join(
                    traceback.format_exception(type(err), err, err.__traceback__)
                )

        if self.writer:
            try:
                self.writer.write(entry)
            except (OSError, ValueError) as write_err:
                print(f"[LOGGER ERROR] Failed to write log: {write_err}", file=sys.stderr)
        else:
            # Fallback: пишем в stdout если writer не инициализирован
            print(f"[{entry.level.value}] {entry.category}: {entry.message}")

    def with_category(self, category: Category) -> "Logger":
        """Возвращает новый logger с указанной категорией."""
        new_logger = self._copy()
        new_logger._category = category
        return new_logger

    def with_request_id(self, request_id: str) -> "Logger":
        """Возвращает новый logger с request ID."""
        new_logger = self._copy()
        new_logger._request_id = request_id
        return new_logger

    def with_fields(self, *fields: Field) -> "Logger":
        """Возвращает новый logger с дополнительными полями."""
        new_logger = self._copy()
        for field in fields:
            new_logger._fields[field.key] = field.value
        return new_logger

    def _copy(self) -> "Logger":
        """Создаёт копию logger."""
        new_logger = Logger(
            self.service_name, self.environment, self.writer, self.min_level
        )
        new_logger.instance_id = self.instance_id
        new_logger.node_name = self.node_name
        new_logger._fields = dict(self._fields)
        new_logger._category = self._category
        new_logger._request_id = self._request_id
        return new_logger

    @staticmethod
    def _get_instance_id() -> str:
        """Получает уникальный ID инстанса из env или генерирует."""
        # Kubernetes pod name
        if hostname := os.getenv("HOSTNAME"):
            return hostname
        # Docker container ID
        if container_id := os.getenv("CONTAINER_ID"):
            return container_id
        # Генерируем UUID для локальной разработки
        return str(uuid.uuid4())

    @staticmethod
    def _get_node_name() -> str | None:
        """Получает имя ноды из env (для K8s)."""
        return os.getenv("NODE_NAME")

    @staticmethod
    def _clean_file_path(file_path: str) -> str:
        """Очищает путь к файлу от абсолютного пути."""
        path = Path(file_path)

        parts = path.parts
        if "src" in parts:
            idx = parts.index("src")
            return str(Path(*parts[idx:]))

        return path.name


# Глобальный logger instance
_global_logger: Logger | None = None


def get_logger() -> Logger:
    """Возвращает глобальный logger instance."""
    if _global_logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _global_logger


def init_logger(
    service_name: str,
    environment: str,
    writer: StreamWriter | None = None,
    level: Level | str = Level.INFO,
) -> Logger:
    """
    Инициализирует глобальный logger.

    Args:
        service_name: Имя сервиса
        environment: Окружение (dev, stage, prod)
        writer: StreamWriter для записи логов
        level: Минимальный уровень (Level или имя из LOG_LEVEL)

    Returns:
        Logger instance
    """
    global _global_logger
    min_level = level if isinstance(level, Level) else Level.parse(level)
    _global_logger = Logger(service_name, environment, writer, min_level)
    return _global_logger
