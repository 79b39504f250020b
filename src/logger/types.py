"""Types and constants for structured logging."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Level(str, Enum):
    """Log level определяет уровень важности лога."""

    TRACE = "trace"  # Детальная трассировка выполнения
    DEBUG = "debug"  # Отладочная информация
    INFO = "info"  # Информационные сообщения
    WARN = "warn"  # Предупреждения
    ERROR = "error"  # Ошибки (recoverable)
    FATAL = "fatal"  # Критические ошибки (требуют вмешательства)

    @property
    def severity(self) -> int:
        """Порядковый номер уровня для фильтрации."""
        return _SEVERITY[self]

    @classmethod
    def parse(cls, value: str | None, default: "Level | None" = None) -> "Level":
        """Parse level name from config, falling back to default (info)."""
        fallback = default or cls.INFO
        if not value:
            return fallback
        name = value.strip().lower()
        if name == "warning":
            name = "warn"
        try:
            return cls(name)
        except ValueError:
            return fallback


_SEVERITY = {level: idx for idx, level in enumerate(Level)}


class Category(str, Enum):
    """Category определяет категорию события для группировки логов."""

    HTTP = "http"  # Входящие HTTP запросы
    DATABASE = "database"  # Операции с БД
    SECURITY = "security"  # Секреты и их источники
    CONFIG = "config"  # Загрузка конфигурации
    LIFECYCLE = "lifecycle"  # Старт и остановка сервиса


@dataclass
class LogEntry:
    """LogEntry представляет одну запись лога."""

    timestamp: datetime
    service_name: str
    instance_id: str
    environment: str
    level: Level
    message: str
    ingestion_time: datetime = field(default_factory=_utcnow)
    node_name: str | None = None
    category: Category | None = None
    request_id: str | None = None
    function_name: str | None = None
    file_path: str | None = None
    line_number: int | None = None
    error_message: str | None = None
    stack_trace: str | None = None
    context: dict[str, Any] | None = None
    duration_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON serialization; empty optional fields are dropped."""
        data: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "category": self.category.value if self.category else None,
            "message": self.message,
            "service_name": self.service_name,
            "instance_id": self.instance_id,
            "node_name": self.node_name,
            "environment": self.environment,
            "request_id": self.request_id,
            "function_name": self.function_name,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "error": self.error_message,
            "stack_trace": self.stack_trace,
            "context": self.context,
            "duration_ms": self.duration_ms,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class Field:
    """Field для структурированных данных в логах."""

    key: str
    value: Any


# Helper функции для создания полей


def category(cat: Category) -> Field:
    """Создаёт поле для категории лога."""
    return Field(key="_category", value=cat)


def param(key: str, value: Any) -> Field:
    """Универсальная функция для добавления параметра."""
    return Field(key=key, value=value)


def duration_ms(value: int | float) -> Field:
    """Создаёт поле для duration в миллисекундах."""
    return Field(key="duration_ms", value=value)


def error(err: Exception) -> Field:
    """Создаёт поле для ошибки."""
    return Field(key="error", value=str(err))
