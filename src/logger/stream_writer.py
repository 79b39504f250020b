"""JSON lines writer для логов."""

import json
import sys
import threading
from typing import IO

from src.logger.types import LogEntry


class StreamWriter:
    """StreamWriter пишет каждую запись лога одной JSON строкой в поток."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        """
        Initialize StreamWriter.

        Args:
            stream: Поток для записи (по умолчанию stdout)
        """
        self.stream = stream if stream is not None else sys.stdout
        # Запросы обрабатываются в threadpool, строки не должны перемешиваться
        self._lock = threading.Lock()
        self._closed = False

    def write(self, entry: LogEntry) -> None:
        """Сериализует запись и пишет в поток."""
        if self._closed:
            return

        try:
            line = json.dumps(entry.to_dict(), default=str)
        except (TypeError, ValueError):
            # Последний fallback - простой текст
            line = f"[{entry.level.value}] {entry.category}: {entry.message}"

        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def close(self) -> None:
        """Закрывает writer (сам поток не закрывается)."""
        with self._lock:
            self._closed = True
            self.stream.flush()
