"""FastAPI dependencies resolved from application state."""

from fastapi import Request

from src.handlers.status_handler import StatusHandler


def get_status_handler(request: Request) -> StatusHandler:
    return request.app.state.status_handler
