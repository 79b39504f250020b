"""HTTP routes. All endpoints are read-only GETs returning JSON objects."""

from typing import Any

from fastapi import APIRouter, Depends

from src.api.dependencies import get_status_handler
from src.handlers.status_handler import StatusHandler

router = APIRouter()


@router.get("/")
def home(handler: StatusHandler = Depends(get_status_handler)) -> dict[str, Any]:
    return handler.home()


@router.get("/config")
def get_configuration(handler: StatusHandler = Depends(get_status_handler)) -> dict[str, Any]:
    return handler.configuration()


# Sync endpoint: psycopg2 блокирует, FastAPI выполнит его в threadpool
@router.get("/health")
def health(handler: StatusHandler = Depends(get_status_handler)) -> dict[str, Any]:
    return handler.health()


@router.get("/vault-test")
def vault_test(handler: StatusHandler = Depends(get_status_handler)) -> dict[str, Any]:
    return handler.vault_test()


@router.get("/actuator/health")
def liveness_probe() -> dict[str, Any]:
    """Process liveness for the container HEALTHCHECK; never touches the database."""
    return {"status": "UP"}
