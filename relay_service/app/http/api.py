from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI

from relay_service.app.http.routers.chat import router as chat_router
from relay_service.app.http.routers.health import router as health_router
from relay_service.app.http.routers.models import router as models_router
from relay_service.app.http.routers.tools import router as tools_router


def create_app(settings: Optional[Dict[str, Any]] = None, chat_service=None) -> FastAPI:
    """Create and configure the FastAPI application with DI"""
    from relay_service.core.config import load_settings
    from relay_service.core.factory import ServiceFactory
    from relay_service.core.logging import configure_logging

    settings = settings if settings is not None else load_settings()
    configure_logging(settings)
    if chat_service is None:
        chat_service = ServiceFactory(settings).get_chat_service()

    app = FastAPI(title="Relay", version="0.1.0")
    # store service on app state
    app.state.chat_svc = chat_service

    api_router = APIRouter(prefix="/api")
    api_router.include_router(chat_router)
    api_router.include_router(health_router)
    api_router.include_router(models_router)
    api_router.include_router(tools_router)

    app.include_router(api_router)
    return app
