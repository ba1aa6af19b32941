"""FastAPI application factory.

Hosts the NiceGUI chat page and a health endpoint. Chat turns are driven
from the UI process, so there are no chat routes here.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from delfin_chat import __version__
from delfin_chat.llm.config import get_provider_type
from delfin_chat.llm.registry import ProviderRegistry, create_default_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log application startup and shutdown."""
    logger.info(f"Starting Delfin Chat (provider: {get_provider_type()})...")
    yield
    logger.info("Shutting down Delfin Chat...")


def create_app(registry: ProviderRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        registry: Provider registry reported by the health endpoint.

    Returns:
        Configured FastAPI application instance.
    """
    if registry is None:
        registry = create_default_registry()

    application = FastAPI(
        title="Delfin Chat",
        description="Browser chat UI streaming replies from pluggable LLM providers.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health")
    async def health_check() -> dict[str, str | list[str]]:
        """Check service health status."""
        return {
            "status": "healthy",
            "service": "delfin-chat",
            "provider": get_provider_type(),
            "providers": registry.get_available_providers(),
        }

    return application
