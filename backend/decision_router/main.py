"""Decision Router API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DecisionRouterError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Service container built on startup via lifespan and stored on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app() factory so tests build an app with their own settings and LLM
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from decision_router.api.dependencies import build_container
from decision_router.api.error_handlers import register_error_handlers
from decision_router.api.routes import conversations, health
from decision_router.config import Settings, get_settings
from decision_router.core.protocols import LanguageModel
from decision_router.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None, llm: LanguageModel | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        app.state.container = build_container(settings, llm)
        logger.info(
            f"Decision Router API started (spec dir: {settings.spec_directory}, "
            f"LLM: {'on' if app.state.container.llm.is_available() else 'off'})",
        )
        yield
        logger.info("Decision Router API shutting down")

    app = FastAPI(title="Decision Router API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(conversations.router)

    register_error_handlers(app)
    return app


app = create_app()
