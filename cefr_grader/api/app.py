"""FastAPI application for the grading service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cefr_grader import __version__
from cefr_grader.api.routes import VALIDATION_MESSAGES, router
from cefr_grader.config import Settings, get_settings
from cefr_grader.grading import GradingEngine
from cefr_grader.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: GradingEngine | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration settings. Uses global settings if not provided.
        engine: Grading engine to serve. Created (and closed on shutdown) if not provided.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        app.state.engine = engine or GradingEngine(settings)
        logger.info("Grading with model '%s'", settings.default_model_key)
        yield
        if owned:
            await app.state.engine.aclose()

    app = FastAPI(
        title="CEFR Grader",
        description="Rubric and CEFR grading with heuristic fallback",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = VALIDATION_MESSAGES.get(request.url.path, "Invalid request")
        logger.info("Rejected %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Grading error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app
