"""
Worklog Tray API - Main FastAPI application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..commands import Commands
from ..config import Config, CredentialStore
from ..errors import (
    ClientError,
    InsufficientPermission,
    InvalidCredentials,
    InvalidDuration,
    InvalidPreference,
    InvalidTimestamp,
    NotAuthenticated,
    NotFound,
    PresentationUnavailable,
    SessionSuperseded,
    TimedOut,
)
from ..messages import describe_error
from .models.schemas import ErrorResponse
from .routers import jira, reminder, window

logger = logging.getLogger(__name__)

# 未列出的 ClientError 一律視為上游問題 (502)
STATUS_FOR_ERROR = {
    NotAuthenticated: 401,
    InvalidCredentials: 401,
    InsufficientPermission: 403,
    NotFound: 404,
    InvalidDuration: 422,
    InvalidTimestamp: 422,
    SessionSuperseded: 409,
    TimedOut: 504,
}


def status_for(error: ClientError) -> int:
    for error_type, status_code in STATUS_FOR_ERROR.items():
        if isinstance(error, error_type):
            return status_code
    return 502


def error_body(kind: str, detail: str) -> dict:
    return ErrorResponse(kind=kind, detail=detail).model_dump()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown events"""
    commands: Commands = app.state.commands
    # 服務啟動即排程每日提醒，不必等到連線
    commands.ensure_reminder()
    yield
    commands.shutdown()


def create_app(commands: Optional[Commands] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    if commands is None:
        commands = Commands(Config.load(), store=CredentialStore())

    app = FastAPI(
        title="Worklog Tray API",
        description="Log work to Jira from the tray, with a daily reminder.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.commands = commands

    # CORS middleware for the local web UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            f"http://localhost:{commands.config.api_port}",
            f"http://127.0.0.1:{commands.config.api_port}",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError):
        status_code = status_for(exc)
        logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind, exc)
        return JSONResponse(status_code=status_code, content=error_body(exc.kind, str(exc) or describe_error(exc)))

    @app.exception_handler(PresentationUnavailable)
    async def presentation_error_handler(request: Request, exc: PresentationUnavailable):
        return JSONResponse(status_code=409, content=error_body(exc.kind, describe_error(exc)))

    @app.exception_handler(InvalidPreference)
    async def preference_error_handler(request: Request, exc: InvalidPreference):
        return JSONResponse(status_code=422, content=error_body(exc.kind, str(exc)))

    app.include_router(jira.router, prefix="/api/jira", tags=["jira"])
    app.include_router(window.router, prefix="/api/window", tags=["window"])
    app.include_router(reminder.router, prefix="/api/reminder", tags=["reminder"])

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "ok",
            "version": __version__,
            "connected": commands.is_connected(),
        }

    return app
