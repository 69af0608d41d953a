from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from agent_core.config import OpenerConfig, get_opener_config
from agent_core.filesystem.uploads import UploadGatekeeper
from agent_core.logging.logger import get_logger
from agent_core.openers.dispatcher import Dispatcher

from .config import ServerSettings, get_settings
from .limits import UploadSizeLimit
from .responses import CORS_HEADERS, error_response
from .routes import files, health


def _describe_validation_error(exc: RequestValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        details.append(f"{location}: {error.get('msg', 'invalid')}")
    return "Failed to get file from request: " + "; ".join(details)


def create_app(
    settings: ServerSettings | None = None,
    config: OpenerConfig | None = None,
    dispatcher: Dispatcher | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    config = config or get_opener_config()
    dispatcher = dispatcher or Dispatcher(config)
    logger = get_logger("server")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        dispatcher.shutdown(wait=False)

    app = FastAPI(title="File Opener Agent", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.opener_config = config
    app.state.dispatcher = dispatcher
    app.state.gatekeeper = UploadGatekeeper(config, dispatcher)

    app.add_middleware(UploadSizeLimit, max_bytes=config.max_upload_size)

    # outermost: every response, including unexpected 500s, gets the CORS headers
    @app.middleware("http")
    async def cors_headers(request: Request, call_next: Callable):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
                response = error_response("Internal server error", 500)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(_describe_validation_error(exc), 400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return error_response("Internal server error", 500, headers=CORS_HEADERS)

    app.include_router(health.router)
    app.include_router(files.router)

    return app
