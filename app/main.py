"""FastAPI app entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings, get_settings
from app.core.errors import PartialStreamError
from app.routers import api, frontend
from app.schema.video import ErrorResponse

logger = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).resolve().parent / "static"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    payload = ErrorResponse(error=message).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=payload, headers=headers)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "query")
        message = f"Invalid parameter {field}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, PartialStreamError):
        # Headers are already out; the server aborts the connection after this.
        logger.warning("Download aborted mid-stream", extra={"path": request.url.path, "bytes_sent": exc.bytes_sent})
    else:
        logger.exception("Unhandled error", extra={"path": request.url.path})
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Video Hub", version="0.1.0")
    app.dependency_overrides[get_settings] = lambda: settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(api.router)
    app.include_router(frontend.router)
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")

    return app


app = create_app()


def run() -> None:
    """Serve the application on the configured host and port."""

    settings = get_settings()
    logger.info("Video Hub listening on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
