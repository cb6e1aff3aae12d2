"""FastAPI application for the document assistant."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..services import Services, build_services
from ..utils.errors import AppError, ErrorCode, format_error_for_log, format_error_for_user
from ..utils.logger import get_logger
from .routes import router

logger = get_logger(__name__)


def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        services: Prebuilt services (tests pass fakes here). When omitted
            they are built from settings at startup.
        settings: Settings to build services from (defaults to the environment)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = services is None
        if owned:
            app.state.services = build_services(settings or Settings.from_env())
            existed = await asyncio.to_thread(app.state.services.vector_store.ensure_collection)
            logger.info(f"Vector store ready (collection {'existed' if existed else 'created'})")
        else:
            app.state.services = services

        logger.info("Document assistant API ready")
        yield

        if owned:
            await app.state.services.close()
        logger.info("Document assistant API shut down")

    app = FastAPI(
        title="Document Assistant",
        description="Chat with uploaded documents and look up Slack status reports.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(format_error_for_log(exc))
        else:
            logger.info(f"{request.url.path} rejected: {exc}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.user_message, "code": exc.code.value},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"error": f"Invalid request: {problems}", "code": ErrorCode.INVALID_REQUEST.value},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {format_error_for_log(exc)}")
        return JSONResponse(
            status_code=500,
            content={"error": format_error_for_user(exc), "code": ErrorCode.PROCESSING_ERROR.value},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(router)
    return app
