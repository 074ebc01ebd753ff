"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import router as api_v1_router
from core import AccountError, settings

API_PREFIX = "/api/v1"
logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def _account_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, AccountError) else AccountError(str(exc))
    if error.status_code >= 500:
        logger.error(
            "Account operation failed",
            extra={"path": request.url.path, "kind": error.kind},
            exc_info=error.__cause__,
        )
    return JSONResponse(error.to_payload(), status_code=error.status_code)


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title=settings.app_name)

    if settings.cors_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.add_exception_handler(AccountError, _account_error_handler)
    application.include_router(api_v1_router, prefix=API_PREFIX)

    @application.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
