import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from playercard.api import (
    character_cache_router,
    enrich_router,
    health_router,
    season_config_router,
)
from playercard.config import configure_logging, settings
from playercard.db.database import init_db
from playercard.models.failure import (
    UNKNOWN_FAILURE_MESSAGE,
    ApiResponse,
    KnownError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging()
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("playercard"),
    lifespan=lifespan,
)

app.include_router(character_cache_router)
app.include_router(enrich_router)
app.include_router(health_router)
app.include_router(season_config_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _envelope(body: ApiResponse, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Known failures keep their status code and explain themselves."""
    if exc.detail:
        logger.info("%s (%s): %s", exc.kind.value, exc.status_code, exc.detail)
    return _envelope(exc.to_response(), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and query strings are plain 400s."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return _envelope(ApiResponse.error(f"Invalid request: {problems}"), status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(
        ApiResponse.error(UNKNOWN_FAILURE_MESSAGE),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
