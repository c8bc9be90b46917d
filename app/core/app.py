from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.main import api_router
from app.core.exceptions import TasteMatchError
from app.services.bundle import MatchingBundle

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    if getattr(app.state, "bundle", None) is None:
        app.state.bundle = MatchingBundle.from_settings(settings)
        logger.info("Matching services initialized")
    yield
    try:
        await app.state.bundle.close()
        logger.info("Matching services closed")
    except Exception as exc:
        logger.warning(f"Failed to close matching services: {exc}")


app = FastAPI(
    title="TuneMatch",
    description="Music taste profiles and pairwise compatibility for listening sessions",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TasteMatchError)
async def taste_match_error_handler(request: Request, exc: TasteMatchError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router)
