"""Board backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from boardcore.api.v1.router import api_v1_router
from boardcore.config import settings
from boardcore.core.exceptions import BoardException
from boardcore.db.session import engine
from boardcore.db.utils import create_tables
from boardcore.schemas import ErrorDetail, ErrorResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("api_starting", environment=settings.ENVIRONMENT, debug=settings.DEBUG)

    # Auto-create tables on startup (safe for fresh deployments)
    await create_tables()
    logger.info("database_tables_ready")

    yield

    logger.info("api_stopping")
    await engine.dispose()


app = FastAPI(
    title="Board API",
    description="Bulletin board and Q&A backend with consistent engagement counters",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(BoardException)
async def board_exception_handler(request: Request, exc: BoardException) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, code=exc.code, message=exc.message)
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    # Another request updated the same row first; the transaction was rolled back.
    logger.warning("concurrent_modification", path=request.url.path, error=str(exc))
    return _error(409, "concurrent_modification", "The resource was modified concurrently. Re-fetch and try again.")


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity_conflict", path=request.url.path, error=str(exc.orig))
    return _error(409, "concurrent_modification", "The resource was modified concurrently. Re-fetch and try again.")


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Board API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
