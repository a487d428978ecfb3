"""Newsbrief: FastAPI entrypoint (briefings API + health check)."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from api.briefings import router as briefings_router
from newsbrief.core.config import settings
from newsbrief.core.db import async_session, engine
from newsbrief.core.exceptions import (
    BriefingNotFoundError,
    NewsbriefError,
    QuotaExceededError,
    UnauthorizedError,
    UserNotFoundError,
)
from newsbrief.orchestrators.briefing import (
    InProcessDispatcher,
    build_briefing_service,
    build_pipeline,
)

logging.basicConfig(level=getattr(logging, settings.log_level))
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[NewsbriefError], int]] = [
    (UserNotFoundError, 404),
    (BriefingNotFoundError, 404),
    (UnauthorizedError, 403),
    (QuotaExceededError, 429),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Newsbrief...")
    pipeline = build_pipeline(settings, async_session)
    service = build_briefing_service(settings, async_session, pipeline=pipeline)
    app.state.briefing_service = service

    # Resume briefings stranded by a previous process
    try:
        requeued = await service.reclaim_stale()
        if requeued:
            logger.info("Requeued %d stale briefings on startup", requeued)
    except Exception as e:
        logger.error("Stale briefing sweep failed: %s", e)

    yield

    if isinstance(service.dispatcher, InProcessDispatcher):
        await service.dispatcher.drain()
    await pipeline.news.close()
    await pipeline.scraper.close()
    await engine.dispose()
    logger.info("Shutting down Newsbrief...")


app = FastAPI(title="Newsbrief", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(briefings_router)


@app.exception_handler(NewsbriefError)
async def newsbrief_error_handler(request: Request, exc: NewsbriefError):
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code == 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": exc.code},
    )


@app.get("/health")
async def health():
    checks = {"api": "ok"}
    try:
        async with async_session() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        checks["database"] = "error"
    status = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, **checks}
