"""Shared FastAPI dependencies."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from services.sessions import (
    BruteForceCounter,
    RequestAdapter,
    Session,
    SessionConfigError,
    SessionPipeline,
    SqlRecordAccessor,
    get_brute_force_counter,
)

logger = logging.getLogger(__name__)

SESSION_SCOPE = "user"


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_counter_store() -> BruteForceCounter:
    return get_brute_force_counter()


def get_pipeline(
    db: AsyncSession = Depends(get_db),
    counter: BruteForceCounter = Depends(get_counter_store),
) -> SessionPipeline:
    return SessionPipeline(SqlRecordAccessor(db), counter=counter)


async def create_session(
    pipeline: SessionPipeline,
    request: Request,
    response: Response,
    credentials: object | None = None,
    *,
    remember_me: bool | None = None,
) -> Session:
    """Run the pipeline for the request, mapping configuration errors to 503."""
    form = None
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
    adapter = RequestAdapter(request, response, form=form)
    try:
        return await pipeline.create(
            SESSION_SCOPE,
            credentials,
            adapter=adapter,
            remember_me=remember_me,
        )
    except SessionConfigError as exc:
        logger.error(
            "Session pipeline misconfigured",
            extra={"scope": SESSION_SCOPE, "error": str(exc)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not available",
        ) from exc


async def get_current_session(
    request: Request,
    response: Response,
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> Session:
    """Resolve the caller's session from the enabled transports.

    The session is returned even when unauthenticated so handlers can report
    its errors and keep the cookie changes the pipeline made.
    """
    return await create_session(pipeline, request, response)
