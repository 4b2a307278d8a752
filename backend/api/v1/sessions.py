"""Session endpoints: log in, inspect, log out and hand off."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.deps import SESSION_SCOPE, create_session, get_current_session, get_pipeline
from services.sessions import (
    PasswordCredentials,
    Session,
    SessionErrorKind,
    SessionPipeline,
)
from services.sessions.stages.params import PARAMS_SUFFIX

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class LoginRequest(BaseModel):
    # Either the login name or the email address.
    login: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    remember_me: bool | None = None


class SessionResponse(BaseModel):
    scope: str
    record_id: str
    login: str
    resolved_by: str | None = None
    fresh_login: bool
    remember_me: bool
    remember_me_until: datetime | None = None
    last_request_at: datetime | None = None


class HandoffResponse(BaseModel):
    token: str
    param: str
    expires_at: datetime


def _to_response(session: Session) -> SessionResponse:
    record = session.record
    return SessionResponse(
        scope=session.scope,
        record_id=str(record.id),
        login=record.login,
        resolved_by=session.resolved_by.value if session.resolved_by else None,
        fresh_login=session.fresh_login,
        remember_me=bool(session.remember_me),
        remember_me_until=session.remember_me_until,
        last_request_at=session.last_activity_time,
    )


def _unauthenticated(session: Session, response: Response) -> JSONResponse:
    """Build a 401 that keeps the cookie and challenge headers the pipeline set."""
    status_code = status.HTTP_401_UNAUTHORIZED
    if session.has_error(SessionErrorKind.LOCKED_OUT):
        status_code = status.HTTP_429_TOO_MANY_REQUESTS
    failure = JSONResponse(
        status_code=status_code,
        content={
            "detail": session.error_messages(),
            "errors": [
                {"stage": error.stage, "kind": error.kind.value} for error in session.errors
            ],
        },
    )
    failure.raw_headers.extend(response.raw_headers)
    return failure


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> SessionResponse | JSONResponse:
    credentials = PasswordCredentials(
        login=payload.login,
        password=payload.password,
        remember_me=payload.remember_me,
    )
    session = await create_session(pipeline, request, response, credentials)
    if not session.is_authenticated:
        return _unauthenticated(session, response)
    logger.info(
        "User logged in",
        extra={"scope": session.scope, "record_id": session.identifier},
    )
    return _to_response(session)


@router.get("/current", response_model=SessionResponse)
async def read_current_session(
    response: Response,
    session: Session = Depends(get_current_session),
) -> SessionResponse | JSONResponse:
    if not session.is_authenticated:
        return _unauthenticated(session, response)
    return _to_response(session)


@router.delete("/current", status_code=status.HTTP_204_NO_CONTENT)
async def destroy_current_session(
    response: Response,
    everywhere: bool = False,
    session: Session = Depends(get_current_session),
) -> Response:
    await session.destroy(everywhere=everywhere)
    response.status_code = status.HTTP_204_NO_CONTENT
    return response


@router.post("/handoff", response_model=HandoffResponse)
async def create_handoff_token(
    session: Session = Depends(get_current_session),
    pipeline: SessionPipeline = Depends(get_pipeline),
) -> HandoffResponse:
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    token = await pipeline.issue_perishable_token(SESSION_SCOPE, session.record)
    return HandoffResponse(
        token=token,
        param=session.key(PARAMS_SUFFIX),
        expires_at=pipeline.clock() + session.config.perishable_token_valid_for,
    )
