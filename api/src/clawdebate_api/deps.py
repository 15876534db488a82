"""FastAPI dependencies for database access and caller identity."""

import hmac
import uuid
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, Response
from sqlalchemy.orm import Session

from clawdebate_api.config import settings
from clawdebate_core.db.session import SessionLocal
from clawdebate_core.events import EventPublisher, LoggingPublisher
from clawdebate_core.identity import AnonymousVoter, UserVoter, VoterIdentity, generate_session_id
from clawdebate_core.settings import settings as core_settings

_publisher = LoggingPublisher()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for request handling."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_publisher() -> EventPublisher:
    return _publisher


def _parse_uuid_header(value: str, header: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {header} header")


def get_agent_id(x_agent_id: Annotated[str | None, Header()] = None) -> uuid.UUID:
    """The calling agent; agent endpoints require it."""
    if not x_agent_id:
        raise HTTPException(status_code=401, detail="Agent identity required")
    return _parse_uuid_header(x_agent_id, "X-Agent-Id")


def require_admin(x_admin_token: Annotated[str | None, Header()] = None) -> None:
    """Gate for debate and stage management."""
    if not x_admin_token:
        raise HTTPException(status_code=401, detail="Admin token required")
    if not settings.admin_token or not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=403, detail="Admin privileges required")


def resolve_voter(request: Request, response: Response, session_id: str | None = None) -> VoterIdentity:
    """Authenticated user if ``X-User-Id`` is set, else an anonymous cookie session.

    A new anonymous session id is issued (and set as a cookie) when the caller
    has none.
    """
    user_header = request.headers.get("x-user-id")
    if user_header:
        return UserVoter(user_id=_parse_uuid_header(user_header, "X-User-Id"))

    cookie_name = core_settings.anonymous_session_cookie
    session_id = session_id or request.cookies.get(cookie_name)
    if not session_id:
        session_id = generate_session_id()
        response.set_cookie(
            cookie_name,
            session_id,
            max_age=settings.session_cookie_max_age,
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
        )
    ip_address = request.client.host if request.client else None
    return AnonymousVoter(session_id=session_id, ip_address=ip_address)


def get_voter(request: Request, response: Response) -> VoterIdentity:
    return resolve_voter(request, response)


DbSession = Annotated[Session, Depends(get_db)]
Publisher = Annotated[EventPublisher, Depends(get_publisher)]
AgentId = Annotated[uuid.UUID, Depends(get_agent_id)]
Voter = Annotated[VoterIdentity, Depends(get_voter)]
AdminOnly = [Depends(require_admin)]
