"""Server-held login sessions keyed by an opaque cookie value.

Sessions live in process memory only, so a restart logs everyone out.
"""

import logging
import secrets
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from medreport.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str


class SessionStore:
    def __init__(self):
        self._sessions: dict[str, CurrentUser] = {}

    def create(self, user: CurrentUser) -> str:
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = user
        logger.debug(f"Created session for user {user.id}")
        return session_id

    def get(self, session_id: str | None) -> CurrentUser | None:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def destroy(self, session_id: str | None) -> None:
        if session_id and self._sessions.pop(session_id, None) is not None:
            logger.debug("Destroyed session")

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()


def get_session_store() -> SessionStore:
    return session_store


def get_session_id(request: Request, settings: Settings = Depends(get_settings)) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


def get_current_user(
    session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> CurrentUser | None:
    """The logged-in user for this request, or None for guests."""
    return store.get(session_id)


def require_user(user: CurrentUser | None = Depends(get_current_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
