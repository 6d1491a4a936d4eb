"""Account registration and cookie-session login."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from medreport.core.config import Settings, get_settings
from medreport.core.database import get_session
from medreport.core.security import hash_password, verify_password
from medreport.core.sessions import (
    CurrentUser,
    SessionStore,
    get_session_id,
    get_session_store,
    require_user,
)
from medreport.models.user import User

router = APIRouter()
logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    confirm_password: str


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, session: Session = Depends(get_session)):
    if body.password != body.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if len(body.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise HTTPException(status_code=400, detail="Password is too long")

    existing = session.exec(select(User).where(User.username == body.username)).first()
    if existing:
        raise HTTPException(status_code=409, detail="Username already taken")

    user = User(username=body.username, password_hash=hash_password(body.password))
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Registered user {user.id}")
    return {"id": user.id, "username": user.username}


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    user = session.exec(select(User).where(User.username == body.username)).first()
    if not user or not verify_password(body.password, user.password_hash):
        logger.debug(f"Failed login for {body.username!r}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    session_id = store.create(CurrentUser(id=user.id, username=user.username))  # type: ignore[arg-type]
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return {"id": user.id, "username": user.username}


@router.post("/logout")
async def logout(
    response: Response,
    session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    store.destroy(session_id)
    response.delete_cookie(settings.session_cookie_name)
    return {"status": "logged_out"}


@router.get("/me")
async def me(user: CurrentUser = Depends(require_user)):
    return {"id": user.id, "username": user.username}
