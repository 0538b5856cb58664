from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.db import get_session
from app.core.security import login_limiter, normalize_username, verify_password
from app.core.session import ensure_csrf, start_user_session
from app.dependencies import csrf_protect, require_login
from app.models.user import User
from app.services.audit_service import audit_request

router = APIRouter(tags=["auth"])


class LoginIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    full_name: str = ""
    role: str
    csrf_token: str


def _session_out(user: User, csrf_token: str) -> SessionOut:
    return SessionOut(username=user.username, full_name=user.full_name or "", role=user.role, csrf_token=csrf_token)


@router.get("/login")
async def login_token(request: Request):
    token, created = ensure_csrf(request.state.session)
    if created:
        request.state.session_changed = True
    return {"csrfToken": token}


@router.post("/login", response_model=SessionOut, response_model_by_alias=True)
async def login(
    request: Request,
    payload: LoginIn,
    db: Session = Depends(get_session),
    csrf=Depends(csrf_protect),
):
    username = normalize_username(payload.username)
    client_ip = request.client.host if request.client else "unknown"
    attempt_key = login_limiter.key(username, client_ip)
    if not login_limiter.allow(attempt_key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Demasiados intentos. Intenta de nuevo en unos minutos.",
        )

    user = db.scalar(select(User).where(User.username == username))
    try:
        valid = bool(user and user.is_active and verify_password(payload.password, user.password_hash))
    except ValueError as exc:
        login_limiter.record(attempt_key, False)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Error de contraseña: {exc}")
    if not valid:
        login_limiter.record(attempt_key, False)
        audit_request(db, request, user.id if user else None, "login_fail", username=username)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario o contraseña incorrectos o usuario inactivo.",
        )

    login_limiter.record(attempt_key, True)
    token = start_user_session(request, user.id)
    user.last_login_at = datetime.utcnow()
    db.commit()
    audit_request(db, request, user.id, "login_success", username=username)
    return _session_out(user, token)


@router.post("/logout")
async def logout(request: Request, user: User = Depends(require_login), csrf=Depends(csrf_protect)):
    request.state.session = {}
    request.state.session_changed = False
    request.state.clear_session = True
    return {"ok": True}


@router.get("/me", response_model=SessionOut, response_model_by_alias=True)
async def me(request: Request, user: User = Depends(require_login)):
    return _session_out(user, request.state.session.get("csrf_token", ""))
