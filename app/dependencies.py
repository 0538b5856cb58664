from datetime import date
from typing import Iterable, Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.db import get_session
from app.models.user import User
from app.services.invoice_service import InvoiceService

MUTATING_METHODS = ("POST", "PUT", "PATCH", "DELETE")

ModelT = TypeVar("ModelT", bound=BaseModel)


async def get_current_user(request: Request, db: Session = Depends(get_session)) -> Optional[User]:
    session_data = getattr(request.state, "session", {})
    user_id = session_data.get("user_id")
    if not user_id:
        return None
    user = db.get(User, user_id)
    if not user or not user.is_active:
        return None
    request.state.user = user
    return user


async def require_login(user: Optional[User] = Depends(get_current_user)) -> User:
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sesión requerida")
    return user


async def require_admin(user: User = Depends(require_login)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin requerido")
    return user


async def csrf_protect(request: Request) -> None:
    if request.method not in MUTATING_METHODS:
        return
    session_token = getattr(request.state, "session", {}).get("csrf_token")
    header_token = request.headers.get("X-CSRF-Token")
    if not session_token or not header_token or header_token != session_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSRF token inválido")


def get_invoice_service(db: Session = Depends(get_session)) -> InvoiceService:
    return InvoiceService(db)


def get_today() -> date:
    return date.today()


def parse_query(model: Type[ModelT], request: Request, reserved: Iterable[str] = ()) -> ModelT:
    """Validate the query string into ``model``, leaving out route-level keys."""
    params = {key: value for key, value in request.query_params.items() if key not in reserved}
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        )
