import secrets
from typing import Dict, Tuple

from itsdangerous import BadSignature, URLSafeSerializer
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings

serializer = URLSafeSerializer(settings.secret_key, salt="cxp-session")


def load_session(request: Request) -> Dict:
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return {}
    try:
        data = serializer.loads(cookie)
    except BadSignature:
        return {}
    return data if isinstance(data, dict) else {}


def save_session(response: Response, session_data: Dict) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=serializer.dumps(session_data),
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


def clear_session(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name)


def ensure_csrf(session_data: Dict) -> Tuple[str, bool]:
    if "csrf_token" in session_data:
        return session_data["csrf_token"], False
    session_data["csrf_token"] = secrets.token_hex(16)
    return session_data["csrf_token"], True


def start_user_session(request: Request, user_id: int) -> str:
    """Bind the session to a user and hand out a fresh CSRF token."""
    session_data = {"user_id": user_id, "csrf_token": secrets.token_hex(16)}
    request.state.session = session_data
    request.state.session_changed = True
    return session_data["csrf_token"]
