import time
from typing import Dict, List

from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


def validate_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError("La contraseña no debe exceder 72 bytes (límite bcrypt).")


def verify_password(plain_password: str, password_hash: str) -> bool:
    validate_password_length(plain_password)
    return pwd_context.verify(plain_password, password_hash)


def hash_password(password: str) -> str:
    validate_password_length(password)
    return pwd_context.hash(password)


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


class LoginRateLimiter:
    """Failed login attempts per ``username:ip`` inside a sliding window."""

    def __init__(self, limit: int, window: int):
        self.limit = limit
        self.window = window
        self._failures: Dict[str, List[float]] = {}

    @staticmethod
    def key(username: str, ip: str) -> str:
        return f"{normalize_username(username)}:{ip}"

    def allow(self, key: str) -> bool:
        now = time.time()
        recent = [ts for ts in self._failures.get(key, []) if now - ts <= self.window]
        self._failures[key] = recent
        return len(recent) < self.limit

    def record(self, key: str, success: bool) -> None:
        if success:
            self._failures.pop(key, None)
        else:
            self._failures.setdefault(key, []).append(time.time())

    def reset(self) -> None:
        self._failures.clear()


login_limiter = LoginRateLimiter(settings.login_rate_limit_count, settings.login_rate_limit_window)
