import json
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from loguru import logger
from sqlalchemy.orm import Session

from app.models.user import AuditLog


def client_info(request: Request) -> Tuple[str, Optional[str]]:
    ip = request.client.host if request.client else "unknown"
    return ip, request.headers.get("user-agent")


def log_action(
    session: Session,
    user_id: Optional[int],
    action: str,
    detail: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id,
        action=action,
        detail_json=json.dumps(detail or {}, ensure_ascii=False, default=str),
        ip=ip,
        user_agent=user_agent,
    )
    session.add(entry)
    session.commit()
    logger.info("Auditoría {} usuario={} {}", action, user_id, entry.detail_json)
    return entry


def audit_request(session: Session, request: Request, user_id: Optional[int], action: str, **detail: Any) -> AuditLog:
    ip, user_agent = client_info(request)
    return log_action(session, user_id, action, detail, ip, user_agent)
