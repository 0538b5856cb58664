from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.core.db import Base

ADMIN_ROLE = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    # stored trimmed and lower-case
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, default="")
    full_name = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime(timezone=True))

    audit_logs = relationship("AuditLog", back_populates="user", order_by="AuditLog.created_at")

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class AuditLog(Base):
    """Login attempts and destructive invoice actions (delete, move, bulk edit, import)."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    detail_json = Column(Text, nullable=False, default="{}")
    ip = Column(String(100))
    user_agent = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="audit_logs")
