# backend/tutorlink/models/notification.py
"""In-app notification persisted for a user account."""

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, index=True)
    kind = Column(String(64), nullable=False)
    message = Column(Text, nullable=False)
    related_entity_id = Column(String(26), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
