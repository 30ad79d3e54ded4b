# backend/tutorlink/repositories/notification_repository.py
"""Notification Repository for the TutorLink platform."""

import logging

from sqlalchemy.orm import Session

from ..models.notification import Notification
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)
