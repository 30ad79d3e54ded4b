# backend/tutorlink/services/notification_service.py
"""
Notification sink: persisted in-app notifications plus realtime fan-out.

``notify`` stores a Notification row and commits it on its own; it is only
called after the workflow that produced it has committed. ``push_realtime``
publishes a small JSON envelope on the Redis channel ``<prefix>:<user_id>``.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Optional

from redis import Redis
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timezone_utils import utc_now
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    if not settings.redis_url:
        return None
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        _SYNC_REDIS = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        return _SYNC_REDIS


def user_channel(user_id: str) -> str:
    return f"{settings.realtime_channel_prefix}:{user_id}"


class NotificationService(BaseService):
    def __init__(self, db: Session, redis_client: Optional[Redis] = None):
        super().__init__(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self._redis = redis_client

    @property
    def redis(self) -> Optional[Redis]:
        if self._redis is None:
            self._redis = _get_sync_redis()
        return self._redis

    @BaseService.measure_operation("notify")
    def notify(
        self, user_id: str, kind: str, message: str, related_entity_id: Optional[str]
    ) -> str:
        with self.transaction():
            notification = self.notification_repository.create(
                user_id=user_id,
                kind=kind,
                message=message,
                related_entity_id=related_entity_id,
            )
        return str(notification.id)

    def push_realtime(self, user_id: str, notification_id: str) -> None:
        if not settings.realtime_notifications_enabled:
            return
        client = self.redis
        if client is None:
            self.logger.debug("Realtime push skipped: no Redis configured")
            return

        payload = json.dumps(
            {
                "type": "notification.created",
                "notification_id": notification_id,
                "timestamp": utc_now().isoformat(),
            }
        )
        receivers = client.publish(user_channel(user_id), payload)
        self.logger.debug(
            f"Published notification {notification_id} to {user_channel(user_id)} "
            f"(subscribers: {receivers})"
        )
