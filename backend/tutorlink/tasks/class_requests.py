# backend/tutorlink/tasks/class_requests.py
"""
Celery tasks for class request maintenance.

Provides the periodic expiry sweep.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, TypeVar, cast

from celery import shared_task
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..services.class_request_service import ClassRequestService

logger = logging.getLogger(__name__)


TaskCallable = TypeVar("TaskCallable", bound=Callable[..., Any])


def typed_shared_task(
    *task_args: Any, **task_kwargs: Any
) -> Callable[[TaskCallable], TaskCallable]:
    return cast(Callable[[TaskCallable], TaskCallable], shared_task(*task_args, **task_kwargs))


@typed_shared_task(
    name="tutorlink.tasks.class_requests.expire_class_requests",
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={"max_retries": 3, "countdown": 60},
)
def expire_class_requests(self: Any) -> Dict[str, Any]:
    """
    Expire class requests whose expiry date has passed.

    Per-request failures are logged and skipped by the service; anything that
    escapes it fails the run and is retried.
    """
    logger.info(f"Starting class request expiry at {datetime.now(timezone.utc)}")

    db: Session = SessionLocal()
    try:
        expired = ClassRequestService(db).expire_requests()
        logger.info(f"Class request expiry completed. Expired {expired} requests")
        return {
            "status": "success",
            "expired": expired,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        logger.error(f"Error in class request expiry task: {str(e)}")
        raise
    finally:
        db.close()
