# backend/tutorlink/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for TutorLink.

Tasks are scheduled using crontab expressions.
"""

from typing import Any

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: dict[str, dict[str, Any]] = {
    # Class request expiry - hourly, on the hour
    "expire-class-requests": {
        "task": "tutorlink.tasks.class_requests.expire_class_requests",
        "schedule": crontab(minute=0),
        "options": {
            "queue": "maintenance",
            "priority": 5,
        },
    },
}

SCHEDULE_CONFIG: dict[str, dict[str, dict[str, Any]]] = {
    "development": {
        "expire-class-requests": {
            "task": "tutorlink.tasks.class_requests.expire_class_requests",
            "schedule": crontab(minute="*/15"),
            "options": {"queue": "celery", "priority": 5},
        },
    },
}


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, testing)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    base: dict[str, dict[str, Any]] = dict(CELERYBEAT_SCHEDULE)
    overrides = SCHEDULE_CONFIG.get(environment)
    if overrides:
        base.update(overrides)
    return base
