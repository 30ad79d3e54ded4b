"""
Celery tasks package for TutorLink.

Periodic maintenance for the matching workflow:
- Class request expiry sweep
"""

from .celery_app import BaseTask, celery_app
from .class_requests import expire_class_requests

__all__ = ["BaseTask", "celery_app", "expire_class_requests"]
