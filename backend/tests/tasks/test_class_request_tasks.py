"""Unit tests for the class request Celery tasks and their beat entry."""

from unittest.mock import MagicMock, patch

import pytest


class TestExpireClassRequests:
    @patch("tutorlink.tasks.class_requests.ClassRequestService")
    @patch("tutorlink.tasks.class_requests.SessionLocal")
    def test_reports_expired_count(self, mock_session_local, mock_service_cls):
        from tutorlink.tasks.class_requests import expire_class_requests

        mock_db = MagicMock()
        mock_session_local.return_value = mock_db
        mock_service_cls.return_value.expire_requests.return_value = 4

        result = expire_class_requests()

        assert result["status"] == "success"
        assert result["expired"] == 4
        assert "completed_at" in result
        mock_service_cls.assert_called_once_with(mock_db)
        mock_db.close.assert_called_once()

    @patch("tutorlink.tasks.class_requests.ClassRequestService")
    @patch("tutorlink.tasks.class_requests.SessionLocal")
    def test_session_closed_when_sweep_fails(self, mock_session_local, mock_service_cls):
        from tutorlink.tasks.class_requests import expire_class_requests

        mock_db = MagicMock()
        mock_session_local.return_value = mock_db
        mock_service_cls.return_value.expire_requests.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            expire_class_requests()

        mock_db.close.assert_called_once()


class TestBeatSchedule:
    def test_expiry_runs_hourly_in_production(self):
        from tutorlink.tasks.beat_schedule import get_beat_schedule

        entry = get_beat_schedule("production")["expire-class-requests"]

        assert entry["task"] == "tutorlink.tasks.class_requests.expire_class_requests"
        assert entry["options"]["queue"] == "maintenance"
        assert entry["schedule"].minute == {0}

    def test_development_override(self):
        from tutorlink.tasks.beat_schedule import get_beat_schedule

        entry = get_beat_schedule("development")["expire-class-requests"]

        assert entry["options"]["queue"] == "celery"
        assert len(entry["schedule"].minute) == 4

    def test_expiry_task_is_registered(self):
        from tutorlink.tasks import celery_app

        assert "tutorlink.tasks.class_requests.expire_class_requests" in celery_app.tasks
