"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    """Celery loads through Django and knows every task by name."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "storefront"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "storefront"

    def test_celery_broker_url_configured(self, settings):
        assert settings.CELERY_BROKER_URL

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_tasks_are_registered_by_name(self):
        import modules.core.tasks  # noqa: F401
        import modules.payments.tasks  # noqa: F401
        from config.celery import app

        assert {
            "core.relay_outbox_events",
            "payments.generate_invoice",
            "payments.send_payment_receipt",
        } <= set(app.tasks)


class TestEagerExecution:
    def test_relay_task_runs_in_process(self):
        from modules.core.tasks import relay_outbox_events

        result = relay_outbox_events.apply()

        assert result.successful()
        assert result.result == {"published": 0, "failed": 0}


class TestBeatSchedule:
    def test_outbox_relay_runs_periodically(self, settings):
        from config.celery import app

        entry = app.conf.beat_schedule["relay-outbox-events"]

        assert entry["task"] == "core.relay_outbox_events"
        assert entry["schedule"] == settings.OUTBOX_RELAY_INTERVAL_SECONDS
