# app/config/celery_config.py
"""Celery configuration, task routing and the beat schedule"""
from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from app.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure Celery application"""

    celery_app = Celery(
        "booking_service",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["app.tasks.booking_tasks"],
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,

        # Task routing
        task_routes={
            "app.tasks.booking_tasks.send_booking_confirmation_email": {"queue": "emails"},
            "app.tasks.booking_tasks.*": {"queue": "maintenance"},
        },

        # Queue definitions
        task_queues=(
            Queue("emails", routing_key="emails"),
            Queue("maintenance", routing_key="maintenance"),
        ),

        # Reminder jobs are idempotent, so overlapping runs are harmless
        beat_schedule={
            "send-24-hour-reminders": {
                "task": "app.tasks.booking_tasks.send_24_hour_reminders",
                "schedule": crontab(minute="*/15"),
            },
            "send-1-hour-reminders": {
                "task": "app.tasks.booking_tasks.send_1_hour_reminders",
                "schedule": crontab(minute="*/15"),
            },
            "cleanup-old-reminders": {
                "task": "app.tasks.booking_tasks.cleanup_old_reminders",
                "schedule": crontab(hour=3, minute=0),
            },
        },

        # Worker settings
        worker_max_tasks_per_child=1000,
        worker_prefetch_multiplier=1,
        task_acks_late=True,

        # Retry settings
        task_retry_max_retries=3,
        task_retry_delay=60,  # 1 minute

        broker_connection_retry_on_startup=True,
        broker_connection_timeout=2,
    )

    return celery_app


# Create the Celery app instance
celery_app = create_celery_app()
