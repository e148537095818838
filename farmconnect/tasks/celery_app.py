"""
Celery Application Configuration

Runs the contact request expiry sweep on celery beat. Start a worker with an
embedded beat scheduler via:

    celery -A farmconnect.tasks.celery_app worker --beat
"""
from celery import Celery

from farmconnect.config import settings

app = Celery(
    "farmconnect",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["farmconnect.tasks.sweeper"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_eager_propagates=True,
    beat_schedule={
        "sweep-expired-contact-requests": {
            "task": "farmconnect.tasks.sweeper.sweep_expired_requests",
            "schedule": settings.SWEEP_INTERVAL_SECONDS,
        },
    },
)
