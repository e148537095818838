"""Celery tasks for contact request expiry."""
from celery import shared_task

from farmconnect.database import SessionLocal
from farmconnect.services.expiry_sweeper import make_sweep_job


@shared_task
def sweep_expired_requests() -> int:
    """Expire accepted requests that were not reconciled within the confirmation window."""
    return make_sweep_job(SessionLocal)()
