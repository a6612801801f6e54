"""
Celery worker entry point.

Run with: celery -A main worker --loglevel=info (from apps/worker, with the
API package installed).
"""
from core.logging import setup_logging
from tasks import celery_app

setup_logging(service="worker")

# Notification tasks register on import of `tasks`
celery_app.autodiscover_tasks(['tasks'])


@celery_app.task(name="worker.health_check")
def health_check():
    """Health check task"""
    return {"status": "ok"}
