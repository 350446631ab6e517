"""
Celery worker entry point
Runs booking emails and the reminder beat jobs
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from app.config.celery_config import celery_app
from app.utils.my_logging import setup_logging

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    """Handle worker startup"""
    tasks = sorted(name for name in celery_app.tasks.keys() if not name.startswith("celery."))
    logger.info(f"Celery worker ready, {len(tasks)} booking tasks registered: {tasks}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    """Handle worker shutdown"""
    logger.info("Celery worker shutting down")


if __name__ == "__main__":
    celery_app.start([
        'worker',
        '--beat',
        '--loglevel=info',
        '--concurrency=4',
        '--queues=emails,maintenance',
        '--max-tasks-per-child=1000'
    ])
