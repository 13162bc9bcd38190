from celery import Celery
from celery.signals import setup_logging as celery_setup_logging
from celery.signals import task_prerun

from blogapi.core.config import settings
from blogapi.core.logging import (
    LogContext,
    add_correlation_id,
    reset_correlation_context,
    setup_logging,
)

setup_logging()

celery_logger = LogContext("celery")

celery_app = Celery(
    "blogapi",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["blogapi.tasks.search_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_time_limit=settings.CELERY_TASK_TIMEOUT,
    result_expires=settings.CELERY_RESULT_EXPIRES,
    # broker settings
    broker_connection_timeout=settings.CELERY_BROKER_CONNECTION_TIMEOUT,
    broker_connection_retry=True,
    broker_connection_retry_on_startup=True,
    # task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_create_missing_queues=True,
    task_default_queue="search",
    task_queues={"search": {"exchange": "search", "routing_key": "search"}},
    task_ignore_result=True,
    # logging is configured by setup_logging
    worker_hijack_root_logger=False,
    worker_log_color=False,
    worker_redirect_stdouts=True,
    worker_redirect_stdouts_level="INFO",
)

celery_logger.info(
    "Celery app configured",
    extra={"broker": settings.CELERY_BROKER_URL.split("@")[-1], "queue": "search"},
)


@celery_setup_logging.connect
def on_celery_setup_logging(**kwargs):
    """Prevent Celery from setting up its own logging"""
    return True


@task_prerun.connect
def task_prerun_handler(task_id, task, *args, **kwargs):
    """Set up correlation context for tasks"""
    reset_correlation_context()
    add_correlation_id("task_id", task_id)
    add_correlation_id("task_name", task.name)
    add_correlation_id("operation", task.name.split(".")[-1])
