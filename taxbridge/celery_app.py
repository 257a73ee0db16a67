"""
TaxBridge - Celery Configuration

Celery configuration for background task processing.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from taxbridge.config import settings


celery_app = Celery(
    'taxbridge',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['taxbridge.tasks.celery_tasks'],
)

celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    # Deadlines are Lagos calendar days
    timezone='Africa/Lagos',
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,
    task_soft_time_limit=240,

    worker_prefetch_multiplier=1,
    result_expires=86400,

    task_default_retry_delay=60,
    task_max_retries=3,

    beat_schedule={
        # Pending PAYE remittances past the 10th become overdue
        'refresh-paye-remittance-statuses': {
            'task': 'taxbridge.tasks.celery_tasks.refresh_remittance_statuses_task',
            'schedule': crontab(hour=0, minute=15),
        },

        # Lapsed paid subscriptions are marked expired
        'expire-lapsed-subscriptions': {
            'task': 'taxbridge.tasks.celery_tasks.expire_lapsed_subscriptions_task',
            'schedule': crontab(hour=0, minute=30),
        },
    },
)
