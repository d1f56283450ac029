# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "storefront.services.notification_service",
)

# eager mode runs tasks in-process, used by tests and local runs without a broker
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
celery_app.conf.task_store_eager_result = False

celery_app.conf.timezone = "UTC"
