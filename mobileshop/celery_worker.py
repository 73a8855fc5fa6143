# mobileshop/celery_worker.py
from celery import Celery

from mobileshop.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "mobileshop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks are registered on import
celery_app.conf.imports = (
    "mobileshop.services.notification_service",
)

celery_app.conf.timezone = "UTC"
