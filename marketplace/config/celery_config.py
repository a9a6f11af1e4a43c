"""
Celery settings for running mass upload tasks.

This module initializes and configures a Celery instance used to process
uploaded article files outside the web request cycle.
Settings are loaded from the settings.py module.

Attributes:
    celery_app (Celery): Celery application instance configured
        to work with the marketplace project.

Note:
    Celery requires a running Redis server specified in settings.
    Uploads are processed one file per task, so workers are restarted
    after every few tasks to keep memory usage flat.
"""

from celery import Celery

from marketplace.config.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

# Create Celery instance
celery_app = Celery(
    "marketplace",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["marketplace.tasks.mass_upload"],
)

# Celery settings
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Europe/Berlin",
    enable_utc=True,
    worker_max_tasks_per_child=20,
)

if __name__ == "__main__":
    celery_app.start()
