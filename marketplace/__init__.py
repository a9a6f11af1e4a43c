"""
Root package of the marketplace application.

This package contains the article record definitions, the dynamic
processing of mass upload rows, schema migrations and the Celery tasks
that run uploads in the background.

Package structure:
    config: Configuration modules (settings, Celery configuration).
    core: Base components (data models, database connection, article processing).
    migrations: Versioned schema migrations.
    tasks: Celery tasks for background processing.
    utils: Helper utilities (logging, database helpers).

Attributes:
    celery_app: Celery application instance imported from configuration.
"""

from marketplace.config.celery_config import celery_app

__all__ = ["celery_app"]
