"""
The config package contains application settings.

This package includes all configuration files for the marketplace project,
providing centralized access to database, Redis, Celery, logging settings
and mass upload parameters.

Modules:
    settings: Main application settings, including paths, database and logging parameters.
    celery_config: Celery settings for the mass upload worker.
"""
