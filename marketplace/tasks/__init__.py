"""
Celery tasks package.

Modules:
    mass_upload: Background processing of uploaded article files.
"""
