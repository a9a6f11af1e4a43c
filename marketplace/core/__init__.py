"""
The core package contains base application components.

Modules:
    models: Data model definitions using SQLAlchemy ORM.
    database: Functions and utilities for working with the database.
    dynamic_processing: Action based create/update/state change of articles.
    mass_upload: CSV decoding and row-by-row processing of uploads.
"""
