"""
The utils package contains helper utilities.

Modules:
    logger: Logging system setup and function for getting module logger.
    db_utils: Owner-scoped article lookups.
"""
