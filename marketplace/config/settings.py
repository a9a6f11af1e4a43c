"""
Main application settings.

This module contains all main configuration parameters for the marketplace
mass upload service. Settings are loaded from environment variables using
python-dotenv, with default values in case of missing variables.

Attributes:
    BASE_DIR (Path): Base application directory.
    LOGS_DIR (Path): Directory for storing application logs.

    POSTGRES_DB (str): PostgreSQL database name.
    POSTGRES_USER (str): PostgreSQL username.
    POSTGRES_PASSWORD (str): PostgreSQL user password.
    POSTGRES_HOST (str): PostgreSQL host.
    POSTGRES_PORT (str): PostgreSQL port.
    DATABASE_URL (str): Full URL for database connection. Can be set directly
        to point the application at another database (e.g. SQLite).

    REDIS_HOST (str): Redis host.
    REDIS_PORT (str): Redis port.
    REDIS_URL (str): Full URL for Redis connection.

    CELERY_BROKER_URL (str): Message broker URL for Celery.
    CELERY_RESULT_BACKEND (str): Result backend URL for Celery.

    UPLOAD_MAX_ROWS (int): Maximum number of rows processed per upload (0 - no limit).
    UPLOAD_ENCODING (str): Encoding used to read uploaded CSV files.

    LOG_LEVEL (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    LOG_FILE (str): Log file name.
    LOG_FORMAT (str): Log entry format.
    LOG_DATE_FORMAT (str): Date and time format in logs.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(os.getenv("APP_BASE_DIR", Path(__file__).resolve().parents[2]))
LOGS_DIR = BASE_DIR / "logs"

# Create directories if they don't exist
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Database settings
POSTGRES_DB = os.getenv("POSTGRES_DB", "marketplace")
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres_password")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Redis settings
REDIS_HOST = os.getenv("REDIS_HOST", "redis")
REDIS_PORT = os.getenv("REDIS_PORT", "6379")
REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"

# Celery settings
CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL

# Mass upload settings
UPLOAD_MAX_ROWS = int(os.getenv("UPLOAD_MAX_ROWS", "0"))  # 0 - no limit
UPLOAD_ENCODING = os.getenv("UPLOAD_ENCODING", "utf-8-sig")  # Accepts spreadsheet BOMs

# Logging settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "marketplace.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
