"""
Celery task for processing mass uploads in the background.

Attributes:
    logger: Logger for registering upload events.
    celery_app: Celery application instance imported from configuration.

Functions:
    process_mass_upload: Task that applies an uploaded CSV file for a seller.
"""

import csv

from sqlalchemy.exc import SQLAlchemyError  # type: ignore

from marketplace.config.celery_config import celery_app
from marketplace.config.settings import UPLOAD_ENCODING
from marketplace.core.database import get_db
from marketplace.core.mass_upload import process_rows, read_rows, summarize_results
from marketplace.core.models import User
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)


@celery_app.task(name="marketplace.tasks.mass_upload.process_mass_upload")
def process_mass_upload(user_id: int, file_path: str):
    """
    Task for applying an uploaded CSV file on behalf of a seller.

    Every row is dispatched and committed on its own; failing rows are
    reported and do not stop the upload. The task does not retry, as a
    second run would apply the successful rows again.

    Args:
        user_id (int): Id of the uploading seller.
        file_path (str): Path of the stored CSV file.

    Returns:
        dict: Task execution result in dictionary format with following keys:
            - status (str): "success" or "error"
            - processed (int): Number of processed rows (on success)
            - succeeded (int): Number of rows applied (on success)
            - failed (int): Number of rejected rows (on success)
            - errors (dict): Error messages by row number (on success)
            - error (str): Error text (on failure)

    Examples:
        >>> result = process_mass_upload.delay(7, "/app/uploads/articles.csv")
    """
    logger.info(f"Starting mass upload of {file_path} for user {user_id}")

    try:
        with open(file_path, encoding=UPLOAD_ENCODING, newline="") as stream:
            rows = read_rows(stream)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logger.error(f"Error reading upload {file_path}: {str(e)}", exc_info=True)
        return {"status": "error", "error": str(e), "file": file_path}

    try:
        with get_db() as db:
            user = db.get(User, user_id)
            if user is None:
                logger.warning(f"User {user_id} not found, upload {file_path} skipped")
                return {
                    "status": "error",
                    "error": f"User {user_id} not found",
                    "file": file_path,
                }

            summary = summarize_results(process_rows(db, rows, user))
    except SQLAlchemyError as e:
        logger.error(f"Error processing upload {file_path}: {str(e)}", exc_info=True)
        return {"status": "error", "error": str(e), "file": file_path}

    logger.info(
        f"Mass upload of {file_path} completed. Processed {summary['processed']} rows, "
        f"{summary['succeeded']} applied, {summary['failed']} rejected"
    )
    return {"status": "success", "file": file_path, **summary}
