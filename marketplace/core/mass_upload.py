"""
Mass upload of articles from CSV files.

A seller uploads a spreadsheet export with one article per row. Every row is
dispatched on its own (see dynamic_processing) and committed inside its own
SAVEPOINT, so an invalid row is reported without undoing the rows before it.

Classes:
    RowResult: Outcome of a single uploaded row.

Functions:
    read_rows: Decodes CSV text into attribute mappings.
    safe_process_row: Dispatches and commits one row, returning error messages instead of raising.
    process_rows: Dispatches and commits every row of an upload.
    summarize_results: Builds the status report for an upload.
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO, Tuple

from sqlalchemy import inspect  # type: ignore
from sqlalchemy.exc import IntegrityError, SQLAlchemyError  # type: ignore
from sqlalchemy.orm import Session  # type: ignore

from marketplace.config.settings import UPLOAD_MAX_ROWS
from marketplace.core.dynamic_processing import (
    create_or_find_according_to_action,
    process,
    resolve_action,
)
from marketplace.core.models import Article, ArticleInvalid, User
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)

ERROR_IDENTIFIER_TAKEN = "Custom seller identifier has already been taken"
ERROR_NOT_SAVED = "Couldn't be saved"


@dataclass
class RowResult:
    """
    Outcome of a single uploaded row.

    Attributes:
        row_number (int): 1-based position of the row below the header.
        action (str): Action the row was dispatched with.
        article_id (Optional[int]): Id of the affected article, if any.
        errors (list[str]): Messages to show next to the row; empty on success.
    """

    row_number: int
    action: str
    article_id: Optional[int] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _detect_dialect(header: str):
    try:
        return csv.Sniffer().sniff(header, delimiters=";,")
    except csv.Error:
        return csv.excel


def read_rows(stream: TextIO, max_rows: int = UPLOAD_MAX_ROWS) -> List[Dict[str, Optional[str]]]:
    """
    Decodes CSV text into one attribute mapping per row.

    The first line is the header. Semicolon and comma separated files are
    both accepted. Keys and values are stripped of surrounding whitespace,
    empty cells become None and rows without any value are skipped.

    Args:
        stream (TextIO): Open text stream with the CSV content.
        max_rows (int, optional): Stop after this many rows (0 - no limit).

    Returns:
        list[dict]: Row mappings in file order.
    """
    content = stream.read()
    if not content.strip():
        return []

    dialect = _detect_dialect(content.splitlines()[0])
    reader = csv.DictReader(io.StringIO(content), dialect=dialect)

    rows: List[Dict[str, Optional[str]]] = []
    for row in reader:
        normalized: Dict[str, Optional[str]] = {}
        for key, value in row.items():
            # Cells beyond the header end up under the None key
            if key is None:
                continue
            if isinstance(value, str):
                value = value.strip()
            normalized[key.strip()] = value or None

        if all(value is None for value in normalized.values()):
            continue

        rows.append(normalized)
        if max_rows and len(rows) >= max_rows:
            logger.warning(f"Upload limit of {max_rows} rows reached, ignoring the rest")
            break

    return rows


def _discard_changes(db: Session, article: Optional[Article]) -> None:
    # Unflushed changes of a failed row must not leak into the next flush
    if article is None:
        return
    state = inspect(article)
    if state.persistent:
        db.expire(article)
    elif state.pending:
        db.expunge(article)


def safe_process_row(
    db: Session, attributes: Mapping[str, Any], user: User
) -> Tuple[Optional[Article], List[str]]:
    """
    Dispatches and commits one row inside a SAVEPOINT.

    The SAVEPOINT is opened before the row is merged into an existing
    article, so nothing of a rejected row reaches the database.

    Args:
        db (Session): SQLAlchemy database session.
        attributes (Mapping[str, Any]): One row of the upload.
        user (User): Uploading seller.

    Returns:
        tuple: The affected article (None if dispatch itself failed on the
            database) and the error messages, empty if the row was applied.
    """
    article: Optional[Article] = None
    try:
        with db.begin_nested():
            article = create_or_find_according_to_action(db, attributes, user)
            if article.errors:
                return article, list(article.errors)
            process(db, article)
    except ArticleInvalid as e:
        _discard_changes(db, e.article)
        return e.article, e.messages
    except IntegrityError as e:
        _discard_changes(db, article)
        logger.warning(f"Integrity error when saving article: {e.orig}")
        if "custom_seller_identifier" in str(e.orig) or "uq_article_seller_identifier" in str(e.orig):
            return article, [ERROR_IDENTIFIER_TAKEN]
        return article, [ERROR_NOT_SAVED]
    except SQLAlchemyError as e:
        _discard_changes(db, article)
        logger.error(f"Error saving article: {str(e)}", exc_info=True)
        return article, [ERROR_NOT_SAVED]
    return article, []


def process_rows(
    db: Session, rows: Iterable[Mapping[str, Any]], user: User
) -> List[RowResult]:
    """
    Dispatches and commits every row of an upload for the given seller.

    Rows whose dispatch already failed are not committed. A failing row
    only affects itself.

    Args:
        db (Session): SQLAlchemy database session.
        rows (Iterable[Mapping[str, Any]]): Attribute mappings, e.g. from read_rows.
        user (User): Uploading seller.

    Returns:
        list[RowResult]: One result per row, in input order.
    """
    results: List[RowResult] = []

    for row_number, attributes in enumerate(rows, start=1):
        action = resolve_action(attributes)
        article, errors = safe_process_row(db, attributes, user)

        if errors:
            logger.info(f"Row {row_number} ({action.value}) failed: {'; '.join(errors)}")

        results.append(
            RowResult(
                row_number=row_number,
                action=action.value,
                article_id=article.id if article is not None else None,
                errors=errors,
            )
        )

    succeeded = sum(1 for result in results if result.ok)
    logger.info(
        f"Mass upload for user {user.id} finished. Processed {len(results)} rows, "
        f"{succeeded} succeeded, {len(results) - succeeded} failed"
    )
    return results


def summarize_results(results: List[RowResult]) -> Dict[str, Any]:
    """
    Builds the status report of an upload.

    Returns:
        dict: ``processed``, ``succeeded`` and ``failed`` counters and the
            error messages keyed by row number.
    """
    failed = [result for result in results if not result.ok]
    return {
        "processed": len(results),
        "succeeded": len(results) - len(failed),
        "failed": len(failed),
        "errors": {str(result.row_number): result.errors for result in failed},
    }
