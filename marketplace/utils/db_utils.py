"""
Database utilities.

Lookups of articles on behalf of a seller. Every query here is restricted
to the articles owned by the given user, so a mass upload can never touch
another seller's records.
"""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError  # type: ignore
from sqlalchemy.orm import Session  # type: ignore

from marketplace.core.models import INTEGER_MAX, Article, User
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)


def _coerce_id(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    # Ids outside the column range cannot match and would not bind
    if not 1 <= number <= INTEGER_MAX:
        return None
    return number


def find_owned_article_by_id(db: Session, user: User, article_id: Any) -> Optional[Article]:
    """
    Finds an article of the user by its primary key.

    Args:
        db (Session): SQLAlchemy database session.
        user (User): Owner of the article.
        article_id (Any): Article id, as an int or a numeric string.

    Returns:
        Optional[Article]: The article, or None if the user owns no article
            with this id or the id is not a number within the column range.
    """
    coerced_id = _coerce_id(article_id)
    if coerced_id is None:
        logger.debug(f"Ignoring invalid article id {article_id!r}")
        return None

    try:
        return (
            db.query(Article)
            .filter(Article.user_id == user.id, Article.id == coerced_id)
            .first()
        )
    except SQLAlchemyError:
        logger.error(f"Error looking up article {coerced_id}", exc_info=True)
        raise


def find_owned_article_by_custom_identifier(
    db: Session, user: User, identifier: Any
) -> Optional[Article]:
    """
    Finds an article of the user by the seller's own identifier.

    Only the first match (lowest id) is returned. Several matches can only
    exist for rows written before the per-seller unique constraint and are
    not reported.

    Args:
        db (Session): SQLAlchemy database session.
        user (User): Owner of the article.
        identifier (Any): Value of custom_seller_identifier.

    Returns:
        Optional[Article]: The article, or None if there is no match.
    """
    try:
        return (
            db.query(Article)
            .filter(
                Article.user_id == user.id,
                Article.custom_seller_identifier == str(identifier),
            )
            .order_by(Article.id)
            .limit(1)
            .first()
        )
    except SQLAlchemyError:
        logger.error(
            f"Error looking up article by identifier {identifier!r}", exc_info=True
        )
        raise
