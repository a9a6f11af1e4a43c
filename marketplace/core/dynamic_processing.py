"""
Create, update or change the state of articles based on an action code.

Mass uploads deliver one attribute mapping per row. Each row may carry an
``action`` column telling what to do with it:

    c / create       build a new article
    u / update       merge the row into an existing article
    x / delete       close an existing article
    a / activate     put an existing article on sale
    d / deactivate   take an existing article off sale

Rows without an action are updates when they carry an ``id`` and creations
otherwise. Existing articles are looked up by ``id`` or, failing that, by
``custom_seller_identifier``, and only among the articles of the uploading
user.

Dispatching only reads from the database. Nothing is written until
process() is called on the returned article, which lets a caller check
every row before committing any of them.

Functions:
    parse_action: Maps a raw action token to an Action.
    default_action: Action used for rows without an action token.
    resolve_action: Action a row will be dispatched with.
    create_or_find_according_to_action: Returns the article a row refers to.
    process: Saves the article or performs its requested state change.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session  # type: ignore

from marketplace.core.models import Article, ArticleInvalid, RequestedState, User
from marketplace.utils.db_utils import (
    find_owned_article_by_custom_identifier,
    find_owned_article_by_id,
)
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)

ERROR_UNKNOWN_ACTION = "Unknown action"
ERROR_NO_IDENTIFIER = "No unique identifier"
ERROR_NOT_FOUND = "Couldn't be found"

# Never taken over from uploaded rows
PROTECTED_ATTRIBUTES = frozenset(
    {"id", "user_id", "action", "state", "created_at", "updated_at"}
)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    CLOSE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    UNKNOWN = "unknown"


_ACTION_CODES: Dict[str, Action] = {
    "c": Action.CREATE,
    "create": Action.CREATE,
    "u": Action.UPDATE,
    "update": Action.UPDATE,
    "x": Action.CLOSE,
    "delete": Action.CLOSE,
    "a": Action.ACTIVATE,
    "activate": Action.ACTIVATE,
    "d": Action.DEACTIVATE,
    "deactivate": Action.DEACTIVATE,
}

_REQUESTED_STATES: Dict[Action, RequestedState] = {
    Action.CLOSE: RequestedState.CLOSED,
    Action.ACTIVATE: RequestedState.ACTIVATED,
    Action.DEACTIVATE: RequestedState.DEACTIVATED,
}


def _present(attributes: Mapping[str, Any], key: str) -> bool:
    # Only a missing or None value is absent; an empty id resolves to "not found"
    return attributes.get(key) is not None


def parse_action(raw: Any) -> Optional[Action]:
    """
    Maps a raw action token to an Action.

    Args:
        raw (Any): Value of the row's ``action`` key.

    Returns:
        Optional[Action]: None when the token is absent, Action.UNKNOWN when
            it is not one of the accepted codes.
    """
    if raw is None:
        return None
    if not isinstance(raw, str):
        return Action.UNKNOWN
    return _ACTION_CODES.get(raw, Action.UNKNOWN)


def default_action(attributes: Mapping[str, Any]) -> Action:
    """Update when the row has an id, create otherwise."""
    return Action.UPDATE if _present(attributes, "id") else Action.CREATE


def resolve_action(attributes: Mapping[str, Any]) -> Action:
    action = parse_action(attributes.get("action"))
    if action is None:
        action = default_action(attributes)
    return action


def error_article(message: str) -> Article:
    """Unsaved placeholder article carrying an error message for the upload report."""
    article = Article()
    article.errors.append(message)
    return article


def assignable_attributes(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Keeps the keys of a row that may be written to an article.

    Protected keys and keys that are not article columns are dropped.
    """
    columns = set(Article.__table__.columns.keys())
    assignable = {}
    for key, value in attributes.items():
        if key in PROTECTED_ATTRIBUTES:
            continue
        if key not in columns:
            logger.debug(f"Ignoring unknown article attribute {key!r}")
            continue
        assignable[key] = value
    return assignable


def find_by_id_or_custom_seller_identifier(
    db: Session, attributes: Mapping[str, Any], user: User
) -> Article:
    """
    Finds the user's article a row refers to.

    Sellers may use their own identifier instead of our id. The id wins when
    both are given.

    Returns:
        Article: The owned article, or an error placeholder when the row has
            no identifier or nothing matches.
    """
    if _present(attributes, "id"):
        article = find_owned_article_by_id(db, user, attributes["id"])
    elif _present(attributes, "custom_seller_identifier"):
        article = find_owned_article_by_custom_identifier(
            db, user, attributes["custom_seller_identifier"]
        )
    else:
        return error_article(ERROR_NO_IDENTIFIER)

    if article is None:
        return error_article(ERROR_NOT_FOUND)

    # Instances from the identity map may still carry state from an earlier row
    article.errors = []
    article.requested_state = None
    return article


def create_or_find_according_to_action(
    db: Session, attributes: Mapping[str, Any], user: User
) -> Article:
    """
    Returns the article a mass upload row refers to, ready for process().

    Exactly one of these happens per call: a new article is built, the row
    is merged into an existing article, or a state change is requested on
    an existing article. Failures never raise; they come back as an unsaved
    placeholder article with a non-empty ``errors`` list and no id.

    Args:
        db (Session): SQLAlchemy database session, only used for reads.
        attributes (Mapping[str, Any]): One row of the upload.
        user (User): Uploading seller. Only their articles are considered.

    Returns:
        Article: New, updated or state-flagged article, or an error placeholder.

    Examples:
        >>> article = create_or_find_according_to_action(
        ...     db, {"action": "x", "custom_seller_identifier": "sku-1"}, user
        ... )
        >>> if not article.errors:
        ...     process(db, article)
    """
    action = resolve_action(attributes)

    if action is Action.UNKNOWN:
        logger.info(f"Unknown action {attributes.get('action')!r}")
        return error_article(ERROR_UNKNOWN_ACTION)

    if action is Action.CREATE:
        article = Article(**assignable_attributes(attributes))
        article.user_id = user.id
        article.action = action.value
        return article

    article = find_by_id_or_custom_seller_identifier(db, attributes, user)
    if article.errors:
        return article

    if action is Action.UPDATE:
        for key, value in assignable_attributes(attributes).items():
            setattr(article, key, value)
    else:
        article.requested_state = _REQUESTED_STATES[action]

    article.action = action.value
    return article


def process(db: Session, article: Article) -> None:
    """
    Saves an article or performs the state change requested for it.

    A requested close first deactivates the article. Without a requested
    state the article is validated, added to the session and flushed.

    Args:
        db (Session): SQLAlchemy database session.
        article (Article): Article returned by create_or_find_according_to_action.

    Raises:
        ArticleInvalid: If the article fails validation.
        IntegrityError: If the flush violates a database constraint, e.g. a
            duplicate custom_seller_identifier.
    """
    requested = article.requested_state

    if requested == RequestedState.CLOSED:
        article.deactivate()
        article.close()
    elif requested == RequestedState.ACTIVATED:
        article.activate()
    elif requested == RequestedState.DEACTIVATED:
        article.deactivate()
    else:
        if not article.validate():
            raise ArticleInvalid(article)
        db.add(article)

    db.flush()
