"""
Data models for working with the database.

This module contains SQLAlchemy ORM model definitions for the marketplace:
sellers (User), the items they offer (Article) and the pictures attached to
an article (Image).

Besides its columns, an Article carries three transient attributes that are
never persisted: ``errors`` (messages collected by validation or by the
mass upload dispatcher), ``action`` (the resolved action code of the row
that produced it) and ``requested_state`` (the lifecycle change the next
commit should perform instead of a plain save).

Classes:
    Base: Base class for all SQLAlchemy ORM models.
    ArticleState: Persisted lifecycle states of an article.
    RequestedState: Transient lifecycle change requests.
    ArticleInvalid: Raised when an article fails validation on commit.
    User: Model for marketplace accounts.
    Article: Model for items offered by a user.
    Image: Model for article pictures.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import (  # type: ignore
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, reconstructor, relationship  # type: ignore

from marketplace.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()

TITLE_MAX_LENGTH = 200
# Largest value an Integer column holds on every supported database (int4)
INTEGER_MAX = 2**31 - 1
CONDITIONS = ("new", "old")


class ArticleState(str, Enum):
    PREVIEW = "preview"
    ACTIVE = "active"
    LOCKED = "locked"
    CLOSED = "closed"


class RequestedState(str, Enum):
    CLOSED = "closed"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"


class ArticleInvalid(Exception):
    """
    Raised when an article cannot be saved or activated because it is invalid.

    Attributes:
        article (Article): The article that failed validation.
        messages (list[str]): Validation messages at the time of failure.
    """

    def __init__(self, article: "Article"):
        self.article = article
        self.messages = list(article.errors)
        super().__init__(f"Validation failed: {', '.join(self.messages)}")


class User(Base):
    """
    Model for marketplace accounts.

    Attributes:
        id (int): Unique record identifier in the database.
        email (str): Login e-mail address, unique.
        nickname (str): Public name shown next to the user's articles.
        created_at (datetime): Registration time.
        articles (list[Article]): Articles offered by this user.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    nickname = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    articles = relationship(
        "Article", back_populates="seller", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, nickname='{self.nickname}')>"


class Article(Base):
    """
    Model for items offered by a user.

    Attributes:
        id (int): Unique record identifier, None until the article is persisted.
        user_id (int): Owner of the article.
        title (str): Article title.
        content (str): Free text description.
        condition (str): Either "new" or "old".
        price_cents (int): Price in cents.
        quantity (int): Number of items available.
        custom_seller_identifier (str): Seller's own identifier (e.g. a SKU),
            unique per seller. Used to match mass upload rows.
        state (str): One of the ArticleState values.
        created_at (datetime): Creation time.
        updated_at (datetime): Time of the last change.

    Note:
        The (user_id, custom_seller_identifier) pair is unique, so two
        articles of different sellers may share an identifier.
    """

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    content = Column(Text, nullable=False)
    condition = Column(String, nullable=False)
    price_cents = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    custom_seller_identifier = Column(String, nullable=True)
    state = Column(String, nullable=False, default=ArticleState.PREVIEW.value)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    seller = relationship("User", back_populates="articles")
    images = relationship(
        "Image",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="Image.position",
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "custom_seller_identifier", name="uq_article_seller_identifier"
        ),
    )

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("quantity", 1)
        kwargs.setdefault("state", ArticleState.PREVIEW.value)
        super().__init__(**kwargs)
        self._init_transient()

    @reconstructor
    def _init_transient(self) -> None:
        # Called for fresh instances and for instances loaded from the database
        self.errors: List[str] = []
        self.action: Optional[str] = None
        self.requested_state: Optional[RequestedState] = None

    @property
    def title_image(self) -> Optional["Image"]:
        """First image of the article, or None when it has no images."""
        if not self.images:
            return None
        return self.images[0]

    def _coerce_integer(self, label: str, value: Any, minimum: int) -> Any:
        if value is None or value == "":
            self.errors.append(f"{label} can't be blank")
            return value
        try:
            number = int(value)
        except (TypeError, ValueError):
            self.errors.append(f"{label} is not a number")
            return value
        if number < minimum:
            self.errors.append(f"{label} must be greater than or equal to {minimum}")
        elif number > INTEGER_MAX:
            self.errors.append(f"{label} must be less than or equal to {INTEGER_MAX}")
        return number

    def validate(self) -> bool:
        """
        Check the article's attributes and collect messages in ``errors``.

        Numeric attributes given as strings (as they arrive from CSV files)
        are converted to integers in place.

        Returns:
            bool: True if the article is valid.
        """
        self.errors = []

        if not self.title or not str(self.title).strip():
            self.errors.append("Title can't be blank")
        elif len(str(self.title)) > TITLE_MAX_LENGTH:
            self.errors.append(
                f"Title is too long (maximum is {TITLE_MAX_LENGTH} characters)"
            )

        if not self.content or not str(self.content).strip():
            self.errors.append("Content can't be blank")

        if self.condition not in CONDITIONS:
            self.errors.append("Condition is not included in the list")

        price = self._coerce_integer("Price cents", self.price_cents, minimum=0)
        if price != self.price_cents:
            self.price_cents = price
        quantity = self._coerce_integer("Quantity", self.quantity, minimum=1)
        if quantity != self.quantity:
            self.quantity = quantity

        return not self.errors

    def activate(self) -> None:
        """
        Put the article on sale.

        Raises:
            ArticleInvalid: If the article does not pass validation.
        """
        if not self.validate():
            raise ArticleInvalid(self)
        if self.state != ArticleState.ACTIVE.value:
            logger.info(f"Activating article {self.id}")
            self.state = ArticleState.ACTIVE.value

    def deactivate(self) -> None:
        """Take an active article off sale. Other states are left unchanged."""
        if self.state == ArticleState.ACTIVE.value:
            logger.info(f"Deactivating article {self.id}")
            self.state = ArticleState.LOCKED.value

    def close(self) -> None:
        if self.state != ArticleState.CLOSED.value:
            logger.info(f"Closing article {self.id}")
            self.state = ArticleState.CLOSED.value

    def __repr__(self):
        return (
            f"<Article(id={self.id}, title='{self.title}', "
            f"identifier='{self.custom_seller_identifier}', state='{self.state}')>"
        )


class Image(Base):
    """
    Model for article pictures.

    Attributes:
        id (int): Unique record identifier in the database.
        article_id (int): Article the image belongs to.
        image_url (str): Location of the picture.
        position (int): Display order; the lowest position is the title image.
    """

    __tablename__ = "images"

    id = Column(Integer, primary_key=True)
    article_id = Column(
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    article = relationship("Article", back_populates="images")

    def __repr__(self):
        return f"<Image(id={self.id}, article_id={self.article_id}, url='{self.image_url}')>"
