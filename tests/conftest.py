"""Shared fixtures: an in-memory SQLite database with two sellers."""
from __future__ import annotations

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_BASE_DIR", tempfile.mkdtemp(prefix="marketplace-tests-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.core.database import enable_sqlite_savepoints
from marketplace.core.models import Article, Base, User


def _sqlite_engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    return engine


@pytest.fixture
def raw_engine():
    """Empty database, no tables."""
    engine = _sqlite_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def engine(raw_engine):
    Base.metadata.create_all(raw_engine)
    return raw_engine


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def seller(db):
    user = User(email="seller@example.com", nickname="seller")
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def other_seller(db):
    user = User(email="other@example.com", nickname="other")
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def make_article(db, seller):
    """Factory for persisted, valid articles owned by `seller` unless told otherwise."""

    def _make(owner=None, **overrides):
        attributes = {
            "title": "Fair trade coffee",
            "content": "500g, whole beans",
            "condition": "new",
            "price_cents": 1299,
            "quantity": 3,
        }
        attributes.update(overrides)
        article = Article(**attributes)
        article.user_id = (owner or seller).id
        db.add(article)
        db.flush()
        return article

    return _make
