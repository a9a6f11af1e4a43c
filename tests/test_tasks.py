"""Tests for the mass upload Celery task, run eagerly against the test session."""

from __future__ import annotations

from contextlib import contextmanager

import pytest

import marketplace.tasks.mass_upload as mass_upload_task
from marketplace.core.dynamic_processing import ERROR_NOT_FOUND
from marketplace.core.models import Article, ArticleState


@pytest.fixture
def use_test_session(db, monkeypatch):
    @contextmanager
    def _get_db():
        yield db
        db.flush()

    monkeypatch.setattr(mass_upload_task, "get_db", _get_db)
    return db


def test_process_mass_upload(use_test_session, seller, make_article, tmp_path):
    existing = make_article(custom_seller_identifier="sku-1")
    upload = tmp_path / "articles.csv"
    upload.write_text(
        "\ufeffaction;custom_seller_identifier;title;content;condition;price_cents;quantity\n"
        "c;sku-2;Desk lamp;Brass, 40cm;old;4500;1\n"
        "a;sku-1;;;;;\n"
        "u;sku-404;Ghost;;;;\n",
        encoding="utf-8",
    )

    result = mass_upload_task.process_mass_upload(seller.id, str(upload))

    assert result == {
        "status": "success",
        "file": str(upload),
        "processed": 3,
        "succeeded": 2,
        "failed": 1,
        "errors": {"3": [ERROR_NOT_FOUND]},
    }
    assert existing.state == ArticleState.ACTIVE.value
    created = (
        use_test_session.query(Article)
        .filter(Article.custom_seller_identifier == "sku-2")
        .one()
    )
    assert created.user_id == seller.id
    assert created.price_cents == 4500


def test_process_mass_upload_unknown_user(use_test_session, tmp_path):
    upload = tmp_path / "articles.csv"
    upload.write_text("title\nLamp\n", encoding="utf-8")

    result = mass_upload_task.process_mass_upload(12345, str(upload))

    assert result["status"] == "error"
    assert result["error"] == "User 12345 not found"


def test_process_mass_upload_missing_file(use_test_session, seller, tmp_path):
    missing = tmp_path / "nope.csv"

    result = mass_upload_task.process_mass_upload(seller.id, str(missing))

    assert result["status"] == "error"
    assert result["file"] == str(missing)
