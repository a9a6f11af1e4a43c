"""Tests for action based dispatch of upload rows and the commit step."""

from __future__ import annotations

import pytest

from marketplace.core.dynamic_processing import (
    ERROR_NO_IDENTIFIER,
    ERROR_NOT_FOUND,
    ERROR_UNKNOWN_ACTION,
    Action,
    create_or_find_according_to_action,
    default_action,
    parse_action,
    process,
    resolve_action,
)
from marketplace.core.models import Article, ArticleInvalid, ArticleState, RequestedState


VALID_FIELDS = {
    "title": "Organic cotton shirt",
    "content": "Size M, never worn",
    "condition": "new",
    "price_cents": 2500,
    "quantity": 2,
    "custom_seller_identifier": "sku-42",
}


# -- action parsing ---------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("c", Action.CREATE),
        ("create", Action.CREATE),
        ("u", Action.UPDATE),
        ("update", Action.UPDATE),
        ("x", Action.CLOSE),
        ("delete", Action.CLOSE),
        ("a", Action.ACTIVATE),
        ("activate", Action.ACTIVATE),
        ("d", Action.DEACTIVATE),
        ("deactivate", Action.DEACTIVATE),
        ("zzz", Action.UNKNOWN),
        ("", Action.UNKNOWN),
        ("Create", Action.UNKNOWN),
        (7, Action.UNKNOWN),
        (None, None),
    ],
)
def test_parse_action(raw, expected):
    assert parse_action(raw) is expected


def test_default_action_is_update_only_with_id():
    assert default_action({"id": 5}) is Action.UPDATE
    assert default_action({"title": "x"}) is Action.CREATE
    assert default_action({"id": None, "custom_seller_identifier": "sku"}) is Action.CREATE


def test_empty_id_counts_as_present():
    assert default_action({"id": ""}) is Action.UPDATE
    assert default_action({"id": "", "custom_seller_identifier": "sku"}) is Action.UPDATE


def test_resolve_action_never_yields_absent_or_unknown_without_token():
    assert resolve_action({}) is Action.CREATE
    assert resolve_action({"id": "3"}) is Action.UPDATE
    assert resolve_action({"action": "x", "id": "3"}) is Action.CLOSE


# -- create -----------------------------------------------------------------


def test_create_builds_unsaved_article_with_fields(db, seller):
    article = create_or_find_according_to_action(db, {"action": "c", **VALID_FIELDS}, seller)

    assert article.errors == []
    assert article.id is None
    assert article not in db
    assert article.user_id == seller.id
    assert article.requested_state is None
    assert article.action == "create"
    for key, value in VALID_FIELDS.items():
        assert getattr(article, key) == value


def test_create_ignores_protected_and_unknown_keys(db, seller, other_seller):
    article = create_or_find_according_to_action(
        db,
        {
            "action": "create",
            "id": "99",
            "user_id": other_seller.id,
            "state": "active",
            "colour": "blue",
            **VALID_FIELDS,
        },
        seller,
    )

    assert article.id is None
    assert article.user_id == seller.id
    assert article.state == ArticleState.PREVIEW.value
    assert not hasattr(article, "colour")


def test_missing_action_without_id_creates(db, seller):
    article = create_or_find_according_to_action(db, dict(VALID_FIELDS), seller)

    assert article.errors == []
    assert article.id is None
    assert article.action == "create"


def test_dispatch_does_not_mutate_the_row(db, seller):
    row = dict(VALID_FIELDS)
    create_or_find_according_to_action(db, row, seller)
    assert "action" not in row


# -- update -----------------------------------------------------------------


def test_update_by_id_merges_attributes(db, seller, make_article):
    existing = make_article()

    article = create_or_find_according_to_action(
        db, {"action": "u", "id": existing.id, "title": "new"}, seller
    )

    assert article is existing
    assert article.title == "new"
    assert article.content == "500g, whole beans"
    assert article.requested_state is None
    assert article.errors == []


def test_update_accepts_numeric_string_id(db, seller, make_article):
    existing = make_article()

    article = create_or_find_according_to_action(
        db, {"action": "update", "id": str(existing.id), "quantity": "9"}, seller
    )

    assert article is existing
    assert article.quantity == "9"


def test_update_by_custom_identifier(db, seller, make_article):
    existing = make_article(custom_seller_identifier="sku-1")

    article = create_or_find_according_to_action(
        db, {"action": "u", "custom_seller_identifier": "sku-1", "price_cents": 100}, seller
    )

    assert article is existing
    assert article.price_cents == 100


def test_id_wins_over_custom_identifier(db, seller, make_article):
    by_id = make_article(custom_seller_identifier="sku-1")
    make_article(custom_seller_identifier="sku-2")

    article = create_or_find_according_to_action(
        db, {"action": "u", "id": by_id.id, "custom_seller_identifier": "sku-2"}, seller
    )

    assert article is by_id


def test_missing_action_with_id_behaves_like_update(db, seller, make_article):
    existing = make_article()

    implicit = create_or_find_according_to_action(db, {"id": existing.id, "title": "same"}, seller)
    explicit = create_or_find_according_to_action(
        db, {"action": "u", "id": existing.id, "title": "same"}, seller
    )

    assert implicit is explicit is existing
    assert implicit.action == explicit.action == "update"
    assert existing.title == "same"
    assert existing.requested_state is None


def test_update_clears_state_left_by_an_earlier_row(db, seller, make_article):
    existing = make_article()
    create_or_find_according_to_action(db, {"action": "x", "id": existing.id}, seller)
    assert existing.requested_state == RequestedState.CLOSED

    create_or_find_according_to_action(db, {"action": "u", "id": existing.id}, seller)

    assert existing.requested_state is None


# -- state changes ----------------------------------------------------------


@pytest.mark.parametrize(
    "code, requested",
    [
        ("x", RequestedState.CLOSED),
        ("delete", RequestedState.CLOSED),
        ("a", RequestedState.ACTIVATED),
        ("activate", RequestedState.ACTIVATED),
        ("d", RequestedState.DEACTIVATED),
        ("deactivate", RequestedState.DEACTIVATED),
    ],
)
def test_state_actions_only_flag_the_article(db, seller, make_article, code, requested):
    existing = make_article(title="unchanged")

    article = create_or_find_according_to_action(
        db, {"action": code, "id": existing.id, "title": "ignored"}, seller
    )

    assert article is existing
    assert article.requested_state == requested
    assert article.title == "unchanged"
    assert article.state == ArticleState.PREVIEW.value


# -- failures ---------------------------------------------------------------


def test_unknown_action_returns_error_placeholder(db, seller):
    article = create_or_find_according_to_action(db, {"action": "zzz"}, seller)

    assert isinstance(article, Article)
    assert article.errors == [ERROR_UNKNOWN_ACTION]
    assert article.id is None


def test_missing_identifier_returns_error_placeholder(db, seller):
    article = create_or_find_according_to_action(db, {"action": "u", "title": "x"}, seller)

    assert article.errors == [ERROR_NO_IDENTIFIER]
    assert article.id is None


def test_unknown_custom_identifier_is_not_found(db, seller, make_article):
    make_article(custom_seller_identifier="sku-2")

    article = create_or_find_according_to_action(
        db, {"action": "u", "custom_seller_identifier": "sku-1"}, seller
    )

    assert article.errors == [ERROR_NOT_FOUND]
    assert article.id is None


def test_non_numeric_id_is_not_found(db, seller):
    article = create_or_find_according_to_action(db, {"action": "x", "id": "abc"}, seller)

    assert article.errors == [ERROR_NOT_FOUND]


def test_empty_id_is_not_found(db, seller, make_article):
    make_article(custom_seller_identifier="sku-1")

    article = create_or_find_according_to_action(
        db, {"id": "", "custom_seller_identifier": "sku-1"}, seller
    )

    assert article.errors == [ERROR_NOT_FOUND]
    assert article.id is None


def test_id_beyond_column_range_is_not_found(db, seller):
    article = create_or_find_according_to_action(
        db, {"action": "x", "id": "100000000000000000000"}, seller
    )

    assert article.errors == [ERROR_NOT_FOUND]


def test_lookups_are_scoped_to_the_owner(db, seller, other_seller, make_article):
    foreign = make_article(owner=other_seller, custom_seller_identifier="sku-1")

    by_id = create_or_find_according_to_action(db, {"action": "x", "id": foreign.id}, seller)
    by_identifier = create_or_find_according_to_action(
        db, {"action": "u", "custom_seller_identifier": "sku-1", "title": "stolen"}, seller
    )

    assert by_id.errors == [ERROR_NOT_FOUND]
    assert by_identifier.errors == [ERROR_NOT_FOUND]
    assert foreign.title == "Fair trade coffee"
    assert foreign.requested_state is None


# -- commit -----------------------------------------------------------------


def test_process_persists_new_article(db, seller):
    article = create_or_find_according_to_action(db, {"action": "c", **VALID_FIELDS}, seller)

    process(db, article)

    assert article.id is not None
    assert db.get(Article, article.id) is article
    assert article.state == ArticleState.PREVIEW.value


def test_process_rejects_invalid_article(db, seller):
    article = create_or_find_according_to_action(db, {"action": "c", "title": ""}, seller)

    with pytest.raises(ArticleInvalid) as excinfo:
        process(db, article)

    assert "Title can't be blank" in excinfo.value.messages
    assert article not in db


def test_close_deactivates_then_closes(db, seller, make_article, monkeypatch):
    existing = make_article()
    calls = []
    monkeypatch.setattr(Article, "deactivate", lambda self: calls.append("deactivate"))
    monkeypatch.setattr(Article, "close", lambda self: calls.append("close"))

    article = create_or_find_according_to_action(db, {"action": "x", "id": existing.id}, seller)
    process(db, article)

    assert calls == ["deactivate", "close"]


def test_close_of_active_article(db, seller, make_article):
    existing = make_article(state=ArticleState.ACTIVE.value)

    article = create_or_find_according_to_action(db, {"action": "x", "id": existing.id}, seller)
    process(db, article)

    assert article.state == ArticleState.CLOSED.value


def test_close_twice_is_harmless(db, seller, make_article):
    existing = make_article(state=ArticleState.ACTIVE.value)
    article = create_or_find_according_to_action(db, {"action": "x", "id": existing.id}, seller)

    process(db, article)
    process(db, article)

    assert article.state == ArticleState.CLOSED.value


def test_activate_and_deactivate(db, seller, make_article):
    existing = make_article()

    article = create_or_find_according_to_action(db, {"action": "a", "id": existing.id}, seller)
    process(db, article)
    assert article.state == ArticleState.ACTIVE.value

    article = create_or_find_according_to_action(db, {"action": "d", "id": existing.id}, seller)
    process(db, article)
    assert article.state == ArticleState.LOCKED.value


def test_activate_of_invalid_article_raises(db, seller, make_article):
    existing = make_article()
    existing.condition = "broken"

    article = create_or_find_according_to_action(db, {"action": "a", "id": existing.id}, seller)

    with pytest.raises(ArticleInvalid):
        process(db, article)
    assert article.state == ArticleState.PREVIEW.value
