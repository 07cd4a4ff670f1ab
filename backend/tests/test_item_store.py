"""Tests for the SQL item store."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from app.db.models import BrainItem
from app.services.errors import ItemNotFoundError
from app.services.item_store import ItemFilter, ItemStore, apply_filter, count_values, unique_tags


def compile_sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def mock_session(result: MagicMock) -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(return_value=result)
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    return session


def test_unique_tags_is_ordered_union():
    assert unique_tags(["a", "b"], ["b", "c"]) == ["a", "b", "c"]
    assert unique_tags(None, ["x", "x"]) == ["x"]
    assert unique_tags() == []


def test_count_values_most_common_first():
    assert count_values(["a", "b", None, "b", ""]) == [("b", 2), ("a", 1)]


def test_filter_is_owner_scoped_and_conjunctive():
    sql = compile_sql(
        apply_filter(
            select(BrainItem),
            ItemFilter(user_id="U1", type="link", category="work", tags=["a", "b"], search="foo"),
        )
    )
    assert "brain_items.user_id = " in sql
    assert "brain_items.type = " in sql
    assert "brain_items.category = " in sql
    assert "brain_items.tags && " in sql
    assert "websearch_to_tsquery" in sql
    assert "@@" in sql
    assert sql.count(" AND ") >= 4


def test_contains_filter_uses_ilike():
    sql = compile_sql(apply_filter(select(BrainItem), ItemFilter(contains="milk")))
    assert "ILIKE" in sql.upper()
    assert "user_id" not in sql.split("WHERE", 1)[1]


@pytest.mark.asyncio
async def test_create_item_dedupes_tags():
    session = mock_session(MagicMock())
    store = ItemStore(session)

    item = await store.create_item(user_id="U1", type="text", content="hi", tags=["a", "a", "b"])

    assert item.tags == ["a", "b"]
    session.add.assert_called_once_with(item)
    session.commit.assert_awaited_once()
    session.refresh.assert_awaited_once_with(item)


@pytest.mark.asyncio
async def test_create_item_defaults_tags():
    store = ItemStore(mock_session(MagicMock()))
    item = await store.create_item(user_id="U1", type="text", content="hi")
    assert item.tags == []


@pytest.mark.asyncio
async def test_update_item_not_found():
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    session = mock_session(result)

    with pytest.raises(ItemNotFoundError):
        await ItemStore(session).update_item(uuid4(), "U1", title="new")
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_item_bumps_updated_at():
    result = MagicMock()
    result.scalar_one_or_none.return_value = BrainItem(user_id="U1", type="text", content="x")
    session = mock_session(result)

    await ItemStore(session).update_item(uuid4(), "U1", title="new")

    sql = compile_sql(session.execute.call_args.args[0])
    assert "updated_at=now()" in sql.replace(" ", "")
    assert "RETURNING" in sql


@pytest.mark.asyncio
async def test_update_item_rejects_immutable_fields():
    session = mock_session(MagicMock())
    with pytest.raises(ValueError):
        await ItemStore(session).update_item(uuid4(), "U1", type="image")
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_item_not_found():
    result = MagicMock()
    result.rowcount = 0
    with pytest.raises(ItemNotFoundError):
        await ItemStore(mock_session(result)).delete_item(uuid4(), "U1")


def where_clause(session: MagicMock) -> str:
    sql = compile_sql(session.execute.call_args.args[0])
    return sql.split("WHERE", 1)[1]


@pytest.mark.asyncio
async def test_get_item_matches_id_and_owner():
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    session = mock_session(result)

    assert await ItemStore(session).get_item(uuid4(), "U2") is None

    where = where_clause(session)
    assert "brain_items.id = " in where
    assert "brain_items.user_id = " in where
    assert " AND " in where


@pytest.mark.asyncio
async def test_delete_item_matches_id_and_owner():
    result = MagicMock()
    result.rowcount = 1
    session = mock_session(result)

    await ItemStore(session).delete_item(uuid4(), "U1")

    sql = compile_sql(session.execute.call_args.args[0])
    assert sql.startswith("DELETE FROM brain_items")
    where = sql.split("WHERE", 1)[1]
    assert "brain_items.id = " in where
    assert "brain_items.user_id = " in where
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_item_matches_id_and_owner():
    result = MagicMock()
    result.scalar_one_or_none.return_value = BrainItem(user_id="U1", type="text", content="x")
    session = mock_session(result)

    await ItemStore(session).update_item(uuid4(), "U1", category="work")

    where = where_clause(session).split("RETURNING", 1)[0]
    assert "brain_items.id = " in where
    assert "brain_items.user_id = " in where


@pytest.mark.asyncio
async def test_user_tags_are_owner_scoped():
    result = MagicMock()
    result.scalars.return_value = [["a", "b"], ["a"], None]
    session = mock_session(result)

    tags = await ItemStore(session).get_user_tags("U1")

    assert tags == [("a", 2), ("b", 1)]
    assert "brain_items.user_id = " in where_clause(session)


@pytest.mark.asyncio
async def test_user_categories_are_owner_scoped():
    result = MagicMock()
    result.scalars.return_value = ["work", "idea", "work"]
    session = mock_session(result)

    categories = await ItemStore(session).get_user_categories("U1")

    assert categories == [("work", 2), ("idea", 1)]
    where = where_clause(session)
    assert "brain_items.user_id = " in where
    assert "brain_items.category IS NOT NULL" in where


@pytest.mark.asyncio
async def test_get_items_scopes_both_count_and_page():
    count_result = MagicMock()
    count_result.scalar.return_value = 0
    page_result = MagicMock()
    page_result.scalars.return_value.all.return_value = []
    session = mock_session(count_result)
    session.execute = AsyncMock(side_effect=[count_result, page_result])

    page = await ItemStore(session).get_items(ItemFilter(user_id="U1"))

    assert page.total == 0
    assert page.has_more is False
    for call in session.execute.call_args_list:
        assert "brain_items.user_id = " in compile_sql(call.args[0])
