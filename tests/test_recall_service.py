import asyncio
import logging
import time
from datetime import datetime, timezone

import pytest

from app import providers
from app.errors import StoreUnavailableError
from app.models.recall import RecallQuery, SortOrder
from app.normalizer.pipeline import normalize_recall
from app.services import background, recall_service
from tests.conftest import FakeStore, make_record

UTC = timezone.utc


def _records(n):
    return [make_record(f"R-{i}", recallDate=datetime(2025, 1, i + 1, tzinfo=UTC)) for i in range(n)]


def _live(records=None, exc=None):
    async def fake_fetch_all(limit=None, search="", months_back=None):
        if exc is not None:
            raise exc
        return records or []
    return fake_fetch_all


async def test_live_results_are_paginated_and_persisted(monkeypatch, fake_store):
    monkeypatch.setattr(providers, "fetch_all_recalls", _live(_records(15)))

    page = await recall_service.list_recalls(RecallQuery(page="2"), store=fake_store)

    assert page.total == 15
    assert page.page == 2
    assert page.totalPages == 2
    assert [r.recallId for r in page.records] == ["R-2", "R-1", "R-0"]

    await background.drain()
    assert sorted(fake_store.upserts) == sorted(f"R-{i}" for i in range(15))
    assert fake_store.find_calls == []


async def test_live_results_are_filtered(monkeypatch, fake_store):
    records = [
        make_record("A", product="Ground Beef", reason="E. coli O157:H7"),
        make_record("B", product="Granola Bar", reason="Undeclared peanuts"),
    ]
    monkeypatch.setattr(providers, "fetch_all_recalls", _live(records))

    page = await recall_service.list_recalls(RecallQuery(riskLevel="high"), store=fake_store)

    assert [r.recallId for r in page.records] == ["A"]
    assert page.total == 1


async def test_empty_live_fetch_uses_store(monkeypatch):
    store = FakeStore(docs=_records(3), total=30)
    monkeypatch.setattr(providers, "fetch_all_recalls", _live([]))
    query = RecallQuery(search="granola", sortBy="title", sortOrder="asc")

    page = await recall_service.list_recalls(query, store=store)

    assert store.find_calls == [{
        "filter": recall_service.build_store_filter(query),
        "sort": [("title", 1)],
        "skip": 0,
        "limit": 12,
    }]
    assert page.total == 30
    assert page.totalPages == 3
    assert len(page.records) == 3


async def test_failed_live_fetch_uses_store(monkeypatch):
    store = FakeStore(docs=_records(2))
    monkeypatch.setattr(providers, "fetch_all_recalls", _live(exc=RuntimeError("boom")))

    page = await recall_service.list_recalls(RecallQuery(page=3), store=store)

    assert store.find_calls[0]["skip"] == 24
    assert store.find_calls[0]["sort"] == [("recallDate", -1)]
    assert page.page == 3


async def test_failed_live_fetch_is_logged_once(monkeypatch, caplog):
    monkeypatch.setattr(providers, "fetch_all_recalls", _live(exc=RuntimeError("boom")))

    with caplog.at_level(logging.INFO):
        await recall_service.list_recalls(RecallQuery(), store=FakeStore(docs=_records(1)))
        await background.drain()

    assert len([r for r in caplog.records if "boom" in r.getMessage()]) == 1
    assert "Live fetch failed, using stored recalls" in caplog.messages


async def test_slow_live_fetch_is_bounded(monkeypatch):
    async def slow_fetch(limit=None, search="", months_back=None):
        await asyncio.sleep(5)
        return _records(1)

    store = FakeStore(docs=_records(1))
    monkeypatch.setattr(providers, "fetch_all_recalls", slow_fetch)

    started = time.monotonic()
    page = await recall_service.list_recalls(RecallQuery(), store=store, timeout=0.05)

    assert time.monotonic() - started < 1.0
    assert len(store.find_calls) == 1
    assert page.total == 1


async def test_late_live_results_are_persisted(monkeypatch):
    release = asyncio.Event()

    async def late_fetch(limit=None, search="", months_back=None):
        await release.wait()
        return [make_record("LATE-1")]

    store = FakeStore()
    monkeypatch.setattr(providers, "fetch_all_recalls", late_fetch)

    await recall_service.list_recalls(RecallQuery(), store=store, timeout=0.01)
    assert store.upserts == []

    release.set()
    await background.drain()
    await background.drain()

    assert store.upserts == ["LATE-1"]


async def test_store_unavailable_propagates(monkeypatch):
    monkeypatch.setattr(providers, "fetch_all_recalls", _live([]))
    with pytest.raises(StoreUnavailableError):
        await recall_service.list_recalls(RecallQuery(), store=FakeStore(unavailable=True))


def test_store_filter_defaults_to_active():
    assert recall_service.build_store_filter(RecallQuery()) == {"isActive": True}


def test_store_filter_search_only():
    store_filter = recall_service.build_store_filter(RecallQuery(search="a.b"))
    assert store_filter["$or"] == [
        {f: {"$regex": r"a\.b", "$options": "i"}} for f in ("title", "product", "brand", "description")
    ]


def test_store_filter_combines_search_and_category():
    query = RecallQuery(search="beef", category="beef", retailer="kroger", riskLevel="HIGH")
    store_filter = recall_service.build_store_filter(query)

    assert store_filter["isActive"] is True
    assert store_filter["retailer"] == "kroger"
    assert store_filter["riskLevel"] == "high"
    search_clause, category_clause = store_filter["$and"]
    assert len(search_clause["$or"]) == 4
    assert category_clause["$or"][0] == {"category": "beef"}
    assert "$or" not in store_filter


def test_store_filter_agency():
    assert recall_service.build_store_filter(RecallQuery(agency="fsis")) == {"isActive": True, "agency": "FSIS"}
    assert RecallQuery(agency="NASA").agency == "all"


def test_agency_filter_in_memory():
    recall = normalize_recall(make_record("X", agency="FSIS"))
    assert recall_service.matches_query(recall, RecallQuery(agency="FSIS"))
    assert not recall_service.matches_query(recall, RecallQuery(agency="FDA"))
    assert recall_service.matches_query(recall, RecallQuery(agency="bogus"))


def test_category_filter_matches_keywords():
    recall = normalize_recall(make_record("X", product="Mystery Item", description="contains chicken broth"))
    assert recall.category != "poultry"
    assert recall_service.matches_query(recall, RecallQuery(category="poultry"))
    assert not recall_service.matches_query(recall, RecallQuery(category="seafood"))


def test_sort_recalls_by_text_and_date():
    a = normalize_recall(make_record("A", product="Apple Slices", recallDate=datetime(2025, 1, 1, tzinfo=UTC)))
    b = normalize_recall(make_record("B", product="Banana Chips", recallDate=datetime(2025, 2, 1, tzinfo=UTC)))

    assert [r.recallId for r in recall_service.sort_recalls([a, b], "recallDate", SortOrder.DESC)] == ["B", "A"]
    assert [r.recallId for r in recall_service.sort_recalls([b, a], "product", SortOrder.ASC)] == ["A", "B"]


def test_total_pages():
    assert recall_service.total_pages(0, 12) == 0
    assert recall_service.total_pages(12, 12) == 1
    assert recall_service.total_pages(13, 12) == 2


async def test_get_recall_from_store(monkeypatch):
    store = FakeStore(docs=[make_record("F-1")])

    async def must_not_search(term, limit=20):
        raise AssertionError("store hit should not reach the providers")

    monkeypatch.setattr(providers, "search_recalls", must_not_search)

    recall = await recall_service.get_recall("F-1", store=store)
    assert recall.recallId == "F-1"


async def test_get_recall_from_providers_is_stored(monkeypatch, fake_store):
    async def fake_search(term, limit=20):
        return [make_record("F-10"), make_record("F-1")]

    monkeypatch.setattr(providers, "search_recalls", fake_search)

    recall = await recall_service.get_recall("f-1", store=fake_store)

    assert recall.recallId == "F-1"
    assert fake_store.upserts == ["F-1"]


async def test_get_recall_not_found(monkeypatch, fake_store):
    async def fake_search(term, limit=20):
        return [make_record("F-10")]

    monkeypatch.setattr(providers, "search_recalls", fake_search)

    assert await recall_service.get_recall("F-1", store=fake_store) is None
    assert fake_store.upserts == []


async def test_recent_news_is_newest_first(monkeypatch):
    async def fake_recent(limit=20):
        return _records(3)

    monkeypatch.setattr(providers, "fetch_recent_fda", fake_recent)

    news = await recall_service.recent_news()
    assert [r.recallId for r in news] == ["R-2", "R-1", "R-0"]


async def test_lookup_product_from_store(monkeypatch, mongo_store):
    await mongo_store.upsert("OLD", {**make_record("OLD", recallDate=datetime(2025, 1, 1, tzinfo=UTC)), "isActive": True})
    await mongo_store.upsert("NEW", {**make_record("NEW", recallDate=datetime(2025, 5, 1, tzinfo=UTC)), "isActive": True})
    await mongo_store.upsert("GONE", {**make_record("GONE"), "isActive": False})
    await mongo_store.upsert("BEEF", {**make_record("BEEF", product="Ground Beef"), "isActive": True})

    async def must_not_search(term, limit=20):
        raise AssertionError("store hit should not reach the providers")

    monkeypatch.setattr(providers, "search_recalls", must_not_search)

    recalls = await recall_service.lookup_product("granola", store=mongo_store)

    assert [r.recallId for r in recalls] == ["NEW", "OLD"]


async def test_lookup_product_falls_back_to_providers(monkeypatch, fake_store):
    searched = []

    async def fake_search(term, limit=20):
        searched.append((term, limit))
        return [
            make_record("P-1", recallDate=datetime(2025, 1, 1, tzinfo=UTC)),
            make_record("P-2", recallDate=datetime(2025, 3, 1, tzinfo=UTC)),
        ]

    monkeypatch.setattr(providers, "search_recalls", fake_search)

    recalls = await recall_service.lookup_product(" 0123456789 ", store=fake_store)

    assert [r.recallId for r in recalls] == ["P-2", "P-1"]
    assert searched == [("0123456789", 10)]
    assert fake_store.find_calls[0]["sort"] == [("recallDate", -1)]
    assert fake_store.find_calls[0]["limit"] == 10
    assert fake_store.find_calls[0]["filter"]["isActive"] is True

    await background.drain()
    assert sorted(fake_store.upserts) == ["P-1", "P-2"]


async def test_lookup_product_nothing_found(monkeypatch, fake_store):
    async def fake_search(term, limit=20):
        return []

    monkeypatch.setattr(providers, "search_recalls", fake_search)

    assert await recall_service.lookup_product("unicorn meat", store=fake_store) == []
    assert await recall_service.lookup_product("   ", store=fake_store) == []
    assert len(fake_store.find_calls) == 1
