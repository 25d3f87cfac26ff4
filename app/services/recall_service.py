"""
Request-time recall aggregation.

A list request races a live provider fetch against LIVE_FETCH_TIMEOUT_SECONDS.
Live results that arrive in time are filtered, sorted and paginated in memory
and persisted in the background; otherwise the same filters run as a store
query. Late live results are still persisted, but never awaited.
"""
import asyncio
import functools
import logging
import math
import re
from datetime import datetime

from app import providers
from app.config import settings
from app.database.mongo import recall_store
from app.models.recall import ALL, NormalizedRecall, RecallPage, RecallQuery, SortOrder
from app.normalizer.categorize import CATEGORY_KEYWORDS
from app.normalizer.pipeline import normalize_many, normalize_recall
from app.services import background
from app.services.persist_service import persist_recalls

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "product", "brand", "description")
KEYWORD_FIELDS = ("title", "product", "description")
LOOKUP_LIMIT = 10


# ----------------------------
# Filter / sort / paginate
# ----------------------------

def _keyword_pattern(keyword: str) -> str:
    return r"\b" + re.escape(keyword)


def matches_query(recall: NormalizedRecall, query: RecallQuery) -> bool:
    if query.riskLevel != ALL and recall.riskLevel != query.riskLevel:
        return False
    if query.retailer != ALL and recall.retailer != query.retailer:
        return False
    if query.agency != ALL and recall.agency != query.agency:
        return False

    if query.search:
        term = query.search.lower()
        if not any(term in str(getattr(recall, f) or "").lower() for f in SEARCH_FIELDS):
            return False

    if query.category != ALL and recall.category != query.category:
        text = " ".join(str(getattr(recall, f) or "") for f in KEYWORD_FIELDS)
        keywords = CATEGORY_KEYWORDS.get(query.category, [])
        if not any(re.search(_keyword_pattern(k), text, re.IGNORECASE) for k in keywords):
            return False

    return True


def _sort_key(sort_by: str):
    def key(recall: NormalizedRecall):
        value = getattr(recall, sort_by, None)
        if isinstance(value, datetime):
            return (0, value.timestamp(), "")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (1, float(value), "")
        return (2, 0.0, "" if value is None else str(value))
    return key


def sort_recalls(recalls: list[NormalizedRecall], sort_by: str, sort_order: SortOrder) -> list[NormalizedRecall]:
    return sorted(recalls, key=_sort_key(sort_by), reverse=sort_order == SortOrder.DESC)


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


def paginate(recalls: list, page: int, page_size: int) -> list:
    start = (page - 1) * page_size
    return recalls[start:start + page_size]


def build_store_filter(query: RecallQuery) -> dict:
    """The store-side equivalent of `matches_query`, restricted to active recalls."""
    store_filter: dict = {"isActive": True}

    search_or = []
    if query.search:
        pattern = re.escape(query.search)
        search_or = [{f: {"$regex": pattern, "$options": "i"}} for f in SEARCH_FIELDS]

    category_or = []
    if query.category != ALL:
        category_or.append({"category": query.category})
        keyword_or = [
            {f: {"$regex": _keyword_pattern(k), "$options": "i"}}
            for k in CATEGORY_KEYWORDS.get(query.category, [])
            for f in KEYWORD_FIELDS
        ]
        if keyword_or:
            category_or.append({"$or": keyword_or})

    if search_or and category_or:
        store_filter["$and"] = [{"$or": search_or}, {"$or": category_or}]
    elif search_or:
        store_filter["$or"] = search_or
    elif category_or:
        store_filter["$or"] = category_or

    if query.retailer != ALL:
        store_filter["retailer"] = query.retailer
    if query.riskLevel != ALL:
        store_filter["riskLevel"] = query.riskLevel
    if query.agency != ALL:
        store_filter["agency"] = query.agency

    return store_filter


# ----------------------------
# Live fetch race
# ----------------------------

def _persist_late_results(task: asyncio.Task, store):
    if task.cancelled() or task.exception() is not None:
        return
    records = task.result()
    if records:
        logger.info(f"Live fetch finished after timeout with {len(records)} recalls, persisting")
        background.spawn(persist_recalls(records, store=store), name="persist-late-live-recalls")


async def _race_live_fetch(query: RecallQuery, timeout: float, store):
    """Live records if the fetch finished in time with data, else None."""
    task = background.spawn(
        providers.fetch_all_recalls(
            limit=settings.LIVE_FETCH_LIMIT,
            search=query.search,
            months_back=settings.LIVE_FETCH_MONTHS_BACK,
        ),
        name="live-recall-fetch",
    )
    done, _ = await asyncio.wait({task}, timeout=timeout)

    if not done:
        logger.warning(f"Live fetch timed out after {timeout}s, using stored recalls")
        task.add_done_callback(functools.partial(_persist_late_results, store=store))
        return None
    if task.exception() is not None:
        # The failure itself is logged by the background task callback
        logger.warning("Live fetch failed, using stored recalls")
        return None
    return task.result() or None


async def list_recalls(query: RecallQuery, store=None, timeout: float | None = None) -> RecallPage:
    store = store or recall_store
    timeout = settings.LIVE_FETCH_TIMEOUT_SECONDS if timeout is None else timeout
    page_size = settings.PAGE_SIZE

    live_records = await _race_live_fetch(query, timeout, store)

    if live_records:
        recalls = [r for r in normalize_many(live_records) if matches_query(r, query)]
        recalls = sort_recalls(recalls, query.sortBy, query.sortOrder)
        background.spawn(persist_recalls(live_records, store=store), name="persist-live-recalls")

        total = len(recalls)
        return RecallPage(
            records=paginate(recalls, query.page, page_size),
            total=total,
            page=query.page,
            totalPages=total_pages(total, page_size),
        )

    store_filter = build_store_filter(query)
    direction = 1 if query.sortOrder == SortOrder.ASC else -1
    docs = await store.find(
        store_filter,
        sort=[(query.sortBy, direction)],
        skip=(query.page - 1) * page_size,
        limit=page_size,
    )
    total = await store.count(store_filter)

    return RecallPage(
        records=normalize_many(docs),
        total=total,
        page=query.page,
        totalPages=total_pages(total, page_size),
    )


# ----------------------------
# Single-record lookup / product lookup / news
# ----------------------------

async def get_recall(recall_id: str, store=None) -> NormalizedRecall | None:
    """From the store if we have it, else from a provider search (and then stored)."""
    store = store or recall_store

    doc = await store.find_one(recall_id)
    if doc is not None:
        return normalize_recall(doc)

    wanted = recall_id.strip().lower()
    candidates = await providers.search_recalls(recall_id, limit=10)
    match = next((r for r in candidates if str(r.get("recallId", "")).strip().lower() == wanted), None)
    if match is None:
        return None

    await persist_recalls([match], store=store)
    return normalize_recall(match)


async def lookup_product(term: str, store=None, limit: int = LOOKUP_LIMIT) -> list[NormalizedRecall]:
    """
    Active recalls mentioning a barcode or product name, newest first.

    Falls back to a provider search when the store has nothing; those
    results are persisted in the background.
    """
    store = store or recall_store
    term = str(term or "").strip()
    if not term:
        return []

    pattern = re.escape(term)
    store_filter = {
        "isActive": True,
        "$or": [{f: {"$regex": pattern, "$options": "i"}} for f in SEARCH_FIELDS],
    }
    docs = await store.find(store_filter, sort=[("recallDate", -1)], limit=limit)
    if docs:
        return normalize_many(docs)

    logger.info(f"No stored recalls for '{term}', searching providers")
    records = await providers.search_recalls(term, limit=limit)
    if not records:
        return []

    background.spawn(persist_recalls(records, store=store), name="persist-lookup-recalls")
    return sort_recalls(normalize_many(records), "recallDate", SortOrder.DESC)[:limit]


async def recent_news() -> list[NormalizedRecall]:
    records = await providers.fetch_recent_fda()
    return sort_recalls(normalize_many(records), "recallDate", SortOrder.DESC)
