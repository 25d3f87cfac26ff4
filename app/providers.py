import asyncio
import logging
import time
from datetime import datetime, timezone

from app.config import settings
from app.fda.client import FdaClient
from app.fda.fetch_recalls import fetch_fda_recalls
from app.fsis.client import FsisClient
from app.fsis.fetch_recalls import fetch_fsis_recalls

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT_SECONDS = 5.0
NEWS_LIMIT = 20
NEWS_MONTHS_BACK = 12

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _enabled_fetchers():
    fetchers = []
    if settings.FDA_ENABLED:
        fetchers.append(("FDA", fetch_fda_recalls))
    if settings.FSIS_ENABLED:
        fetchers.append(("FSIS", fetch_fsis_recalls))
    return fetchers


def _date_key(record: dict):
    value = record.get("recallDate")
    return value if isinstance(value, datetime) else _EPOCH


def merge_recalls(batches, limit: int) -> list[dict]:
    """Dedupe by recallId (first one wins), newest first, truncated to limit."""
    seen = set()
    merged = []
    for batch in batches:
        for record in batch:
            recall_id = record.get("recallId")
            if recall_id in seen:
                continue
            seen.add(recall_id)
            merged.append(record)

    merged.sort(key=_date_key, reverse=True)
    return merged[:limit]


async def fetch_all_recalls(limit: int | None = None, search: str = "", months_back: int | None = None) -> list[dict]:
    """
    Query every enabled provider concurrently and merge the results.

    Each provider degrades to [] on failure, so an empty list here means
    "no live data", not "no recalls exist".
    """
    limit = limit or settings.LIVE_FETCH_LIMIT
    months_back = settings.LIVE_FETCH_MONTHS_BACK if months_back is None else months_back

    fetchers = _enabled_fetchers()
    if not fetchers:
        return []

    results = await asyncio.gather(
        *(fetch(limit=limit, search=search, months_back=months_back) for _, fetch in fetchers),
        return_exceptions=True,
    )

    batches = []
    for (name, _), result in zip(fetchers, results):
        if isinstance(result, BaseException):
            logger.error(f"{name} provider raised unexpectedly: {result!r}")
            continue
        logger.info(f"{name} provider returned {len(result)} recalls")
        batches.append(result)

    return merge_recalls(batches, limit)


async def search_recalls(term: str, limit: int = 20) -> list[dict]:
    return await fetch_all_recalls(limit=limit, search=term, months_back=settings.SEARCH_MONTHS_BACK)


async def fetch_recent_fda(limit: int = NEWS_LIMIT) -> list[dict]:
    return await fetch_fda_recalls(limit=limit, months_back=NEWS_MONTHS_BACK)


async def _ping_provider(client) -> dict:
    start = time.monotonic()
    try:
        await client.ping(timeout=HEALTH_TIMEOUT_SECONDS)
    except Exception as exc:
        return {
            "status": "unhealthy",
            "responseTimeMs": int((time.monotonic() - start) * 1000),
            "error": str(exc),
        }
    return {"status": "healthy", "responseTimeMs": int((time.monotonic() - start) * 1000), "error": None}


async def check_providers() -> dict:
    fda, fsis = await asyncio.gather(_ping_provider(FdaClient()), _ping_provider(FsisClient()))
    return {"fda": fda, "fsis": fsis}
