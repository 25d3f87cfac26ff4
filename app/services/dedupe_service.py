"""
Duplicate maintenance for the recalls collection.

Records are grouped by `dedupe_key`; in each group with more than one member
one keeper survives with merged tags, the earliest recallDate and an isActive
flag that is true if any member was active. The rest are deleted.
"""
import logging
import re
from datetime import datetime

from app.database.mongo import recall_store
from app.errors import StoreUnavailableError
from app.normalizer.dates import parse_recall_date

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9 ]")


def _signature_part(value) -> str:
    text = re.sub(r"\s+", " ", str(value or "").lower().strip())
    return _NON_ALNUM_RE.sub("", text).strip()


def dedupe_key(record: dict) -> str:
    recall_id = str(record.get("recallId") or "").strip()
    if recall_id:
        return f"ID::{recall_id.lower()}"

    product = _signature_part(record.get("product") or record.get("product_description") or record.get("title"))
    brand = _signature_part(record.get("brand") or record.get("recalling_firm") or record.get("Firm"))
    recall_date = parse_recall_date(record.get("recallDate") or record.get("releaseDate"))
    day = recall_date.date().isoformat() if recall_date else "nodate"
    return f"SIG::{product}||{brand}||{day}"


def _updated_at(doc: dict) -> float:
    value = parse_recall_date(doc.get("updatedAt"))
    return value.timestamp() if value else 0.0


def _choose_keeper(docs: list[dict]) -> dict:
    for doc in docs:
        if str(doc.get("recallId") or "").strip():
            return doc
    return max(docs, key=_updated_at)


def plan_dedupe(records: list[dict]) -> list[dict]:
    groups: dict[str, list[dict]] = {}
    for record in records:
        groups.setdefault(dedupe_key(record), []).append(record)

    plan = []
    for key, docs in groups.items():
        if len(docs) < 2:
            continue

        keeper = _choose_keeper(docs)
        others = [d for d in docs if d is not keeper]

        tags = []
        for doc in [keeper] + others:
            for tag in doc.get("tags") or []:
                if str(tag) not in tags:
                    tags.append(str(tag))

        dates = [d for d in (parse_recall_date(doc.get("recallDate")) for doc in docs) if d is not None]

        plan.append({
            "key": key,
            "keeper": keeper,
            "count": len(docs),
            "merged": {
                "tags": sorted(tags),
                "recallDate": min(dates) if dates else keeper.get("recallDate"),
                "isActive": any(doc.get("isActive") is True for doc in docs),
            },
            "toDelete": [doc.get("_id") for doc in others],
        })
    return plan


def _summary(entry: dict) -> dict:
    recall_date = entry["merged"]["recallDate"]
    return {
        "key": entry["key"],
        "keeperId": str(entry["keeper"].get("_id")),
        "recallId": entry["keeper"].get("recallId"),
        "count": entry["count"],
        "recallDate": recall_date.isoformat() if isinstance(recall_date, datetime) else recall_date,
        "delete": [str(i) for i in entry["toDelete"]],
    }


async def _load_all(store) -> list[dict]:
    docs = []
    last_id = None
    while True:
        batch = await store.find_batch(last_id)
        if not batch:
            return docs
        docs.extend(batch)
        last_id = batch[-1]["_id"]


async def dedupe_recalls(apply: bool = False, store=None) -> dict:
    """Dry run unless `apply` is set."""
    store = store or recall_store
    docs = await _load_all(store)
    plan = plan_dedupe(docs)
    logger.info(f"Found {len(docs)} recalls, {len(plan)} duplicate groups")

    updated = 0
    deleted = 0
    if apply:
        logger.info("▶ Applying dedupe plan...")
        for entry in plan:
            keeper = entry["keeper"]
            try:
                await store.update_by_id(keeper["_id"], dict(keeper, **entry["merged"]))
                updated += 1
                deleted += await store.delete_many({"_id": {"$in": entry["toDelete"]}})
            except StoreUnavailableError:
                raise
            except Exception:
                logger.exception(f"Failed to apply dedupe group {entry['key']}")
        logger.info(f"✔ Dedupe complete. {updated} keepers updated, {deleted} duplicates deleted.")

    return {
        "applied": apply,
        "scanned": len(docs),
        "groups": [_summary(e) for e in plan],
        "updated": updated,
        "deleted": deleted,
    }
