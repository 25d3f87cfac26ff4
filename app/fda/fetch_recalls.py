import logging
from collections.abc import Mapping

from app.errors import ProviderError
from app.fda.client import FdaClient
from app.normalizer.categorize import extract_states, infer_categories, infer_risk_level
from app.normalizer.dates import months_ago, parse_recall_date, utcnow, yyyymmdd
from app.normalizer.pipeline import first_non_empty, synthesize_recall_id

logger = logging.getLogger(__name__)

MAX_PAGE = 100


def build_search_query(search: str = "", months_back: int = 0, now=None) -> str:
    """openFDA `search` expression: report_date window AND a free-text match."""
    parts = []
    if months_back:
        now = now or utcnow()
        parts.append(f"report_date:[{yyyymmdd(months_ago(months_back, now))} TO {yyyymmdd(now)}]")

    term = str(search or "").replace('"', "").strip()
    if term:
        fields = ("product_description", "recalling_firm", "reason_for_recall", "recall_number")
        parts.append("(" + " OR ".join(f'{f}:"{term}"' for f in fields) + ")")

    return " AND ".join(parts)


def _text(value, default=""):
    value = first_non_empty(value)
    return str(value).strip() if value is not None else default


def transform_fda_record(record) -> dict:
    if not isinstance(record, Mapping):
        record = {}

    product = _text(record.get("product_description"), "Unknown FDA Product")
    reason = _text(record.get("reason_for_recall"), "Not specified")
    company = _text(first_non_empty(record.get("recalling_firm"), record.get("firm_name")), "Unknown Company")
    distribution = _text(record.get("distribution_pattern"), "Nationwide")

    recall_date = None
    for field in ("recall_initiation_date", "report_date"):
        recall_date = parse_recall_date(record.get(field))
        if recall_date is not None:
            break

    recall_id = _text(record.get("recall_number"))
    if not recall_id:
        recall_id = f"FDA-{record['id']}" if record.get("id") else synthesize_recall_id(
            product, company, reason, prefix="FDA"
        )

    categories = infer_categories(product)
    return {
        "recallId": recall_id,
        "title": product,
        "description": reason,
        "product": product,
        "brand": company,
        "reason": reason,
        "recallDate": recall_date or utcnow(),
        "agency": "FDA",
        "riskLevel": infer_risk_level(reason).value,
        "category": categories[0].value,
        "categories": [c.value for c in categories],
        "status": _text(first_non_empty(record.get("status"), record.get("recall_status")), "Ongoing"),
        "distribution": distribution,
        "statesAffected": extract_states(record.get("distribution_pattern")),
        "isActive": not record.get("termination_date"),
        "rawData": dict(record),
    }


def transform_fda_data(results) -> list[dict]:
    if not isinstance(results, list):
        return []
    return [transform_fda_record(r) for r in results]


async def fetch_fda_recalls(limit: int = 50, search: str = "", months_back: int = 5, client: FdaClient | None = None):
    """
    Query openFDA and transform the results. A failed query is retried once
    without the search expression; if that fails too the result is [].
    """
    client = client or FdaClient()
    params = {"limit": min(max(int(limit), 1), MAX_PAGE), "sort": "report_date:desc"}

    query = build_search_query(search, months_back)
    primary = dict(params, search=query) if query else params

    try:
        payload = await client.get(primary)
        return transform_fda_data(payload.get("results") or [])
    except ProviderError as exc:
        logger.error(f"FDA primary query failed: {exc}")

    try:
        payload = await client.get(params)
        return transform_fda_data(payload.get("results") or [])
    except ProviderError as exc:
        logger.error(f"FDA fallback query failed: {exc}")

    return []
