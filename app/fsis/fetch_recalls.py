import logging
import re
from collections.abc import Mapping

from app.errors import ProviderError
from app.fsis.client import FsisClient
from app.normalizer.categorize import MULTIPLE_STATES, NATIONWIDE, extract_states, infer_categories, infer_risk_level
from app.normalizer.dates import months_ago, parse_recall_date, utcnow
from app.normalizer.pipeline import first_non_empty, synthesize_recall_id

logger = logging.getLogger(__name__)

LONG_PRODUCT_CHARS = 250

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_DOC_LINK_RE = re.compile(r"\b\S+\.(?:pdf|docx?|xlsx?)\b", re.IGNORECASE)
_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)

# FSIS has renamed its fields over the years; each tuple is tried in order.
PRODUCT_FIELDS = ("Product", "product_name", "field_title", "field_product_items", "field_summary")
REASON_FIELDS = ("Reason", "reason", "field_recall_reason", "field_summary")
DATE_FIELDS = ("ReleaseDate", "Date", "field_recall_date", "field_last_modified_date", "recall_date")
COMPANY_FIELDS = ("Firm", "establishment", "field_establishment", "company")
NUMBER_FIELDS = ("RecallNumber", "recall_number", "field_recall_number")
LINK_FIELDS = ("field_recall_url", "RecallUrl", "RecallURL", "recall_url", "recallUrl", "URL")
DISTRIBUTION_FIELDS = ("Distribution", "distribution", "field_distro_list", "field_states")


def _pick(record: Mapping, fields, default=None):
    value = first_non_empty(*(record.get(f) for f in fields))
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if v is not None)
    return str(value).strip()


def strip_html(text: str) -> str:
    return _HTML_TAG_RE.sub("", text or "").strip()


def concise_product(text: str) -> str:
    """Very long FSIS product blurbs are reduced to their first sentence."""
    if len(text) <= LONG_PRODUCT_CHARS:
        return text
    plain = strip_html(text)
    return re.split(r"[.\n]", plain, maxsplit=1)[0].strip() or plain[:LONG_PRODUCT_CHARS]


def resolve_distribution(raw_distribution: str | None):
    states = extract_states(raw_distribution)
    if states not in ([NATIONWIDE], [MULTIPLE_STATES]):
        return ", ".join(states), states

    if states == [MULTIPLE_STATES] and raw_distribution:
        text = _URL_RE.sub("", _DOC_LINK_RE.sub("", strip_html(raw_distribution)))
        text = re.sub(r"\s+", " ", text).strip(" ,;")
        return text or MULTIPLE_STATES, states
    return states[0], states


def feed_recall_number(record: Mapping) -> str | None:
    return _pick(record, NUMBER_FIELDS)


def is_active_notice(record: Mapping) -> bool:
    status = str(record.get("Status") or "").strip().lower()
    notice = str(first_non_empty(record.get("Status"), record.get("field_active_notice")) or "").strip().lower()
    return notice != "false" and status not in ("completed", "closed")


def transform_fsis_record(record) -> dict:
    if not isinstance(record, Mapping):
        record = {}

    product = concise_product(_pick(record, PRODUCT_FIELDS, "Unknown FSIS Product"))
    reason = strip_html(_pick(record, REASON_FIELDS, "")) or "Not specified"
    company = _pick(record, COMPANY_FIELDS, "Unknown Company")
    recall_number = _pick(record, NUMBER_FIELDS) or synthesize_recall_id(product, company, reason, prefix="FSIS")
    distribution, states = resolve_distribution(_pick(record, DISTRIBUTION_FIELDS))

    recall_date = None
    for field in DATE_FIELDS:
        recall_date = parse_recall_date(record.get(field))
        if recall_date is not None:
            break

    categories = infer_categories(product)
    return {
        "recallId": recall_number,
        "title": product,
        "description": reason,
        "product": product,
        "brand": company,
        "reason": reason,
        "recallDate": recall_date or utcnow(),
        "articleLink": _pick(record, LINK_FIELDS),
        "agency": "FSIS",
        "riskLevel": infer_risk_level(reason).value,
        "category": categories[0].value,
        "categories": [c.value for c in categories],
        "status": _pick(record, ("Status", "status", "field_recall_type"), "Ongoing"),
        "distribution": distribution,
        "statesAffected": states,
        "isActive": is_active_notice(record),
        "rawData": dict(record),
    }


def transform_fsis_data(results) -> list[dict]:
    if not isinstance(results, list):
        return []
    return [transform_fsis_record(r) for r in results]


def _matches(record: Mapping, term: str) -> bool:
    haystacks = (
        _pick(record, ("Product", "product_name", "field_title"), ""),
        _pick(record, ("Firm", "establishment", "field_establishment"), ""),
        _pick(record, ("Reason", "reason", "field_recall_reason", "field_summary"), ""),
        _pick(record, NUMBER_FIELDS, ""),
    )
    return any(term in h.lower() for h in haystacks)


def filter_fsis_records(records: list, search: str = "", months_back: int = 0, now=None) -> list:
    """Client-side date window and text search; FSIS can't do either for us."""
    records = [r for r in records if isinstance(r, Mapping)]

    if months_back:
        cutoff = months_ago(months_back, now)
        kept = []
        for r in records:
            # Undated records stay in; they count as "now"
            recall_date = parse_recall_date(first_non_empty(r.get("ReleaseDate"), r.get("Date"), r.get("field_recall_date")))
            if recall_date is None or recall_date >= cutoff:
                kept.append(r)
        records = kept

    term = str(search or "").strip().lower()
    if term:
        records = [r for r in records if _matches(r, term)]

    return records


async def fetch_fsis_recalls(limit: int = 50, search: str = "", months_back: int = 5, client: FsisClient | None = None):
    client = client or FsisClient()
    try:
        records = await client.get()
    except ProviderError as exc:
        logger.error(f"FSIS fetch failed: {exc}")
        return []

    records = filter_fsis_records(records, search, months_back)
    return transform_fsis_data(records[: max(int(limit), 0)])
