"""
Recall normalization.

`normalize_recall` turns any record shape we come across (FDA/FSIS transformer
output, a document read back from Mongo, a hand-built dict) into a fully
populated NormalizedRecall. Every field resolves through a fallback chain that
ends in a safe default, so the function is total over its input.
"""
import hashlib
import re
from collections.abc import Mapping
from urllib.parse import quote, urlparse

from pydantic import BaseModel

from app.models.recall import (
    Agency,
    Category,
    NormalizedRecall,
    RecallStatus,
    Retailer,
)
from app.normalizer.categorize import extract_states, infer_category, infer_risk_level, infer_tags
from app.normalizer.dates import parse_recall_date, utcnow
from app.normalizer.normalize_titles import (
    UNKNOWN_BRAND,
    UNKNOWN_PRODUCT,
    clean_brand_name,
    clean_product_title,
    is_junk_product,
    is_non_food_item,
)

DEFAULT_TITLE = "Product Recall"
DEFAULT_DESCRIPTION = "No description available"
DEFAULT_REASON = "Not specified"
DEFAULT_DISTRIBUTION = "Nationwide"

# Reason strings that carry no information; treated like an empty reason.
PLACEHOLDER_REASONS = {"", "not specified", "unknown", "n/a", "na", "none"}

DATE_FIELDS = (
    "recallDate",
    "releaseDate",
    "date",
    "recall_initiation_date",
    "report_date",
    "ReleaseDate",
    "field_recall_date",
)

RETAILER_SLUGS = {r.value for r in Retailer}
AGENCY_VALUES = {a.value for a in Agency}


# ----------------------------
# Small helpers
# ----------------------------

def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def first_non_empty(*values):
    """Return the first value that is not None, blank or an empty collection."""
    for value in values:
        if not _is_empty(value):
            return value
    return None


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if v is not None and str(v).strip())
    return str(value).strip()


def _raw_data(record: Mapping) -> Mapping:
    raw = record.get("rawData")
    return raw if isinstance(raw, Mapping) else {}


def _as_mapping(record) -> Mapping:
    if isinstance(record, BaseModel):
        return record.model_dump()
    if isinstance(record, Mapping):
        return record
    return {}


def slugify(text) -> str:
    text = _text(text).lower().replace("'", "").replace("’", "")
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


# ----------------------------
# Field resolvers
# ----------------------------

def resolve_recall_date(record: Mapping):
    raw = _raw_data(record)
    for source in (record, raw):
        for field in DATE_FIELDS:
            parsed = parse_recall_date(source.get(field))
            if parsed is not None:
                return parsed
    return utcnow()


def _api_product_and_brand(source: Mapping):
    """The explicit "product_description + brand_names" shape some feeds use."""
    description = source.get("product_description")
    if _is_empty(description):
        return None, None

    brand_names = source.get("brand_names")
    if isinstance(brand_names, (list, tuple)) and brand_names:
        return _text(description), _text(brand_names[0])
    if not _is_empty(source.get("brand_name")):
        return _text(description), _text(source.get("brand_name"))
    return None, None


def resolve_product_and_brand(record: Mapping):
    raw = _raw_data(record)

    raw_product = _text(first_non_empty(
        record.get("product"), record.get("product_description"), record.get("title")
    ))
    raw_brand = _text(first_non_empty(
        record.get("brand"), record.get("recalling_firm"), record.get("Firm")
    ))

    for source in (record, raw):
        api_product, api_brand = _api_product_and_brand(source)
        if api_product:
            raw_product = api_product
            if api_brand:
                raw_brand = api_brand
            break

    product = clean_product_title(raw_product)
    brand = clean_brand_name(raw_brand)

    if is_junk_product(product):
        candidates = (
            record.get("product_description"),
            raw.get("product_description"),
            record.get("Product"),
            record.get("field_title"),
            record.get("title"),
        )
        for candidate in candidates:
            text = _text(candidate)
            # A previous pass may have written the brand or the default title here
            if not text or text in (DEFAULT_TITLE, brand):
                continue
            cleaned = clean_product_title(text)
            if not is_junk_product(cleaned):
                product = cleaned
                break
        else:
            product = UNKNOWN_PRODUCT

    return product, brand


def compose_title(product: str, brand: str, record: Mapping) -> str:
    parts = []
    if product and product != UNKNOWN_PRODUCT:
        parts.append(product)
    if brand and brand != UNKNOWN_BRAND and brand != product:
        parts.append(brand)
    if parts:
        return " - ".join(parts)
    return _text(record.get("title")) or DEFAULT_TITLE


def resolve_retailer(record: Mapping) -> str:
    slug = slugify(first_non_empty(
        record.get("retailer"), record.get("retailerName"), record.get("recalling_firm")
    ))
    return slug if slug in RETAILER_SLUGS else Retailer.VARIOUS.value


def resolve_status(record: Mapping) -> str:
    raw = _raw_data(record)
    status = _text(first_non_empty(
        record.get("status"), record.get("Status"), raw.get("status"), raw.get("recall_status")
    )).lower()
    if status in ("terminated", "completed", "closed"):
        return RecallStatus.COMPLETED.value
    if status == "pending":
        return RecallStatus.PENDING.value
    return RecallStatus.ONGOING.value


def resolve_agency(record: Mapping) -> str:
    agency = _text(record.get("agency")).upper()
    return agency if agency in AGENCY_VALUES else Agency.FDA.value


def resolve_states(record: Mapping, distribution: str):
    states = record.get("statesAffected")
    if isinstance(states, (list, tuple)):
        cleaned = [str(s).strip() for s in states if s is not None and str(s).strip()]
        if cleaned:
            return list(dict.fromkeys(cleaned))
    return extract_states(first_non_empty(record.get("states"), distribution))


def resolve_reason(record: Mapping) -> str:
    return _text(first_non_empty(record.get("reason"), record.get("reason_for_recall"))) or DEFAULT_REASON


def synthesize_recall_id(product: str, brand: str, reason: str, prefix: str = "RECALL") -> str:
    """Stable id for records that arrive without one, so re-syncs hit the same entry."""
    digest = hashlib.md5(f"{product}|{brand}|{reason}".lower().encode("utf-8")).hexdigest()
    return f"{prefix}-{digest[:16]}"


def resolve_recall_id(record: Mapping, product: str, brand: str, reason: str) -> str:
    raw = _raw_data(record)
    recall_id = _text(first_non_empty(
        record.get("recallId"),
        record.get("recall_number"),
        raw.get("recall_number"),
        raw.get("recallNumber"),
    ))
    return recall_id or synthesize_recall_id(product, brand, reason)


def _is_valid_link(link) -> bool:
    if not isinstance(link, str) or link.strip() in ("", "#"):
        return False
    parsed = urlparse(link.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_article_link(record: Mapping, agency: str, product: str, brand: str, reason: str) -> str:
    link = first_non_empty(record.get("articleLink"), record.get("url"))
    if _is_valid_link(link):
        return link.strip()

    if agency == Agency.FSIS.value:
        brand_slug = slugify(brand if brand != UNKNOWN_BRAND else "") or "unknown"
        product_slug = slugify(product if product != UNKNOWN_PRODUCT else "") or "product"
        reason_slug = slugify(reason if reason != DEFAULT_REASON else "") or "safety-concerns"
        return f"https://www.fsis.usda.gov/recalls-alerts/{brand_slug}-recalls-{product_slug}-due-{reason_slug}"

    raw = _raw_data(record)
    recall_number = _text(first_non_empty(
        record.get("recall_number"),
        record.get("recallId"),
        raw.get("recall_number"),
        raw.get("recallNumber"),
    ))
    query = recall_number or f"{brand} {product}".strip()
    return f"https://www.fda.gov/search?search_api_fulltext={quote(query, safe='')}&site=Food"


def _informative_reason(reason: str) -> str:
    return "" if reason.strip().lower() in PLACEHOLDER_REASONS else reason


# ----------------------------
# Entry point
# ----------------------------

def normalize_recall(record) -> NormalizedRecall | None:
    """
    Normalize a recall of any shape. None in, None out; never raises on
    malformed fields.
    """
    if record is None:
        return None
    record = _as_mapping(record)

    product, brand = resolve_product_and_brand(record)
    title = compose_title(product, brand, record)

    description = _text(first_non_empty(
        record.get("description"), record.get("reason_for_recall")
    )) or DEFAULT_DESCRIPTION
    reason = resolve_reason(record)
    informative_reason = _informative_reason(reason)

    category_text = f"{product} {title}"
    if is_non_food_item(product, title):
        category = Category.OTHER
    else:
        category = infer_category(category_text, record.get("category"))

    tag_text = f"{product} {title} {description}"
    tags = sorted(infer_tags(tag_text, informative_reason, category.value))

    agency = resolve_agency(record)
    status = resolve_status(record)
    distribution = _text(first_non_empty(
        record.get("distribution"), record.get("distribution_pattern")
    )) or DEFAULT_DISTRIBUTION

    is_active = record.get("isActive")
    if not isinstance(is_active, bool):
        is_active = status != RecallStatus.COMPLETED.value

    return NormalizedRecall(
        recallId=resolve_recall_id(record, product, brand, reason),
        title=title,
        product=product,
        brand=brand,
        description=description,
        reason=reason,
        category=category,
        tags=tags,
        riskLevel=infer_risk_level(informative_reason),
        retailer=resolve_retailer(record),
        agency=agency,
        status=status,
        distribution=distribution,
        statesAffected=resolve_states(record, distribution),
        recallDate=resolve_recall_date(record),
        articleLink=build_article_link(record, agency, product, brand, reason),
        isActive=is_active,
    )


def normalize_many(records) -> list[NormalizedRecall]:
    normalized = []
    for record in records or []:
        recall = normalize_recall(record)
        if recall is not None:
            normalized.append(recall)
    return normalized
