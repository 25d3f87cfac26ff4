"""
Text cleaners for the free-form product and company fields of recall feeds.

Provider records stuff packaging copy, addresses, lot codes and barcodes into
the same field as the product or firm name. Everything here is pure: no I/O,
no exceptions for bad input, and a safe placeholder for empty results.
"""
import html
import re

UNKNOWN_BRAND = "Unknown Brand"
UNKNOWN_PRODUCT = "Unknown Product"

# ----------------------------
# Brand / firm names
# ----------------------------

_STREET_RE = re.compile(
    r",?\s*\b\d+\s+[A-Za-z0-9\s]+?\s"
    r"(?:Avenue|Ave|Street|St|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Way|Court|Ct|"
    r"Place|Pl|Highway|Hwy|Parkway|Pkwy)\b\.?"
    r"(?:\s*(?:Suite|Ste|Unit)\.?\s*\w+)?[,\s]*",
    re.IGNORECASE,
)
_CITY_STATE_ZIP_RE = re.compile(r",?\s*\b[A-Z][a-z]+(?:\s[A-Z][a-z]+)?,\s*[A-Z]{2}\s*\d{5}(?:-\d{4})?\b")
_STATE_ZIP_RE = re.compile(r",?\s*\b[A-Z]{2}\s+\d{5}(?:-\d{4})?\b")
_DBA_RE = re.compile(r"\s+(?:d/b/a|dba|doing\s+business\s+as)\b.*$", re.IGNORECASE)

_CORP_WORDS = r"(?:Inc|LLC|L\.L\.C|Corp|Corporation|Co|Company|Ltd|Limited)"
_FIRST_PLAIN_COMMA_RE = re.compile(rf",(?!\s*{_CORP_WORDS}\b)", re.IGNORECASE)
_TRAILING_SUFFIX_RE = re.compile(r"[,\s]*\b(Inc|LLC|Corp|Ltd)\.?\s*$", re.IGNORECASE)

_LOWERCASE_CONNECTORS = {"and", "of", "the", "for", "in", "at", "by", "de"}


def _title_word(word: str, first: bool, keep_acronyms: bool = True) -> str:
    letters = [c for c in word if c.isalpha()]
    if not letters:
        return word
    # Mixed case is deliberate ("McCormick", "Co.") and short all-caps
    # tokens in firm names are usually acronyms ("USA", "JBS").
    if not (word.isupper() or word.islower()):
        return word
    if keep_acronyms and word.isupper() and len(letters) <= 3:
        return word
    lower = word.lower()
    if not first and lower in _LOWERCASE_CONNECTORS:
        return lower
    return lower[0].upper() + lower[1:]


def _title_case(text: str, keep_acronyms: bool = True) -> str:
    words = text.split()
    return " ".join(_title_word(w, i == 0, keep_acronyms) for i, w in enumerate(words))


def clean_brand_name(brand_text) -> str:
    """
    Reduce a recalling-firm string to a display brand.

    "Boar's Head Provisions Co., Inc. 123 Main St, Sarasota, FL 34240"
    becomes "Boar's Head Provisions Co., INC.".
    """
    if not brand_text:
        return UNKNOWN_BRAND

    cleaned = html.unescape(str(brand_text)).strip()
    cleaned = _STREET_RE.sub(" ", cleaned)
    cleaned = _CITY_STATE_ZIP_RE.sub("", cleaned)
    cleaned = _STATE_ZIP_RE.sub("", cleaned)
    cleaned = _DBA_RE.sub("", cleaned)

    # Everything after the first comma is address or trade-name noise,
    # except a corporate suffix such as ", Inc."
    cleaned = _FIRST_PLAIN_COMMA_RE.split(cleaned, maxsplit=1)[0]
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" ,;:-")

    suffix = ""
    match = _TRAILING_SUFFIX_RE.search(cleaned)
    if match and match.start() > 0:
        suffix = match.group(1).upper()
        cleaned = cleaned[:match.start()].strip(" ,")

    cleaned = _title_case(cleaned)
    if suffix:
        cleaned = f"{cleaned}, {suffix}."

    return cleaned or UNKNOWN_BRAND


# ----------------------------
# Product titles
# ----------------------------

# Packaging copy that follows the product name. The title is cut at the
# earliest of these.
STOP_PHRASES = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(?:bag\s+)?contains\s*:",
        r"\bimported\s+by\b",
        r"\bdistributed\s+by\b",
        r"\bdist\.?\s+by\b",
        r"\bmanufactured\s+(?:for|by)\b",
        r"\bproduced\s+(?:for|by|on)\b",
        r"\bpacked\s+(?:for|by|on)\b",
        r"\bnet\s+w(?:t|eight)\b",
        r"\bingredients\s*:",
        r"\bbulk\.",
        r"\bkeep\s+(?:frozen|refrigerated)\b",
        r"\bupc\b",
        r"\bsku\b",
        r"\b\d+\s*(?:count|ct)\s*/\s*(?:case|cs)\b",
        r"\bstates?\s+affected\s*:",
        r"\bzip\s*codes?\s*:",
        r"\bdistribution\s*:",
        r";\s*\(",
        r"\bproduct\s+(?:name|description)\s*:",
        r"\bpack/julian\s+date\b",
        r"\bbest\s+(?:by|before)\b",
        r"\buse\s+by\b",
        r"\blot\s*(?:#|no\.?|number|code)",
    )
]

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_PACKAGING_PAREN_RE = re.compile(
    r"\([^)]*\b(?:net\s*wt|pkgs?|per\s*case|count|ct|pack|oz|lbs?)\b[^)]*\)", re.IGNORECASE
)
_SENTENCE_SPLIT_RE = re.compile(r"\.\s+|\n")
_CONTAINER_TAIL_RE = re.compile(r"\s+(?:bag|package|box|pack|case|tray)s?\s*$", re.IGNORECASE)
_WEIGHT_RE = re.compile(
    r"\b\d+(?:\.\d+)?\s*-?\s*(?:fl\.?\s*oz|oz|ounces?|lbs?|pounds?|kg|g|grams?|ml|l|liters?)\b\.?",
    re.IGNORECASE,
)
_DIMENSION_RE = re.compile(r"\b\d+(?:\.\d+)?\s*-?\s*(?:inch(?:es)?|in|cm|mm|ft|feet)\b\.?", re.IGNORECASE)
_CASE_COUNT_RE = re.compile(r"\b\d+\s*(?:count|ct|pk|pack)\b(?:\s*/\s*(?:case|cs|box))?", re.IGNORECASE)
_DATE_RES = [
    re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"),
    re.compile(r"\b\d{4}[/-]\d{1,2}[/-]\d{1,2}\b"),
]
_BARCODE_RE = re.compile(r"\b(?:upc|barcode|gtin)[\s:#]*[\d\s-]{6,}", re.IGNORECASE)
_LONG_DIGITS_RE = re.compile(r"\b\d{8,14}\b")
_LEADING_NUMBERING_RE = re.compile(r"^\d+\.\s+")
_LEADING_LABEL_RE = re.compile(r"^(?:brand|product)\s*:?\s+", re.IGNORECASE)
_DUPLICATE_PHRASE_RE = re.compile(r"\b(\w+(?:\s+\w+){0,4})(?:[\s,/-]+\1\b)+", re.IGNORECASE)

_JUNK_RE = re.compile(r"^[\d\W_]*$")


def remove_duplicate_phrases(text: str) -> str:
    """Collapse immediately repeated words or phrases ("Cage Free Cage Free")."""
    if not text:
        return ""
    # One pass halves a run of repeats, so keep going until nothing changes
    while True:
        collapsed = _DUPLICATE_PHRASE_RE.sub(r"\1", text)
        if collapsed == text:
            return collapsed
        text = collapsed


def strip_measurements(text: str) -> str:
    """Drop weights, dimensions, case counts, dates and barcodes."""
    if not text:
        return ""
    cleaned = _BARCODE_RE.sub("", text)
    cleaned = _WEIGHT_RE.sub("", cleaned)
    cleaned = _DIMENSION_RE.sub("", cleaned)
    cleaned = _CASE_COUNT_RE.sub("", cleaned)
    for date_re in _DATE_RES:
        cleaned = date_re.sub("", cleaned)
    cleaned = _LONG_DIGITS_RE.sub("", cleaned)
    return cleaned


def _cut_at_stop_phrase(text: str) -> str:
    cut = None
    for pattern in STOP_PHRASES:
        match = pattern.search(text)
        if match and match.start() > 0 and (cut is None or match.start() < cut):
            cut = match.start()
    return text[:cut] if cut is not None else text


def _first_sentence(text: str) -> str:
    segments = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    if not segments:
        return ""
    first = segments[0]
    # "Dr. Praeger's ..." - a one-word segment is an abbreviation, not a sentence
    if len(first.split()) < 2 and len(segments) > 1:
        first = f"{first}. {segments[1]}"
    return first


def _collapse_punctuation(text: str) -> str:
    text = re.sub(r"\(\s*\)", "", text)
    text = re.sub(r"([,;:.\-/])(?:\s*\1)+", r"\1", text)
    text = re.sub(r"\s+([,;:.])", r"\1", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip(" ,;:.-/")


def clean_product_title(title) -> str:
    """
    Reduce a raw product description to a short product name.

    "Chicken Caesar Salad Wrap. NET WT 12 OZ. INGREDIENTS: chicken, ..."
    becomes "Chicken Caesar Salad Wrap".
    """
    if not title:
        return UNKNOWN_PRODUCT

    cleaned = html.unescape(_HTML_TAG_RE.sub(" ", str(title)))
    cleaned = re.sub(r"[ \t]+", " ", cleaned).strip()

    cleaned = _cut_at_stop_phrase(cleaned)
    cleaned = _PACKAGING_PAREN_RE.sub("", cleaned)
    cleaned = _first_sentence(cleaned)

    cleaned = _LEADING_NUMBERING_RE.sub("", cleaned)
    cleaned = _LEADING_LABEL_RE.sub("", cleaned)
    cleaned = re.sub(r"\bcnfree\b", "Cage Free", cleaned, flags=re.IGNORECASE)

    cleaned = strip_measurements(cleaned)
    cleaned = _CONTAINER_TAIL_RE.sub("", cleaned)
    cleaned = remove_duplicate_phrases(cleaned)
    cleaned = _collapse_punctuation(cleaned)

    if cleaned and cleaned.isupper():
        cleaned = _title_case(cleaned, keep_acronyms=False)

    if is_junk_product(cleaned):
        return UNKNOWN_PRODUCT
    return cleaned


def is_junk_product(text) -> bool:
    """True for empty, placeholder, too-short or digits/punctuation-only text."""
    if not text:
        return True
    s = str(text).strip()
    if s == UNKNOWN_PRODUCT or len(s) < 3:
        return True
    return bool(_JUNK_RE.match(s))


# ----------------------------
# Non-food detection
# ----------------------------

_FOOD_WORDS = (
    "egg", "eggs", "milk", "cheese", "yogurt", "butter", "cream",
    "chicken", "turkey", "beef", "pork", "ham", "sausage", "fish", "shrimp", "crab", "salmon", "tuna",
    "vegetable", "vegetables", "salad", "lettuce", "spinach", "fruit", "apple", "berries",
    "bread", "pasta", "noodle", "noodles", "rice", "flour", "oats", "cereal",
    "pie", "pot pie", "soup", "sauce", "snack", "cookie", "cookies", "candy", "chocolate",
    "peanut", "almond", "nuts",
)
_COOKWARE_WORDS = (
    "aluminum", "aluminium", "steel", "stainless steel", "cast iron", "nonstick", "non-stick",
    "pan", "pans", "pot", "pots", "kadai", "wok", "skillet", "griddle",
    "spoon", "fork", "knife", "knives", "spatula", "ladle", "whisk", "tongs",
    "thermos", "flask", "tumbler", "platter", "serving tray",
)
# Compounds that name a utensil even though they contain a food word
_COOKWARE_COMPOUNDS = (
    "egg pan", "milk pan", "frying pan", "sauce pan", "saucepan", "stock pot",
    "cutting board", "chopping board", "cookware", "utensil", "utensils", "kitchenware",
)


def _count_hits(text: str, words) -> int:
    return sum(1 for w in words if re.search(rf"\b{re.escape(w)}\b", text))


def is_non_food_item(product_text, title_text=None) -> bool:
    """
    True when cookware/utensil vocabulary outweighs food vocabulary, so that
    "Egg Pan, Aluminum" is not filed under eggs.
    """
    combined = f"{product_text or ''} {title_text or ''}".lower()
    if not combined.strip():
        return False

    food = _count_hits(combined, _FOOD_WORDS)
    cookware = _count_hits(combined, _COOKWARE_WORDS) + 2 * _count_hits(combined, _COOKWARE_COMPOUNDS)
    return cookware > food
