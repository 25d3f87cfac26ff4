"""
Keyword inference for recall category, risk level, tags and affected states.

Category and risk are decided by ordered (predicate, result) rule lists: the
first rule whose predicate matches wins, so precedence is the list order.
"""
import re
from typing import Callable, Iterable, List, Optional, Set, Tuple

from app.models.recall import Category, RiskLevel


def first_matching(rules: Iterable[Tuple[Callable[[str], bool], object]], text: str) -> Optional[object]:
    for predicate, result in rules:
        if predicate(text):
            return result
    return None


def _keywords(*words: str) -> Callable[[str], bool]:
    """Predicate matching any of `words` as whole words, allowing a plural s/es."""
    alternation = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    pattern = re.compile(rf"\b(?:{alternation})(?:e?s)?\b", re.IGNORECASE)
    return lambda text: bool(pattern.search(text))


# ----------------------------
# Category
# ----------------------------

# More specific categories come first: "egg noodles" is grains, "chicken
# eggs" is eggs, "peanut butter" is nuts, "beef jerky" is snacks.
CATEGORY_RULES: List[Tuple[Callable[[str], bool], Category]] = [
    (_keywords("noodle", "pasta", "ramen", "spaghetti", "macaroni", "lasagna", "burrito",
               "sandwich", "wrap", "breakfast sandwich"), Category.GRAINS),
    (_keywords("baby food", "infant formula", "infant", "baby", "toddler"), Category.BABY_FOOD),
    (_keywords("imitation crab", "crabmeat", "krab", "crab", "shrimp", "prawn", "lobster",
               "oyster", "mussel", "scallop", "clam", "fish", "salmon", "tuna", "cod",
               "pollock", "seafood", "shellfish", "squid", "catfish", "tilapia", "sardine",
               "anchovy", "anchovies"), Category.SEAFOOD),
    (_keywords("popcorn", "snack", "chip", "cookie", "cracker", "candy", "candies",
               "chocolate", "pretzel", "granola", "jerky", "gummy", "gummies"), Category.SNACKS),
    (_keywords("egg", "egg product", "shell egg", "liquid egg"), Category.EGGS),
    (_keywords("nut", "peanut", "almond", "cashew", "pistachio", "walnut", "hazelnut",
               "macadamia", "pecan", "peanut butter"), Category.NUTS),
    (_keywords("milk", "cheese", "yogurt", "dairy", "ice cream", "butter", "cream",
               "curd", "kefir"), Category.DAIRY),
    (_keywords("chicken", "turkey", "poultry", "duck", "quail", "hen", "goose"), Category.POULTRY),
    (_keywords("beef", "steak", "burger", "hamburger", "veal", "brisket"), Category.BEEF),
    (_keywords("pork", "bacon", "sausage", "ham", "prosciutto", "salami", "pepperoni",
               "chorizo", "hot dog", "bratwurst"), Category.PORK),
    (_keywords("vegetable", "lettuce", "spinach", "salad", "onion", "scallion", "broccoli",
               "carrot", "kale", "cabbage", "celery", "tomato", "tomatoes", "potato", "potatoes",
               "cucumber", "zucchini", "pepper", "sprout", "cilantro", "parsley", "garlic",
               "mushroom", "enoki", "greens"), Category.VEGETABLES),
    (_keywords("fruit", "apple", "berry", "berries", "strawberry", "strawberries", "blueberry",
               "blueberries", "raspberry", "raspberries", "orange", "melon", "cantaloupe",
               "honeydew", "watermelon", "banana", "grape", "mango", "mangoes", "peach",
               "peaches", "pear", "pineapple", "cherry", "cherries", "lemon", "lime",
               "avocado"), Category.FRUITS),
    (_keywords("bread", "flour", "grain", "cereal", "rice", "tortilla", "bagel", "bun",
               "muffin", "croissant", "oat", "oatmeal", "bakery"), Category.GRAINS),
]

_CATEGORY_VALUES = {c.value for c in Category}


def infer_category(text, source_category=None) -> Category:
    """
    First matching rule wins. With no match, a valid source-provided category
    is kept; otherwise the result is Category.OTHER.
    """
    haystack = str(text or "").lower()
    inferred = first_matching(CATEGORY_RULES, haystack) if haystack.strip() else None
    if inferred is not None:
        return inferred

    existing = str(source_category or "").strip().lower()
    if existing in _CATEGORY_VALUES:
        return Category(existing)
    return Category.OTHER


def infer_categories(text, max_count: int = 3) -> List[Category]:
    """All matching categories in rule order, up to `max_count`."""
    haystack = str(text or "").lower()
    found: List[Category] = []
    for predicate, category in CATEGORY_RULES:
        if category not in found and predicate(haystack):
            found.append(category)
        if len(found) >= max_count:
            break
    return found or [Category.OTHER]


# ----------------------------
# Risk level
# ----------------------------

RISK_RULES: List[Tuple[Callable[[str], bool], RiskLevel]] = [
    (_keywords("salmonella", "listeria", "e. coli", "e.coli", "e coli", "ecoli", "stec",
               "o157", "botulism", "botulinum", "clostridium", "norovirus", "hepatitis",
               "cyclospora", "deadly", "fatal", "death"), RiskLevel.HIGH),
    (_keywords("allergen", "undeclared", "mislabel", "mislabeled", "misbranded",
               "foreign material", "foreign matter", "plastic", "glass", "metal", "rubber",
               "bone fragment"), RiskLevel.MEDIUM),
]


def infer_risk_level(reason) -> RiskLevel:
    text = str(reason or "").strip().lower()
    if not text:
        return RiskLevel.MEDIUM
    return first_matching(RISK_RULES, text) or RiskLevel.LOW


# ----------------------------
# Tags
# ----------------------------

FOOD_TAG_KEYWORDS = (
    "egg", "milk", "cheese", "yogurt", "butter",
    "chicken", "turkey", "beef", "pork", "fish", "shrimp", "shellfish",
    "spinach", "lettuce", "broccoli", "tomato", "onion", "apple", "banana", "mango", "grape",
    "peanut", "almond", "cashew", "walnut", "pistachio", "hazelnut",
    "bread", "flour", "pasta", "noodle", "rice", "cereal",
    "cookie", "candy", "chocolate", "snack", "popcorn",
    "baby", "infant",
)

PATHOGEN_TAG_KEYWORDS = (
    "salmonella", "listeria", "e. coli", "e.coli", "e coli", "norovirus",
    "metal", "glass", "allergen", "undeclared",
)

_TAG_MATCHERS = [(kw, _keywords(kw)) for kw in FOOD_TAG_KEYWORDS + PATHOGEN_TAG_KEYWORDS]


def normalize_tag(tag) -> str:
    """Lower-case, punctuation and whitespace runs to single hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", str(tag or "").lower()).strip("-")


def infer_tags(text, reason=None, category=None) -> Set[str]:
    combined = f"{text or ''} {reason or ''}".lower()
    tags: Set[str] = set()
    for keyword, matches in _TAG_MATCHERS:
        if matches(combined):
            tags.add(normalize_tag(keyword))
    if category and str(category) != Category.OTHER.value:
        tags.add(normalize_tag(category))
    tags.discard("")
    return tags


# ----------------------------
# Distribution -> states
# ----------------------------

NATIONWIDE = "Nationwide"
MULTIPLE_STATES = "Multiple States"

STATE_NAMES = {
    "Alabama": "AL", "Alaska": "AK", "Arizona": "AZ", "Arkansas": "AR", "California": "CA",
    "Colorado": "CO", "Connecticut": "CT", "Delaware": "DE", "Florida": "FL", "Georgia": "GA",
    "Hawaii": "HI", "Idaho": "ID", "Illinois": "IL", "Indiana": "IN", "Iowa": "IA",
    "Kansas": "KS", "Kentucky": "KY", "Louisiana": "LA", "Maine": "ME", "Maryland": "MD",
    "Massachusetts": "MA", "Michigan": "MI", "Minnesota": "MN", "Mississippi": "MS",
    "Missouri": "MO", "Montana": "MT", "Nebraska": "NE", "Nevada": "NV", "New Hampshire": "NH",
    "New Jersey": "NJ", "New Mexico": "NM", "New York": "NY", "North Carolina": "NC",
    "North Dakota": "ND", "Ohio": "OH", "Oklahoma": "OK", "Oregon": "OR", "Pennsylvania": "PA",
    "Rhode Island": "RI", "South Carolina": "SC", "South Dakota": "SD", "Tennessee": "TN",
    "Texas": "TX", "Utah": "UT", "Vermont": "VT", "Virginia": "VA", "Washington": "WA",
    "West Virginia": "WV", "Wisconsin": "WI", "Wyoming": "WY", "District of Columbia": "DC",
    "Puerto Rico": "PR",
}
STATE_CODES = set(STATE_NAMES.values())

_NATIONWIDE_RE = re.compile(r"\bnation\s*wide\b|\bnational(?:ly)?\b|\ball\s+(?:50\s+)?states\b", re.IGNORECASE)
_MULTI_STATE_RE = re.compile(r"\bmulti-?\s*state\b|\bmultiple\s+states\b|\bseveral\s+states\b", re.IGNORECASE)
_STATE_CODE_RE = re.compile(r"\b[A-Z]{2}\b")
_STATE_NAME_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(n) for n in sorted(STATE_NAMES, key=len, reverse=True)) + r")\b"
)


def _states_in_order(text: str) -> List[str]:
    hits: List[Tuple[int, str]] = []
    masked = list(text)
    # Full names first (longest first via the alternation order), then mask
    # them so "West Virginia" does not also yield VA.
    for m in _STATE_NAME_RE.finditer(text):
        hits.append((m.start(), STATE_NAMES[m.group(0)]))
        masked[m.start():m.end()] = " " * (m.end() - m.start())
    for m in _STATE_CODE_RE.finditer("".join(masked)):
        if m.group(0) in STATE_CODES:
            hits.append((m.start(), m.group(0)))

    states: List[str] = []
    for _, code in sorted(hits):
        if code not in states:
            states.append(code)
    return states


def extract_states(distribution) -> List[str]:
    """Affected states from a distribution statement, in order of mention."""
    if not distribution:
        return [NATIONWIDE]

    if isinstance(distribution, (list, tuple)):
        items = [str(s).strip() for s in distribution if s is not None and str(s).strip()]
        if not items:
            return [NATIONWIDE]
        codes = [s.upper() for s in items if len(s) == 2 and s.isalpha()]
        if codes:
            return list(dict.fromkeys(codes))
        distribution = ", ".join(items)

    text = str(distribution)
    if _NATIONWIDE_RE.search(text):
        return [NATIONWIDE]
    if _MULTI_STATE_RE.search(text):
        return [MULTIPLE_STATES]

    return _states_in_order(text) or [MULTIPLE_STATES]


# Keywords used by list filtering: a recall matches a category filter when
# its category equals the filter or its text mentions one of these.
CATEGORY_KEYWORDS = {
    Category.POULTRY.value: ["chicken", "turkey", "poultry", "hen", "duck", "goose", "quail", "pheasant",
                             "partridge", "grouse", "guinea fowl"],
    Category.BEEF.value: ["beef", "steak", "burger", "ground beef", "hamburger", "beef patty"],
    Category.PORK.value: ["pork", "bacon", "sausage", "ham", "pork loin", "pork chop", "pork belly"],
    Category.SEAFOOD.value: ["fish", "salmon", "tuna", "shrimp", "shellfish", "crabmeat", "krab",
                             "imitation crab", "crab", "lobster", "clam", "oyster", "mussel", "scallop", "squid"],
    Category.VEGETABLES.value: ["spinach", "lettuce", "broccoli", "vegetable", "carrot", "salad", "onion",
                                "scallion", "kale", "cabbage", "celery", "pepper", "tomato", "potato",
                                "cucumber", "zucchini", "eggplant", "asparagus", "chard", "radish", "okra",
                                "artichoke", "parsley", "leek", "shallot", "garlic"],
    Category.FRUITS.value: ["apple", "berry", "orange", "fruit", "melon", "cantaloupe", "honeydew", "watermelon",
                            "banana", "grape", "kiwi", "mango", "peach", "pear", "pineapple", "plum",
                            "pomegranate", "raspberry", "strawberry", "tangerine", "apricot", "blueberry",
                            "blackberry", "cherry", "fig", "grapefruit", "lemon", "lime", "nectarine"],
    Category.DAIRY.value: ["milk", "cheese", "yogurt", "dairy", "ice cream", "cream", "butter", "curd"],
    Category.EGGS.value: ["egg", "egg product", "omelet", "omelette", "frittata", "quiche"],
    Category.NUTS.value: ["nut", "peanut", "almond", "cashew", "pistachio", "walnut", "hazelnut", "macadamia", "pecan"],
    Category.GRAINS.value: ["bread", "flour", "grain", "noodle", "pasta", "ramen", "burrito", "sandwich", "wrap",
                            "bakery", "cereal", "rice", "cracker", "tortilla", "bagel", "bun", "muffin",
                            "croissant", "pretzel"],
    Category.SNACKS.value: ["cookie", "candy", "chocolate", "snack", "chip", "cracker", "granola", "pretzel",
                            "popcorn", "jerky"],
    Category.BABY_FOOD.value: ["baby", "infant", "baby food", "infant formula"],
    Category.OTHER.value: ["miscellaneous"],
}
