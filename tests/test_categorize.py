import pytest

from app.models.recall import Category, RiskLevel
from app.normalizer.categorize import (
    MULTIPLE_STATES,
    NATIONWIDE,
    extract_states,
    infer_categories,
    infer_category,
    infer_risk_level,
    infer_tags,
    normalize_tag,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Egg Noodles", Category.GRAINS),
        ("Cage Free Chicken Eggs", Category.EGGS),
        ("Creamy Peanut Butter", Category.NUTS),
        ("Beef Jerky Original", Category.SNACKS),
        ("Ground Beef", Category.BEEF),
        ("Frozen Shrimp", Category.SEAFOOD),
        ("Romaine Lettuce", Category.VEGETABLES),
        ("Hamburger Patties", Category.BEEF),
        ("Smoked Ham", Category.PORK),
        ("Whole Milk", Category.DAIRY),
        ("Fresh Strawberries", Category.FRUITS),
        ("Infant Formula Powder", Category.BABY_FOOD),
    ],
)
def test_infer_category_precedence(text, expected):
    assert infer_category(text) == expected


def test_infer_category_keeps_valid_source_category():
    assert infer_category("Mystery Item", "dairy") == Category.DAIRY
    assert infer_category("Mystery Item", " Dairy ") == Category.DAIRY


def test_infer_category_unknown_falls_to_other():
    assert infer_category("Mystery Item", "bogus") == Category.OTHER
    assert infer_category("", None) == Category.OTHER
    assert infer_category(None) == Category.OTHER


def test_rule_beats_source_category():
    assert infer_category("Ground Beef", "dairy") == Category.BEEF


def test_infer_categories_in_rule_order():
    assert infer_categories("Chicken Salad Sandwich") == [
        Category.GRAINS, Category.POULTRY, Category.VEGETABLES,
    ]
    assert infer_categories("Chicken Salad Sandwich", max_count=2) == [Category.GRAINS, Category.POULTRY]
    assert infer_categories("Mystery Item") == [Category.OTHER]


@pytest.mark.parametrize(
    "reason, expected",
    [
        ("Potential Listeria monocytogenes contamination", RiskLevel.HIGH),
        ("Possible E. coli O157:H7 adulteration", RiskLevel.HIGH),
        ("Undeclared milk", RiskLevel.MEDIUM),
        ("May contain foreign material (plastic)", RiskLevel.MEDIUM),
        ("Product is mislabeled", RiskLevel.MEDIUM),
        ("Quality issue with packaging seal", RiskLevel.LOW),
        ("", RiskLevel.MEDIUM),
        (None, RiskLevel.MEDIUM),
    ],
)
def test_infer_risk_level(reason, expected):
    assert infer_risk_level(reason) == expected


def test_normalize_tag():
    assert normalize_tag("e. coli") == "e-coli"
    assert normalize_tag("  Baby Food ") == "baby-food"
    assert normalize_tag(None) == ""


def test_infer_tags_food_reason_and_category():
    tags = infer_tags("Chocolate Chip Cookies", "Undeclared peanuts", "snacks")
    assert tags == {"chocolate", "cookie", "peanut", "undeclared", "snacks"}


def test_infer_tags_pathogen_is_hyphenated():
    assert infer_tags("Ground beef", "E. coli O157:H7", "beef") == {"beef", "e-coli"}


def test_infer_tags_skips_other_category():
    assert infer_tags("Mystery Item", None, "other") == set()


@pytest.mark.parametrize("value", [None, "", [], ["", None]])
def test_extract_states_empty_is_nationwide(value):
    assert extract_states(value) == [NATIONWIDE]


def test_extract_states_nationwide_phrases():
    assert extract_states("Distributed nationwide through retail stores") == [NATIONWIDE]
    assert extract_states("Sold in all 50 states") == [NATIONWIDE]


def test_extract_states_multi_state_phrase():
    assert extract_states("Shipped to multiple states") == [MULTIPLE_STATES]


def test_extract_states_codes_in_order():
    assert extract_states("Product shipped to CA, NV and AZ") == ["CA", "NV", "AZ"]


def test_extract_states_full_names_do_not_overlap():
    assert extract_states("West Virginia and Ohio") == ["WV", "OH"]


def test_extract_states_mixed_names_and_codes():
    assert extract_states("Texas, OK and New Mexico") == ["TX", "OK", "NM"]


def test_extract_states_list_of_codes():
    assert extract_states(["ca", "tx", "ca"]) == ["CA", "TX"]


def test_extract_states_unrecognized_is_multiple():
    assert extract_states("Europe and Canada") == [MULTIPLE_STATES]
