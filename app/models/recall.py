from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    POULTRY = "poultry"
    BEEF = "beef"
    PORK = "pork"
    SEAFOOD = "seafood"
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    DAIRY = "dairy"
    EGGS = "eggs"
    NUTS = "nuts"
    GRAINS = "grains"
    SNACKS = "snacks"
    BABY_FOOD = "baby-food"
    OTHER = "other"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Agency(str, Enum):
    FDA = "FDA"
    FSIS = "FSIS"
    USDA = "USDA"


class RecallStatus(str, Enum):
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    PENDING = "Pending"


class Retailer(str, Enum):
    TRADER_JOES = "trader-joes"
    WHOLE_FOODS = "whole-foods"
    KROGER = "kroger"
    WALMART = "walmart"
    COSTCO = "costco"
    TARGET = "target"
    SAFEWAY = "safeway"
    ALBERTSONS = "albertsons"
    VARIOUS = "various-retailers"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


ALL = "all"

# Fields a caller may sort on. Anything else falls back to recallDate.
SORTABLE_FIELDS = (
    "recallDate",
    "title",
    "product",
    "brand",
    "category",
    "riskLevel",
    "retailer",
    "agency",
    "status",
)


class NormalizedRecall(BaseModel):
    """Canonical recall shape. The only shape that is stored or returned."""

    model_config = ConfigDict(use_enum_values=True)

    recallId: str
    title: str
    product: str
    brand: str
    description: str
    reason: str
    category: Category = Category.OTHER
    tags: List[str] = []
    riskLevel: RiskLevel = RiskLevel.MEDIUM
    retailer: Retailer = Retailer.VARIOUS
    agency: Agency = Agency.FDA
    status: RecallStatus = RecallStatus.ONGOING
    distribution: str = "Nationwide"
    statesAffected: List[str] = Field(default_factory=lambda: ["Nationwide"])
    recallDate: datetime
    articleLink: str
    isActive: bool = True


def _enum_or_all(value, enum_cls) -> str:
    if value is None:
        return ALL
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() == member.value.lower():
            return member.value
    return ALL


class RecallQuery(BaseModel):
    """Caller-facing list parameters. Unknown values degrade to their defaults."""

    search: str = ""
    category: str = ALL
    retailer: str = ALL
    riskLevel: str = ALL
    agency: str = ALL
    sortBy: str = "recallDate"
    sortOrder: SortOrder = SortOrder.DESC
    page: int = 1

    @field_validator("search", mode="before")
    @classmethod
    def _clean_search(cls, v):
        return str(v or "").strip()

    @field_validator("category", mode="before")
    @classmethod
    def _check_category(cls, v):
        return _enum_or_all(v, Category)

    @field_validator("retailer", mode="before")
    @classmethod
    def _check_retailer(cls, v):
        return _enum_or_all(v, Retailer)

    @field_validator("riskLevel", mode="before")
    @classmethod
    def _check_risk(cls, v):
        return _enum_or_all(v, RiskLevel)

    @field_validator("agency", mode="before")
    @classmethod
    def _check_agency(cls, v):
        return _enum_or_all(v, Agency)

    @field_validator("sortBy", mode="before")
    @classmethod
    def _check_sort_by(cls, v):
        return v if v in SORTABLE_FIELDS else "recallDate"

    @field_validator("sortOrder", mode="before")
    @classmethod
    def _check_sort_order(cls, v):
        return SortOrder.ASC if str(v or "").lower() == "asc" else SortOrder.DESC

    @field_validator("page", mode="before")
    @classmethod
    def _check_page(cls, v):
        try:
            page = int(v)
        except (TypeError, ValueError):
            return 1
        return max(page, 1)


class ProductLookup(BaseModel):
    """Body of a product lookup. The product name wins when both are given."""

    barcode: Optional[str] = None
    productName: Optional[str] = None

    def term(self) -> str:
        return (self.productName or self.barcode or "").strip()


class RecallPage(BaseModel):
    records: List[NormalizedRecall]
    total: int
    page: int
    totalPages: int


class SyncResult(BaseModel):
    fetched: int
    saved: int
