from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from .utils.coerce import to_count

# Table names as created by the Postgres/Supabase schema
CAMPAIGN_TABLE = "Campaign"
ACCOUNT_TABLE = "Account"
POST_TABLE = "Post"
KPI_TABLE = "KPI"
LINK_TABLE = "_CampaignToAccount"

UNCATEGORIZED = "Uncategorized"


class KpiCategory(str, Enum):
    VIEWS = "VIEWS"
    QTY_POST = "QTY_POST"
    FYP_COUNT = "FYP_COUNT"
    VIDEO_COUNT = "VIDEO_COUNT"
    GMV_IDR = "GMV_IDR"
    YELLOW_CART = "YELLOW_CART"


class ApiModel(BaseModel):
    """Базовая схема ответа: camelCase наружу, snake_case внутри."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class KpiRow(ApiModel):
    """Строка KPI вместе с вычисляемым остатком до цели."""

    id: str
    campaign_id: str
    account_id: Optional[str] = None
    category: KpiCategory
    target: int = 0
    actual: int = 0

    @field_validator("target", "actual", mode="before")
    @classmethod
    def loose_number(cls, v: Any) -> int:
        return to_count(v)

    @computed_field
    @property
    def remaining(self) -> int:
        # Not clamped: over-delivery shows up as a negative remainder
        return self.target - self.actual


class EngagementTotals(ApiModel):
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    saves: int = 0
    engagement_rate: float = 0.0


class AllCampaignsEngagement(EngagementTotals):
    campaign_count: int = 0


class CategoryBreakdownItem(ApiModel):
    category: str
    posts: int = 0
    views: int = 0


class AccountView(ApiModel):
    id: str
    name: Optional[str] = None
    account_type: Optional[str] = None
    campaign_ids: list[str] = Field(default_factory=list)
    is_crossbrand: bool = False
    post_count: int = 0
    kpi_count: int = 0


class KpiDrift(ApiModel):
    kpi_id: str
    account_id: Optional[str] = None
    category: KpiCategory
    stored: int
    expected: int

    @computed_field
    @property
    def delta(self) -> int:
        return self.expected - self.stored


def category_value(value: Any) -> str:
    """Имя категории как строка, будь то KpiCategory или сырое значение из БД."""
    return value.value if isinstance(value, KpiCategory) else str(value)
