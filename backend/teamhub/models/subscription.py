from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class TierInfo(BaseModel):
    name: SubscriptionTier
    max_members: Optional[int] = None
    max_resources: Dict[str, int] = {}
    price_monthly: int
    price_yearly: int
    features: List[str] = []
    is_team_plan: bool = True

    model_config = ConfigDict(frozen=True)


class SubscriptionChange(BaseModel):
    # Kept as a plain string so unknown tiers surface as a domain error.
    subscription_tier: str = Field(..., min_length=1)
    subscription_ref: Optional[str] = Field(default=None, max_length=255)


GIB = 1024 * 1024 * 1024

# Prices are in cents. `max_members=None` means no member limit.
TIER_TABLE: Dict[SubscriptionTier, TierInfo] = {
    SubscriptionTier.FREE: TierInfo(
        name=SubscriptionTier.FREE,
        max_members=5,
        max_resources={"storage": 1 * GIB, "api_calls": 10_000},
        price_monthly=0,
        price_yearly=0,
        features=["basic_features"],
    ),
    SubscriptionTier.BASIC: TierInfo(
        name=SubscriptionTier.BASIC,
        max_members=10,
        max_resources={"storage": 5 * GIB, "api_calls": 100_000},
        price_monthly=1999,
        price_yearly=19999,
        features=["basic_features", "priority_support"],
    ),
    SubscriptionTier.PRO: TierInfo(
        name=SubscriptionTier.PRO,
        max_members=20,
        max_resources={"storage": 10 * GIB, "api_calls": 1_000_000},
        price_monthly=4999,
        price_yearly=49999,
        features=["basic_features", "priority_support", "advanced_features"],
    ),
    SubscriptionTier.ENTERPRISE: TierInfo(
        name=SubscriptionTier.ENTERPRISE,
        max_members=None,
        max_resources={"storage": 100 * GIB, "api_calls": 10_000_000},
        price_monthly=9999,
        price_yearly=99999,
        features=[
            "basic_features",
            "priority_support",
            "advanced_features",
            "premium_features",
        ],
    ),
}


def get_tier(tier: SubscriptionTier) -> TierInfo:
    return TIER_TABLE[tier]


def list_tiers() -> List[TierInfo]:
    return sorted(TIER_TABLE.values(), key=lambda tier: tier.price_monthly)
