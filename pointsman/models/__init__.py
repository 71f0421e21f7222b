"""Pointsman models."""

from pointsman.lifecycle import RedemptionChannel, RedemptionStatus
from pointsman.models.customer import Customer, CustomerStatus, Tier, TIER_RANKS, tier_rank
from pointsman.models.ledger import AccountStatus, EntryType, LedgerAccount, LedgerEntry
from pointsman.models.promotion import Promotion, PromotionStatus, PromotionType
from pointsman.models.reward import Reward, RewardCategory, RewardStatus, RewardType
from pointsman.models.redemption import RedemptionLog
from pointsman.models.purchase import PurchaseStatus, PurchaseTransaction

__all__ = [
    # Customers
    "Customer",
    "CustomerStatus",
    "Tier",
    "TIER_RANKS",
    "tier_rank",
    # Ledger
    "LedgerAccount",
    "LedgerEntry",
    "AccountStatus",
    "EntryType",
    # Catalog
    "Promotion",
    "PromotionStatus",
    "PromotionType",
    "Reward",
    "RewardCategory",
    "RewardStatus",
    "RewardType",
    # Redemptions
    "RedemptionLog",
    "RedemptionStatus",
    "RedemptionChannel",
    # Purchases
    "PurchaseTransaction",
    "PurchaseStatus",
]
