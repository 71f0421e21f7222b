"""Pointsman services.

Every service is a class of classmethods:
- CustomerService: enrollment and member administration
- LedgerService: balances and the only writer of ledger counters
- PromotionService / RewardService: catalog administration
- PurchaseService: points earned on purchases
- RedemptionService: redeem, use, cancel and expire rewards
"""

from pointsman.services.customer import CustomerService
from pointsman.services.ledger import LedgerService, LedgerSummary
from pointsman.services.promotion import PromotionService
from pointsman.services.purchase import PurchaseResult, PurchaseService
from pointsman.services.redemption import RedemptionService
from pointsman.services.reward import RewardService

__all__ = [
    "CustomerService",
    "LedgerService",
    "LedgerSummary",
    "PromotionService",
    "PurchaseResult",
    "PurchaseService",
    "RedemptionService",
    "RewardService",
]
