"""
Django Pointsman - Loyalty points ledger and redemptions.

Usage:
    from pointsman import LedgerService, PurchaseService, RedemptionService

    result = PurchaseService.record_purchase("CUST-001", Decimal("120.00"))
    LedgerService.get_balance("CUST-001")

    redemption = RedemptionService.redeem("CUST-001", "RWD-COFFEE", channel="ONLINE")
    RedemptionService.mark_used(redemption.code)
    RedemptionService.cancel(redemption.code, "customer request")
"""


_SERVICES = {
    "CustomerService": "pointsman.services.customer",
    "LedgerService": "pointsman.services.ledger",
    "PromotionService": "pointsman.services.promotion",
    "PurchaseService": "pointsman.services.purchase",
    "RedemptionService": "pointsman.services.redemption",
    "RewardService": "pointsman.services.reward",
}


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    if name == "PointsmanError":
        from pointsman.exceptions import PointsmanError

        return PointsmanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [*_SERVICES, "PointsmanError"]
__version__ = "0.1.0"
