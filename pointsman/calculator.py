"""
Purchase points calculation.

Pure functions: no database access, no mutation. The caller claims the
promotion and credits the ledger.

    base  = round_half_up(net_amount) * earn_rate
    final = round_half_up(base * multiplier) + fixed_bonus

The multiplier is always applied before the fixed bonus:
base=100, multiplier=2.0, fixed=50 gives 250.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from pointsman.eligibility import CustomerSnapshot, PromotionBonus, find_applicable
from pointsman.models import Promotion


@dataclass(frozen=True)
class PointsCalculation:
    points: int
    base_points: int
    promotion: Promotion | None = None

    @property
    def promotion_code(self) -> str | None:
        return self.promotion.code if self.promotion else None


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def base_points(net_amount: Decimal, earn_rate: int) -> int:
    """Points for the net amount before any promotion (0 for non-positive amounts)."""
    if net_amount is None or net_amount <= 0:
        return 0
    return round_half_up(net_amount) * earn_rate


def apply_bonus(points: int, bonus: PromotionBonus | None) -> int:
    if bonus is None:
        return points
    if bonus.multiplier is not None:
        points = round_half_up(Decimal(points) * Decimal(str(bonus.multiplier)))
    if bonus.fixed_bonus is not None:
        points += bonus.fixed_bonus
    return max(0, points)


def calculate_points(
    net_amount: Decimal,
    snapshot: CustomerSnapshot,
    promotions: Iterable[Promotion],
    earn_rate: int,
) -> PointsCalculation:
    """Final points for a purchase, with the promotion that would apply."""
    base = base_points(net_amount, earn_rate)
    if net_amount is None or net_amount <= 0:
        return PointsCalculation(points=0, base_points=0)

    promotion = find_applicable(promotions, snapshot, net_amount)
    if promotion is None:
        return PointsCalculation(points=base, base_points=base)

    points = apply_bonus(base, PromotionBonus.from_promotion(promotion))
    return PointsCalculation(points=points, base_points=base, promotion=promotion)
