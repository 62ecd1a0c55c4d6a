"""Commission split between platform and property owner.

CRITICAL BUSINESS LOGIC - this is the only place the split is computed:
- commission = service fee captured from the guest (0 for active members)
- owner_gross_share = gross - commission
- owner_commission = owner_gross_share * 15% (platform cut of the owner share)
- platform_revenue = commission + owner_commission

Checkout display, booking confirmation, owner statements and every analytics
rollup call split_commission(). owner_commission and platform_revenue are kept
as exact two-place decimals so per-booking sums equal bucket-level splits.
"""

from dataclasses import dataclass
from decimal import Decimal

from staymarket.config import settings

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CommissionRecord:
    """Frozen split of one booking's (or one bucket's) gross amount."""

    gross_revenue: int
    commission: int
    owner_gross_share: int
    owner_commission: Decimal
    platform_revenue: Decimal

    @property
    def owner_payout(self) -> Decimal:
        """What the owner keeps after the platform's cut."""
        return Decimal(self.owner_gross_share) - self.owner_commission

    def as_dict(self) -> dict:
        return {
            "gross_revenue": self.gross_revenue,
            "commission": self.commission,
            "owner_gross_share": self.owner_gross_share,
            "owner_commission": self.owner_commission,
            "platform_revenue": self.platform_revenue,
            "owner_payout": self.owner_payout,
        }


def split_commission(gross_amount: int, commission: int) -> CommissionRecord:
    """Split a gross amount into platform and owner shares.

    Args:
        gross_amount: Total paid by the guest (whole units)
        commission: Service fee captured directly from the guest

    Returns:
        CommissionRecord
    """
    owner_gross_share = max(0, gross_amount - commission)
    owner_commission = (Decimal(owner_gross_share) * settings.owner_commission_rate).quantize(CENTS)
    return CommissionRecord(
        gross_revenue=gross_amount,
        commission=commission,
        owner_gross_share=owner_gross_share,
        owner_commission=owner_commission,
        platform_revenue=Decimal(commission) + owner_commission,
    )
