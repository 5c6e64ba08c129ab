"""Revenue split and vote tally arithmetic"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP
from typing import Dict, Iterable, List, Tuple

HUNDRED = Decimal('100')
ZERO = Decimal('0')

@dataclass
class SplitBreakdown:
    """Amounts owed to each recipient of one revenue event"""
    artist_amount: Decimal
    treasury_amount: Decimal
    pool_amount: Decimal
    holder_amounts: Dict[int, Decimal] = field(default_factory=dict)
    unallocated: Decimal = ZERO

class RevenueSplitter:
    """Computes the artist / token-holder / treasury split of revenue amounts"""

    def __init__(self, places: int = 8):
        self.quantum = Decimal(1).scaleb(-places)

    def quantize(self, amount: Decimal, rounding=ROUND_HALF_EVEN) -> Decimal:
        return amount.quantize(self.quantum, rounding=rounding)

    def share_of(self, amount: Decimal, pct: Decimal) -> Decimal:
        """``amount * pct / 100`` at ledger precision"""
        return self.quantize(Decimal(amount) * Decimal(pct) / HUNDRED)

    def split(self, amount: Decimal, artist_pct: Decimal, holder_pct: Decimal, treasury_pct: Decimal,
              holdings: Dict[int, Decimal], token_supply: int) -> SplitBreakdown:
        """
        Split one revenue amount.

        Each holder receives ``pool * holding / token_supply`` rounded down,
        so the holders together never receive more than the pool. Whatever no
        recipient receives (unsold supply, rounding) is reported as
        ``unallocated`` and the parts always add back up to ``amount``.
        """
        amount = Decimal(amount)
        artist_amount = self.share_of(amount, artist_pct)
        treasury_amount = self.share_of(amount, treasury_pct)
        pool_amount = self.share_of(amount, holder_pct)

        supply = Decimal(token_supply)
        holder_amounts = {
            user_id: self.quantize(pool_amount * holding / supply, rounding=ROUND_DOWN)
            for user_id, holding in holdings.items()
            if holding > ZERO
        }

        allocated = artist_amount + treasury_amount + sum(holder_amounts.values(), ZERO)
        return SplitBreakdown(
            artist_amount=artist_amount,
            treasury_amount=treasury_amount,
            pool_amount=pool_amount,
            holder_amounts=holder_amounts,
            unallocated=amount - allocated
        )

def tally_weights(option_count: int, votes: Iterable[Tuple[int, Decimal]]) -> Tuple[List[Decimal], Decimal]:
    """Sum vote weights per option index; returns (per-option weights, total)"""
    weights = [ZERO] * option_count
    for option_index, weight in votes:
        weights[option_index] += weight
    return weights, sum(weights, ZERO)

def percentages(weights: List[Decimal], total: Decimal) -> List[int]:
    """
    Whole-number share of each option, rounded half up independently.

    All zeros when nothing was cast. The result need not add up to 100.
    """
    if total <= ZERO:
        return [0] * len(weights)
    return [int((HUNDRED * weight / total).quantize(Decimal(1), rounding=ROUND_HALF_UP)) for weight in weights]
