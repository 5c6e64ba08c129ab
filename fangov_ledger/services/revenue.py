"""Revenue recognition, distribution and reporting"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from fangov_ledger.config import Settings
from fangov_ledger.errors import InvalidStateError, ValidationError, parse_input
from fangov_ledger.models.db import RevenueEvent
from fangov_ledger.models.ledger import (
    ArtistRecipient, DistributionResult, RevenueSummary, ShareProjection, TokenHolderRecipient, TreasuryRecipient
)
from fangov_ledger.models.requests import RevenueEntry
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.holdings import HoldingsAccessor
from fangov_ledger.services.storage import LedgerStore, ZERO
from fangov_ledger.splits import RevenueSplitter
from fangov_ledger.utils.clock import Clock, to_naive_utc, utc_now

logger = logging.getLogger(__name__)


def month_key(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def previous_month_key(now: datetime) -> str:
    if now.month == 1:
        return f"{now.year - 1:04d}-12"
    return f"{now.year:04d}-{now.month - 1:02d}"


class RevenueDistributor:
    """Splits recognized revenue between artist, token holders and treasury"""

    def __init__(self, store: LedgerStore, settings: Settings, clock: Clock = utc_now):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.guard = ReferentialGuard(store)
        self.holdings = HoldingsAccessor(store)
        self.splitter = RevenueSplitter(places=settings.AMOUNT_PLACES)

    def record_revenue(self, artist_id: int, amount, source: str,
                       date: Optional[datetime] = None) -> RevenueEvent:
        entry = parse_input(RevenueEntry, artist_id=artist_id, amount=amount, source=source, date=date)
        amount = self.splitter.quantize(entry.amount)
        if amount <= ZERO:
            raise ValidationError(
                f"Revenue amount {entry.amount} rounds to zero at {self.settings.AMOUNT_PLACES} decimal places"
            )
        self.guard.require_artist(entry.artist_id)
        revenue = self.store.create_revenue(
            artist_id=entry.artist_id,
            amount=amount,
            source=entry.source,
            date=to_naive_utc(entry.date) if entry.date else None
        )
        logger.info(f"Recorded revenue {revenue.id}: {revenue.amount} from {revenue.source} for artist {artist_id}")
        return revenue

    def distribute(self, revenue_id: int) -> DistributionResult:
        """
        Write the Earnings for one revenue event and mark it distributed.

        Must run inside a single unit of work: the distributed flag and the
        Earnings commit or roll back together.

        Raises:
            NotFoundError: unknown revenue event or artist
            InvalidStateError: event already distributed
        """
        revenue = self.guard.require_revenue(revenue_id)
        if revenue.distributed:
            raise InvalidStateError(f"Revenue event {revenue_id} was already distributed")
        artist = self.guard.require_artist(revenue.artist_id)

        if not self.store.mark_revenue_distributed(revenue_id):
            raise InvalidStateError(f"Revenue event {revenue_id} was distributed concurrently")

        breakdown = self.splitter.split(
            amount=revenue.amount,
            artist_pct=artist.artist_share_pct,
            holder_pct=artist.token_holder_share_pct,
            treasury_pct=artist.treasury_share_pct,
            holdings=self.holdings.holders(artist.id),
            token_supply=artist.token_supply
        )

        artist_earning = self.store.create_earning(
            revenue_id, artist.id, ArtistRecipient(artist_id=artist.id), breakdown.artist_amount
        )
        holder_earnings = [
            self.store.create_earning(revenue_id, artist.id, TokenHolderRecipient(user_id=user_id), amount)
            for user_id, amount in breakdown.holder_amounts.items()
        ]
        treasury_earning = self.store.create_earning(
            revenue_id, artist.id, TreasuryRecipient(artist_id=artist.id), breakdown.treasury_amount
        )

        logger.info(
            f"Distributed revenue {revenue_id} ({revenue.amount}): artist {breakdown.artist_amount}, "
            f"treasury {breakdown.treasury_amount}, {len(holder_earnings)} holders from pool "
            f"{breakdown.pool_amount}, unallocated {breakdown.unallocated}"
        )
        return DistributionResult(
            revenue_id=revenue_id,
            amount=revenue.amount,
            artist_earning=artist_earning,
            treasury_earning=treasury_earning,
            token_holder_earnings=holder_earnings,
            unallocated=breakdown.unallocated
        )

    def pending_revenue_ids(self, artist_id: Optional[int] = None) -> List[int]:
        return [revenue.id for revenue in self.store.list_undistributed_revenues(artist_id)]

    def summarize(self, artist_id: int, now: Optional[datetime] = None) -> RevenueSummary:
        """Read-only monthly view of an artist's revenue with the share projection over the total"""
        artist = self.guard.require_artist(artist_id)
        now = to_naive_utc(now) if now else self.clock()

        monthly: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for revenue in self.store.list_artist_revenues(artist_id):
            monthly[month_key(revenue.date or now)] += revenue.amount

        total = sum(monthly.values(), ZERO)
        distribution = {
            'artist': ShareProjection(artist.artist_share_pct, self.splitter.share_of(total, artist.artist_share_pct)),
            'tokenHolders': ShareProjection(
                artist.token_holder_share_pct, self.splitter.share_of(total, artist.token_holder_share_pct)
            ),
            'treasury': ShareProjection(artist.treasury_share_pct, self.splitter.share_of(total, artist.treasury_share_pct)),
        }
        return RevenueSummary(
            artist_id=artist.id,
            artist_name=artist.name,
            total=total,
            last_month=monthly.get(previous_month_key(now), ZERO),
            monthly={key: monthly[key] for key in sorted(monthly)},
            distribution=distribution
        )
