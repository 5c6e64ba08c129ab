"""Token holdings: purchase confirmation, totals and ownership"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from fangov_ledger.errors import parse_input
from fangov_ledger.models.db import Artist, TokenHolding
from fangov_ledger.models.ledger import PortfolioEntry
from fangov_ledger.models.requests import TokenPurchase
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.storage import LedgerStore, ZERO

logger = logging.getLogger(__name__)


class HoldingsAccessor:
    """
    Sole source of voting weight and ownership.

    Totals are recomputed from the holding rows on every call. Holdings are
    append-only, so a total never decreases.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.guard = ReferentialGuard(store)

    def confirm_token_purchase(self, artist_id: int, user_id: int, amount,
                               acquisition_ref: Optional[str] = None,
                               method: Optional[str] = None) -> TokenHolding:
        """
        Record a purchase confirmed by the payment or wallet collaborator.

        The caller guarantees at-most-once delivery per acquisition_ref; the
        ledger does not deduplicate.
        """
        purchase = parse_input(
            TokenPurchase,
            artist_id=artist_id,
            user_id=user_id,
            amount=amount,
            acquisition_ref=acquisition_ref,
            method=method
        )
        self.guard.require_artist(purchase.artist_id)
        self.guard.require_user(purchase.user_id)

        holding = self.store.create_token_holding(
            artist_id=purchase.artist_id,
            user_id=purchase.user_id,
            amount=purchase.amount,
            acquisition_ref=purchase.acquisition_ref,
            method=purchase.method.value if purchase.method else None
        )
        logger.info(
            f"Recorded {purchase.amount} tokens of artist {purchase.artist_id} for user {purchase.user_id}"
            f" (ref={purchase.acquisition_ref})"
        )
        return holding

    def total_holding(self, artist_id: int, user_id: int) -> Decimal:
        """Sum of every holding row for (artist, user); zero when there are none"""
        return self.store.sum_holdings(artist_id, user_id)

    def ownership_fraction(self, artist: Artist, user_id: int) -> Decimal:
        return self.total_holding(artist.id, user_id) / Decimal(artist.token_supply)

    def holders(self, artist_id: int) -> Dict[int, Decimal]:
        """Per-user totals for an artist, omitting users whose total is zero"""
        return {
            user_id: total
            for user_id, total in self.store.holder_totals(artist_id).items()
            if total > ZERO
        }

    def portfolio(self, user_id: int) -> List[PortfolioEntry]:
        """A user's position in every artist they hold, ordered by first purchase"""
        self.guard.require_user(user_id)

        positions: Dict[int, PortfolioEntry] = {}
        for holding in self.store.list_user_holdings(user_id):
            entry = positions.get(holding.artist_id)
            if entry is None:
                artist = self.store.get_artist(holding.artist_id)
                entry = PortfolioEntry(
                    artist_id=holding.artist_id,
                    artist_name=artist.name if artist else "Unknown Artist",
                    token_name=artist.token_name if artist else "Unknown Token",
                    token_symbol=artist.token_symbol if artist else "UNKNOWN",
                    amount=ZERO,
                    ownership_pct=ZERO,
                    first_purchase=holding.purchase_date
                )
                positions[holding.artist_id] = entry
            entry.amount += holding.amount

        for entry in positions.values():
            artist = self.store.get_artist(entry.artist_id)
            if artist:
                entry.ownership_pct = entry.amount * 100 / Decimal(artist.token_supply)
        return list(positions.values())
