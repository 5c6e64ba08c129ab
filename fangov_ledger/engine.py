"""Governance engine: one entry point over every ledger operation"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Generator, List, Optional

from fangov_ledger.config import Settings
from fangov_ledger.db import Database
from fangov_ledger.errors import InvalidStateError
from fangov_ledger.models.db import Artist, Earning, Proposal, RevenueEvent, TokenHolding, User, Vote
from fangov_ledger.models.ledger import ArtistView, DistributionResult, PortfolioEntry, ProposalView, RevenueSummary, Tally
from fangov_ledger.services.accounts import AccountService
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.holdings import HoldingsAccessor
from fangov_ledger.services.proposals import ProposalManager, is_votable
from fangov_ledger.services.revenue import RevenueDistributor
from fangov_ledger.services.storage import LedgerStore
from fangov_ledger.services.voting import VoteTabulator
from fangov_ledger.utils.clock import Clock, utc_now
from fangov_ledger.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every component bound to the same unit of work"""
    store: LedgerStore
    guard: ReferentialGuard
    accounts: AccountService
    holdings: HoldingsAccessor
    proposals: ProposalManager
    votes: VoteTabulator
    revenue: RevenueDistributor


class GovernanceEngine:
    """
    Runs each operation in its own transaction against an injected Database.

    Distribution additionally holds a per-artist lock so holder enumeration
    and the Earnings/flag write are never interleaved with another
    distribution for the same artist in this process.
    """

    def __init__(self, database: Database, settings: Settings, clock: Clock = utc_now):
        self.database = database
        self.settings = settings
        self.clock = clock
        self._artist_locks = KeyedLocks()

    @contextmanager
    def unit_of_work(self) -> Generator[Services, None, None]:
        with self.database.session() as session:
            store = LedgerStore(session, clock=self.clock)
            yield Services(
                store=store,
                guard=ReferentialGuard(store),
                accounts=AccountService(store, self.settings),
                holdings=HoldingsAccessor(store),
                proposals=ProposalManager(store, clock=self.clock),
                votes=VoteTabulator(store, self.settings, clock=self.clock),
                revenue=RevenueDistributor(store, self.settings, clock=self.clock)
            )

    # Accounts

    def register_user(self, username: str, password: str, **profile) -> User:
        with self.unit_of_work() as svc:
            return svc.accounts.register_user(username, password, **profile)

    def verify_credentials(self, username: str, password: str) -> Optional[User]:
        with self.unit_of_work() as svc:
            return svc.accounts.verify_credentials(username, password)

    def onboard_artist(self, user_id: int, **profile) -> Artist:
        with self.unit_of_work() as svc:
            return svc.accounts.onboard_artist(user_id, **profile)

    def attach_contract_address(self, artist_id: int, contract_address: str) -> Artist:
        with self.unit_of_work() as svc:
            return svc.accounts.attach_contract_address(artist_id, contract_address)

    def get_artist(self, artist_id: int) -> Optional[Artist]:
        with self.unit_of_work() as svc:
            return svc.store.get_artist(artist_id)

    def list_artists(self) -> List[Artist]:
        with self.unit_of_work() as svc:
            return svc.store.list_artists()

    def artist_directory(self) -> List[ArtistView]:
        with self.unit_of_work() as svc:
            return svc.accounts.artist_directory()

    def artist_profile(self, artist_id: int) -> ArtistView:
        with self.unit_of_work() as svc:
            return svc.accounts.artist_profile(artist_id)

    # Holdings

    def confirm_token_purchase(self, artist_id: int, user_id: int, amount,
                               acquisition_ref: Optional[str] = None,
                               method: Optional[str] = None) -> TokenHolding:
        with self.unit_of_work() as svc:
            return svc.holdings.confirm_token_purchase(artist_id, user_id, amount, acquisition_ref, method)

    def total_holding(self, artist_id: int, user_id: int) -> Decimal:
        with self.unit_of_work() as svc:
            return svc.holdings.total_holding(artist_id, user_id)

    def portfolio(self, user_id: int) -> List[PortfolioEntry]:
        with self.unit_of_work() as svc:
            return svc.holdings.portfolio(user_id)

    # Proposals and votes

    def create_proposal(self, artist_id: int, creator_id: int, title: str, description: str,
                        type: str, options: List[str], end_date: datetime) -> Proposal:
        with self.unit_of_work() as svc:
            return svc.proposals.create_proposal(artist_id, creator_id, title, description, type, options, end_date)

    def close_proposal(self, proposal_id: int, terminal_status: str = 'closed') -> Proposal:
        with self.unit_of_work() as svc:
            return svc.proposals.close_proposal(proposal_id, terminal_status)

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        with self.unit_of_work() as svc:
            return svc.store.get_proposal(proposal_id)

    def is_votable(self, proposal: Proposal, now: Optional[datetime] = None) -> bool:
        return is_votable(proposal, now or self.clock())

    def sweep_expired(self, now: Optional[datetime] = None) -> List[Proposal]:
        with self.unit_of_work() as svc:
            return svc.proposals.sweep_expired(now)

    def cast_vote(self, proposal_id: int, user_id: int, option_index: int) -> Vote:
        with self.unit_of_work() as svc:
            return svc.votes.cast_vote(proposal_id, user_id, option_index)

    def tally(self, proposal_id: int) -> Tally:
        with self.unit_of_work() as svc:
            return svc.votes.tally(proposal_id)

    def active_proposals(self, now: Optional[datetime] = None) -> List[ProposalView]:
        with self.unit_of_work() as svc:
            return [svc.votes.proposal_view(proposal) for proposal in svc.proposals.list_active_proposals(now)]

    def artist_proposals(self, artist_id: int) -> List[ProposalView]:
        with self.unit_of_work() as svc:
            artist = svc.guard.require_artist(artist_id)
            return [svc.votes.proposal_view(proposal, artist) for proposal in svc.proposals.list_artist_proposals(artist_id)]

    # Revenue

    def record_revenue(self, artist_id: int, amount, source: str,
                       date: Optional[datetime] = None) -> RevenueEvent:
        with self.unit_of_work() as svc:
            return svc.revenue.record_revenue(artist_id, amount, source, date)

    def distribute(self, revenue_id: int) -> DistributionResult:
        with self.unit_of_work() as svc:
            artist_id = svc.guard.require_revenue(revenue_id).artist_id
        with self._artist_locks.hold(artist_id):
            with self.unit_of_work() as svc:
                return svc.revenue.distribute(revenue_id)

    def distribute_pending(self, artist_id: Optional[int] = None) -> List[DistributionResult]:
        """Distribute every undistributed event, each in its own transaction"""
        with self.unit_of_work() as svc:
            pending = svc.revenue.pending_revenue_ids(artist_id)

        results = []
        for revenue_id in pending:
            try:
                results.append(self.distribute(revenue_id))
            except InvalidStateError as e:
                logger.info(f"Skipping revenue {revenue_id}: {e}")
        logger.info(f"Distributed {len(results)} of {len(pending)} pending revenue events")
        return results

    def summarize(self, artist_id: int, now: Optional[datetime] = None) -> RevenueSummary:
        with self.unit_of_work() as svc:
            return svc.revenue.summarize(artist_id, now)

    def revenue_earnings(self, revenue_id: int) -> List[Earning]:
        with self.unit_of_work() as svc:
            return svc.store.list_revenue_earnings(revenue_id)

    def user_earnings(self, user_id: int) -> List[Earning]:
        with self.unit_of_work() as svc:
            return svc.store.list_user_earnings(user_id)
