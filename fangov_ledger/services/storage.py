"""Ledger store: session-bound persistence for every ledger entity"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from fangov_ledger.models.db import (
    Artist, Earning, Proposal, RevenueEvent, TokenHolding, User, Vote
)
from fangov_ledger.models.ledger import ProposalStatus, Recipient, TokenHolderRecipient
from fangov_ledger.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal('0')

class LedgerStore:
    """
    Handles all ledger database operations inside the caller's unit of work.

    The store allocates ids and stamps server-side fields (dates, status,
    distributed flag). Lookups return None when nothing matches. Foreign keys
    are not checked here; see ReferentialGuard.
    """

    def __init__(self, session: Session, clock: Clock = utc_now):
        self.session = session
        self.clock = clock

    def _add(self, row):
        try:
            self.session.add(row)
            self.session.flush()
            return row
        except SQLAlchemyError as e:
            logger.error(f"Database error storing {type(row).__name__}: {e}")
            raise

    # Users

    def create_user(self, username: str, password_hash: str, is_artist: bool = False,
                    wallet_address: Optional[str] = None, bio: Optional[str] = None,
                    profile_image: Optional[str] = None) -> User:
        return self._add(User(
            username=username,
            password_hash=password_hash,
            is_artist=is_artist,
            wallet_address=wallet_address,
            bio=bio,
            profile_image=profile_image,
            created_at=self.clock()
        ))

    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter_by(username=username).first()

    def get_users_by_ids(self, user_ids: Iterable[int]) -> List[User]:
        ids = list(user_ids)
        if not ids:
            return []
        users = {user.id: user for user in self.session.query(User).filter(User.id.in_(ids))}
        return [users[user_id] for user_id in ids if user_id in users]

    def set_user_artist_flag(self, user_id: int) -> Optional[User]:
        user = self.get_user(user_id)
        if user:
            user.is_artist = True
            self.session.flush()
        return user

    # Artists

    def create_artist(self, user_id: int, name: str, token_name: str, token_symbol: str,
                      token_supply: int, artist_share_pct: Decimal, token_holder_share_pct: Decimal,
                      treasury_share_pct: Decimal, genres: Optional[List[str]] = None,
                      location: Optional[str] = None, banner_image: Optional[str] = None,
                      contract_address: Optional[str] = None) -> Artist:
        return self._add(Artist(
            user_id=user_id,
            name=name,
            genres=list(genres or []),
            location=location,
            banner_image=banner_image,
            token_name=token_name,
            token_symbol=token_symbol,
            token_supply=token_supply,
            artist_share_pct=artist_share_pct,
            token_holder_share_pct=token_holder_share_pct,
            treasury_share_pct=treasury_share_pct,
            contract_address=contract_address
        ))

    def get_artist(self, artist_id: int) -> Optional[Artist]:
        return self.session.get(Artist, artist_id)

    def get_artist_by_user_id(self, user_id: int) -> Optional[Artist]:
        return self.session.query(Artist).filter_by(user_id=user_id).first()

    def list_artists(self) -> List[Artist]:
        return self.session.query(Artist).order_by(Artist.id).all()

    def update_artist_contract_address(self, artist_id: int, contract_address: str) -> Optional[Artist]:
        artist = self.get_artist(artist_id)
        if artist:
            artist.contract_address = contract_address
            self.session.flush()
        return artist

    # Token holdings

    def create_token_holding(self, artist_id: int, user_id: int, amount: Decimal,
                             acquisition_ref: Optional[str] = None,
                             method: Optional[str] = None) -> TokenHolding:
        return self._add(TokenHolding(
            artist_id=artist_id,
            user_id=user_id,
            amount=amount,
            acquisition_ref=acquisition_ref,
            method=method,
            purchase_date=self.clock()
        ))

    def list_user_holdings(self, user_id: int) -> List[TokenHolding]:
        return self.session.query(TokenHolding).filter_by(user_id=user_id).order_by(TokenHolding.id).all()

    def list_artist_holdings(self, artist_id: int) -> List[TokenHolding]:
        return self.session.query(TokenHolding).filter_by(artist_id=artist_id).order_by(TokenHolding.id).all()

    def sum_holdings(self, artist_id: int, user_id: int) -> Decimal:
        """Exact total of the pair's holding rows, summed as Decimal rather than by SQL SUM"""
        amounts = (
            self.session.query(TokenHolding.amount)
            .filter_by(artist_id=artist_id, user_id=user_id)
            .all()
        )
        return sum((amount for amount, in amounts), ZERO)

    def holder_totals(self, artist_id: int) -> Dict[int, Decimal]:
        rows = (
            self.session.query(TokenHolding.user_id, TokenHolding.amount)
            .filter_by(artist_id=artist_id)
            .order_by(TokenHolding.user_id, TokenHolding.id)
            .all()
        )
        totals: Dict[int, Decimal] = {}
        for user_id, amount in rows:
            totals[user_id] = totals.get(user_id, ZERO) + amount
        return totals

    # Proposals

    def create_proposal(self, artist_id: int, creator_id: int, title: str, description: str,
                        type: str, options: List[str], end_date: datetime) -> Proposal:
        return self._add(Proposal(
            artist_id=artist_id,
            creator_id=creator_id,
            title=title,
            description=description,
            type=type,
            options=list(options),
            start_date=self.clock(),
            end_date=end_date,
            status=ProposalStatus.ACTIVE.value
        ))

    def get_proposal(self, proposal_id: int) -> Optional[Proposal]:
        return self.session.get(Proposal, proposal_id)

    def list_artist_proposals(self, artist_id: int) -> List[Proposal]:
        return self.session.query(Proposal).filter_by(artist_id=artist_id).order_by(Proposal.id).all()

    def list_user_proposals(self, user_id: int) -> List[Proposal]:
        return self.session.query(Proposal).filter_by(creator_id=user_id).order_by(Proposal.id).all()

    def list_proposals(self, status: Optional[str] = None) -> List[Proposal]:
        query = self.session.query(Proposal)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(Proposal.id).all()

    def update_proposal_status(self, proposal_id: int, status: str) -> Optional[Proposal]:
        proposal = self.get_proposal(proposal_id)
        if proposal:
            proposal.status = status
            self.session.flush()
        return proposal

    # Votes

    def create_vote(self, proposal_id: int, user_id: int, option_index: int, weight: Decimal) -> Vote:
        return self._add(Vote(
            proposal_id=proposal_id,
            user_id=user_id,
            option_index=option_index,
            weight=weight,
            timestamp=self.clock()
        ))

    def list_proposal_votes(self, proposal_id: int) -> List[Vote]:
        return self.session.query(Vote).filter_by(proposal_id=proposal_id).order_by(Vote.id).all()

    def list_user_votes(self, user_id: int) -> List[Vote]:
        return self.session.query(Vote).filter_by(user_id=user_id).order_by(Vote.id).all()

    def delete_user_votes(self, proposal_id: int, user_id: int) -> int:
        try:
            return (
                self.session.query(Vote)
                .filter_by(proposal_id=proposal_id, user_id=user_id)
                .delete(synchronize_session='fetch')
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error removing votes of user {user_id} on proposal {proposal_id}: {e}")
            raise

    # Revenue

    def create_revenue(self, artist_id: int, amount: Decimal, source: str,
                       date: Optional[datetime] = None) -> RevenueEvent:
        return self._add(RevenueEvent(
            artist_id=artist_id,
            amount=amount,
            source=source,
            date=date or self.clock(),
            distributed=False
        ))

    def get_revenue(self, revenue_id: int) -> Optional[RevenueEvent]:
        return self.session.get(RevenueEvent, revenue_id)

    def list_artist_revenues(self, artist_id: int) -> List[RevenueEvent]:
        return self.session.query(RevenueEvent).filter_by(artist_id=artist_id).order_by(RevenueEvent.id).all()

    def list_undistributed_revenues(self, artist_id: Optional[int] = None) -> List[RevenueEvent]:
        query = self.session.query(RevenueEvent).filter(RevenueEvent.distributed.is_(False))
        if artist_id is not None:
            query = query.filter(RevenueEvent.artist_id == artist_id)
        return query.order_by(RevenueEvent.id).all()

    def mark_revenue_distributed(self, revenue_id: int) -> bool:
        """
        Flip ``distributed`` from false to true.

        The flip is a conditional UPDATE, so exactly one caller can win it even
        across processes sharing a relational backend.

        Returns:
            True if this call performed the flip, False if the event is missing
            or was already distributed
        """
        try:
            updated = (
                self.session.query(RevenueEvent)
                .filter(RevenueEvent.id == revenue_id, RevenueEvent.distributed.is_(False))
                .update({RevenueEvent.distributed: True}, synchronize_session='fetch')
            )
            return updated == 1
        except SQLAlchemyError as e:
            logger.error(f"Database error marking revenue {revenue_id} distributed: {e}")
            raise

    # Earnings

    def create_earning(self, revenue_id: int, artist_id: int, recipient: Recipient,
                       amount: Decimal) -> Earning:
        holder_user_id = recipient.user_id if isinstance(recipient, TokenHolderRecipient) else None
        return self._add(Earning(
            revenue_id=revenue_id,
            artist_id=artist_id,
            type=recipient.kind.value,
            holder_user_id=holder_user_id,
            amount=amount,
            date=self.clock()
        ))

    def list_revenue_earnings(self, revenue_id: int) -> List[Earning]:
        return self.session.query(Earning).filter_by(revenue_id=revenue_id).order_by(Earning.id).all()

    def list_user_earnings(self, user_id: int) -> List[Earning]:
        return self.session.query(Earning).filter_by(holder_user_id=user_id).order_by(Earning.id).all()

    def list_artist_earnings(self, artist_id: int, earning_type: Optional[str] = None) -> List[Earning]:
        query = self.session.query(Earning).filter_by(artist_id=artist_id)
        if earning_type is not None:
            query = query.filter_by(type=earning_type)
        return query.order_by(Earning.id).all()
