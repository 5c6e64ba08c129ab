"""Proposal lifecycle: creation, closing and votability"""
import logging
from datetime import datetime
from typing import List, Optional

from fangov_ledger.errors import InvalidTransitionError, ValidationError, parse_input
from fangov_ledger.models.db import Proposal
from fangov_ledger.models.ledger import ProposalStatus
from fangov_ledger.models.requests import ProposalClosure, ProposalDraft
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.storage import LedgerStore
from fangov_ledger.utils.clock import Clock, to_naive_utc, utc_now

logger = logging.getLogger(__name__)


def is_votable(proposal: Proposal, now: datetime) -> bool:
    """True iff the proposal is stored as active and its deadline has not passed"""
    return proposal.status == ProposalStatus.ACTIVE.value and to_naive_utc(now) < proposal.end_date


class ProposalManager:
    """
    Creates proposals and moves them through active -> closed | cancelled.

    Expiry is lazy: a proposal past its end date keeps status 'active' until
    someone closes it or runs sweep_expired, but is_votable already treats it
    as over.
    """

    def __init__(self, store: LedgerStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self.guard = ReferentialGuard(store)

    def create_proposal(self, artist_id: int, creator_id: int, title: str, description: str,
                        type: str, options: List[str], end_date: datetime) -> Proposal:
        draft = parse_input(
            ProposalDraft,
            artist_id=artist_id,
            creator_id=creator_id,
            title=title,
            description=description or "",
            type=type,
            options=options,
            end_date=end_date
        )
        end = to_naive_utc(draft.end_date)
        now = self.clock()
        if end <= now:
            raise ValidationError(f"end_date {end.isoformat()} must be after the current time {now.isoformat()}")

        self.guard.require_artist(draft.artist_id)
        self.guard.require_user(draft.creator_id)

        proposal = self.store.create_proposal(
            artist_id=draft.artist_id,
            creator_id=draft.creator_id,
            title=draft.title,
            description=draft.description,
            type=draft.type.value,
            options=draft.options,
            end_date=end
        )
        logger.info(f"Created proposal {proposal.id} for artist {proposal.artist_id} with {len(proposal.options)} options")
        return proposal

    def close_proposal(self, proposal_id: int,
                       terminal_status: str = ProposalStatus.CLOSED.value) -> Proposal:
        closure = parse_input(ProposalClosure, terminal_status=terminal_status)
        proposal = self.guard.require_proposal(proposal_id)
        if ProposalStatus(proposal.status).is_terminal:
            raise InvalidTransitionError(
                f"Proposal {proposal_id} is already {proposal.status}; cannot move to {closure.terminal_status.value}"
            )
        proposal = self.store.update_proposal_status(proposal_id, closure.terminal_status.value)
        logger.info(f"Proposal {proposal_id} is now {proposal.status}")
        return proposal

    def list_active_proposals(self, now: Optional[datetime] = None) -> List[Proposal]:
        now = now or self.clock()
        return [
            proposal
            for proposal in self.store.list_proposals(status=ProposalStatus.ACTIVE.value)
            if is_votable(proposal, now)
        ]

    def list_artist_proposals(self, artist_id: int) -> List[Proposal]:
        self.guard.require_artist(artist_id)
        return self.store.list_artist_proposals(artist_id)

    def sweep_expired(self, now: Optional[datetime] = None) -> List[Proposal]:
        """Materialize 'closed' on active proposals whose deadline has passed"""
        now = now or self.clock()
        closed = []
        for proposal in self.store.list_proposals(status=ProposalStatus.ACTIVE.value):
            if not is_votable(proposal, now):
                closed.append(self.store.update_proposal_status(proposal.id, ProposalStatus.CLOSED.value))
        if closed:
            logger.info(f"Closed {len(closed)} expired proposals")
        return closed
