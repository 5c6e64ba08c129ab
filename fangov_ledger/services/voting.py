"""Weighted voting: casting votes and tabulating results"""
import logging
from typing import Optional

from fangov_ledger.config import Settings
from fangov_ledger.errors import InvalidStateError, UnauthorizedError, ValidationError
from fangov_ledger.models.db import Artist, Proposal, Vote
from fangov_ledger.models.ledger import ProposalView, Tally
from fangov_ledger.services.guard import ReferentialGuard
from fangov_ledger.services.holdings import HoldingsAccessor
from fangov_ledger.services.proposals import is_votable
from fangov_ledger.services.storage import LedgerStore, ZERO
from fangov_ledger.splits import percentages, tally_weights
from fangov_ledger.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class VoteTabulator:
    """Validates and records votes at the voter's current weight, and tallies them"""

    def __init__(self, store: LedgerStore, settings: Settings, clock: Clock = utc_now):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.guard = ReferentialGuard(store)
        self.holdings = HoldingsAccessor(store)

    def cast_vote(self, proposal_id: int, user_id: int, option_index: int) -> Vote:
        """
        Record a vote weighted by the voter's total holding in the proposal's artist.

        The weight is always derived here; callers cannot supply one. Under the
        'accumulate' revote policy every call adds a vote, under 'replace' the
        voter's earlier votes on the proposal are removed first.

        Raises:
            NotFoundError: unknown proposal
            InvalidStateError: proposal closed, cancelled or past its end date
            UnauthorizedError: voter holds no tokens of the artist, checked
                before the option so it wins whatever option was picked
            ValidationError: option_index outside the proposal's options
        """
        proposal = self.guard.require_proposal(proposal_id)
        if not is_votable(proposal, self.clock()):
            raise InvalidStateError(
                f"Proposal {proposal_id} is not open for voting (status={proposal.status}, "
                f"end_date={proposal.end_date.isoformat()})"
            )
        weight = self.holdings.total_holding(proposal.artist_id, user_id)
        if weight <= ZERO:
            logger.warning(f"Rejected vote by user {user_id} on proposal {proposal_id}: no tokens held")
            raise UnauthorizedError(f"User {user_id} does not hold tokens for artist {proposal.artist_id}")
        if isinstance(option_index, bool) or not isinstance(option_index, int) \
                or not 0 <= option_index < len(proposal.options):
            raise ValidationError(
                f"option_index {option_index!r} out of range for {len(proposal.options)} options"
            )

        if self.settings.REVOTE_POLICY == 'replace':
            replaced = self.store.delete_user_votes(proposal_id, user_id)
            if replaced:
                logger.info(f"Replacing {replaced} earlier vote(s) of user {user_id} on proposal {proposal_id}")

        vote = self.store.create_vote(
            proposal_id=proposal_id,
            user_id=user_id,
            option_index=option_index,
            weight=weight
        )
        logger.info(f"User {user_id} voted option {option_index} on proposal {proposal_id} with weight {weight}")
        return vote

    def tally(self, proposal_id: int) -> Tally:
        proposal = self.guard.require_proposal(proposal_id)
        return self._tally(proposal)

    def _tally(self, proposal: Proposal) -> Tally:
        votes = self.store.list_proposal_votes(proposal.id)
        weights, total = tally_weights(
            len(proposal.options),
            ((vote.option_index, vote.weight) for vote in votes)
        )
        return Tally(
            per_option_weight=weights,
            per_option_percentage=percentages(weights, total),
            total_weight=total
        )

    def proposal_view(self, proposal: Proposal, artist: Optional[Artist] = None) -> ProposalView:
        """The proposal with its artist labels and tally, as listings present it"""
        if artist is None:
            artist = self.store.get_artist(proposal.artist_id)
        return ProposalView(
            proposal_id=proposal.id,
            artist_id=proposal.artist_id,
            artist_name=artist.name if artist else "Unknown Artist",
            token_symbol=artist.token_symbol if artist else "UNKNOWN",
            title=proposal.title,
            description=proposal.description,
            type=proposal.type,
            status=proposal.status,
            start_date=proposal.start_date,
            end_date=proposal.end_date,
            votable=is_votable(proposal, self.clock()),
            options=list(proposal.options),
            tally=self._tally(proposal)
        )
