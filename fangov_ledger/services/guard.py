"""Referential guard: existence checks for ids passed between components"""
from fangov_ledger.errors import NotFoundError
from fangov_ledger.models.db import Artist, Proposal, RevenueEvent, User
from fangov_ledger.services.storage import LedgerStore


class ReferentialGuard:
    """Resolves ids through the store, raising NotFoundError for dangling references"""

    def __init__(self, store: LedgerStore):
        self.store = store

    def require_user(self, user_id: int) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def require_artist(self, artist_id: int) -> Artist:
        artist = self.store.get_artist(artist_id)
        if artist is None:
            raise NotFoundError(f"Artist {artist_id} not found")
        return artist

    def require_proposal(self, proposal_id: int) -> Proposal:
        proposal = self.store.get_proposal(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        return proposal

    def require_revenue(self, revenue_id: int) -> RevenueEvent:
        revenue = self.store.get_revenue(revenue_id)
        if revenue is None:
            raise NotFoundError(f"Revenue event {revenue_id} not found")
        return revenue
