"""
Tests for the ledger store.

Covers id allocation, server-stamped fields, not-found lookups and the
conditional distributed flag.
"""

import datetime
from decimal import Decimal

import pytest

from fangov_ledger.models.ledger import (
    ArtistRecipient, EarningType, TokenHolderRecipient, TreasuryRecipient
)


def _artist(store, user_id, symbol="AURORA"):
    return store.create_artist(
        user_id=user_id,
        name="Aurora",
        token_name="AuroraShares",
        token_symbol=symbol,
        token_supply=1_000_000,
        artist_share_pct=Decimal("60"),
        token_holder_share_pct=Decimal("30"),
        treasury_share_pct=Decimal("10"),
    )


class TestIdAllocation:
    """Ids are monotonic per entity type."""

    def test_user_ids_increase(self, store):
        """Each created user gets a larger id than the previous one."""
        first = store.create_user("a", "hash")
        second = store.create_user("b", "hash")
        assert second.id > first.id

    def test_counters_are_per_entity(self, store):
        """User and artist ids are allocated independently."""
        store.create_user("a", "hash")
        user = store.create_user("b", "hash")
        artist = _artist(store, user.id)
        assert user.id == 2
        assert artist.id == 1

    def test_vote_ids_not_reused_after_delete(self, store):
        """Deleting the newest vote does not free its id."""
        first = store.create_vote(1, 1, 0, Decimal("5"))
        store.delete_user_votes(1, 1)
        second = store.create_vote(1, 1, 1, Decimal("5"))
        assert second.id > first.id


class TestStampedFields:
    """Fields the store assigns itself."""

    def test_proposal_status_and_start_date(self, store, clock):
        """New proposals start active at the current time."""
        proposal = store.create_proposal(
            1, 1, "t", "d", "creative", ["A", "B"], clock() + datetime.timedelta(days=1)
        )
        assert proposal.status == "active"
        assert proposal.start_date == clock()

    def test_revenue_defaults(self, store, clock):
        """Revenue starts undistributed and dated now unless a date is given."""
        revenue = store.create_revenue(1, Decimal("10"), "streaming")
        assert revenue.distributed is False
        assert revenue.date == clock()

        backdated = store.create_revenue(1, Decimal("10"), "streaming", date=datetime.datetime(2025, 1, 2))
        assert backdated.date == datetime.datetime(2025, 1, 2)

    def test_holding_purchase_date(self, store, clock):
        """Holdings are stamped with the purchase time."""
        holding = store.create_token_holding(1, 1, Decimal("10"), acquisition_ref="0xabc", method="crypto")
        assert holding.purchase_date == clock()


class TestLookups:
    """Lookups report absence with None."""

    def test_missing_entities_return_none(self, store):
        """Unknown ids never raise."""
        assert store.get_user(99) is None
        assert store.get_user_by_username("nobody") is None
        assert store.get_artist(99) is None
        assert store.get_artist_by_user_id(99) is None
        assert store.get_proposal(99) is None
        assert store.get_revenue(99) is None

    def test_update_missing_returns_none(self, store):
        """Mutations on unknown ids return None."""
        assert store.update_proposal_status(99, "closed") is None
        assert store.update_artist_contract_address(99, "0xdead") is None

    def test_users_by_ids_keeps_order_and_skips_missing(self, store):
        """Batch lookup returns known users in request order."""
        a = store.create_user("a", "hash")
        b = store.create_user("b", "hash")
        assert [u.id for u in store.get_users_by_ids([b.id, 42, a.id])] == [b.id, a.id]

    def test_foreign_keys_not_checked(self, store):
        """The store accepts dangling references; guards live in the services."""
        holding = store.create_token_holding(artist_id=77, user_id=88, amount=Decimal("1"))
        assert holding.id is not None

    def test_filters_by_foreign_key(self, store, clock):
        """Listings return only rows for the requested owner."""
        store.create_token_holding(1, 1, Decimal("5"))
        store.create_token_holding(1, 2, Decimal("6"))
        store.create_token_holding(2, 1, Decimal("7"))
        assert [h.amount for h in store.list_user_holdings(1)] == [Decimal("5"), Decimal("7")]
        assert [h.user_id for h in store.list_artist_holdings(1)] == [1, 2]

    def test_user_proposals_and_votes(self, store, clock):
        """Proposals are listed per creator and votes per voter."""
        end = clock() + datetime.timedelta(days=1)
        mine = store.create_proposal(1, 5, "t", "d", "creative", ["A", "B"], end)
        store.create_proposal(1, 6, "t", "d", "creative", ["A", "B"], end)
        vote = store.create_vote(mine.id, 5, 1, Decimal("2"))
        store.create_vote(mine.id, 6, 0, Decimal("3"))
        assert [p.id for p in store.list_user_proposals(5)] == [mine.id]
        assert [v.id for v in store.list_user_votes(5)] == [vote.id]


class TestHoldingAggregates:
    """Sums over holdings."""

    def test_sum_holdings(self, store):
        """Rows for the same pair add up; other pairs are ignored."""
        store.create_token_holding(1, 1, Decimal("100"))
        store.create_token_holding(1, 1, Decimal("50.5"))
        store.create_token_holding(1, 2, Decimal("999"))
        assert store.sum_holdings(1, 1) == Decimal("150.5")
        assert store.sum_holdings(1, 3) == Decimal("0")

    def test_holder_totals(self, store):
        """Totals are grouped by user."""
        store.create_token_holding(1, 2, Decimal("10"))
        store.create_token_holding(1, 1, Decimal("5"))
        store.create_token_holding(1, 2, Decimal("15"))
        assert store.holder_totals(1) == {1: Decimal("5"), 2: Decimal("25")}


class TestDistributedFlag:
    """The distributed flag flips exactly once."""

    def test_only_first_flip_wins(self, store):
        """A second flip reports that nothing changed."""
        revenue = store.create_revenue(1, Decimal("10"), "streaming")
        assert store.mark_revenue_distributed(revenue.id) is True
        assert store.mark_revenue_distributed(revenue.id) is False
        assert store.get_revenue(revenue.id).distributed is True

    def test_missing_event_not_flipped(self, store):
        """Unknown events cannot be flipped."""
        assert store.mark_revenue_distributed(404) is False

    def test_undistributed_listing(self, store):
        """Only events still waiting for distribution are listed."""
        done = store.create_revenue(1, Decimal("10"), "streaming")
        waiting = store.create_revenue(1, Decimal("20"), "licensing")
        other = store.create_revenue(2, Decimal("30"), "merchandise")
        store.mark_revenue_distributed(done.id)
        assert [r.id for r in store.list_undistributed_revenues()] == [waiting.id, other.id]
        assert [r.id for r in store.list_undistributed_revenues(artist_id=1)] == [waiting.id]


class TestEarnings:
    """Earning rows carry exactly one recipient kind."""

    def test_recipient_round_trip(self, store):
        """Each recipient variant is stored and read back as the same variant."""
        revenue = store.create_revenue(3, Decimal("10"), "streaming")
        artist_row = store.create_earning(revenue.id, 3, ArtistRecipient(artist_id=3), Decimal("6"))
        holder_row = store.create_earning(revenue.id, 3, TokenHolderRecipient(user_id=9), Decimal("3"))
        treasury_row = store.create_earning(revenue.id, 3, TreasuryRecipient(artist_id=3), Decimal("1"))

        assert artist_row.type == EarningType.ARTIST.value
        assert artist_row.recipient == ArtistRecipient(artist_id=3)
        assert holder_row.holder_user_id == 9
        assert holder_row.recipient == TokenHolderRecipient(user_id=9)
        assert treasury_row.holder_user_id is None
        assert treasury_row.recipient == TreasuryRecipient(artist_id=3)

        assert len(store.list_revenue_earnings(revenue.id)) == 3
        assert [e.id for e in store.list_user_earnings(9)] == [holder_row.id]
        assert [e.id for e in store.list_artist_earnings(3, earning_type="treasury")] == [treasury_row.id]


class TestExactAmounts:
    """Amounts read back with every stored digit."""

    LARGE = Decimal("987654321.87654321")

    def test_large_amounts_round_trip(self, store):
        """Revenue, vote weights, holdings and earnings keep eight places at full magnitude."""
        revenue = store.create_revenue(1, self.LARGE, "licensing")
        vote = store.create_vote(1, 1, 0, self.LARGE)
        store.create_token_holding(1, 1, self.LARGE)
        earning = store.create_earning(revenue.id, 1, TokenHolderRecipient(user_id=1), self.LARGE)
        store.session.expire_all()

        assert store.get_revenue(revenue.id).amount == self.LARGE
        assert store.list_proposal_votes(1)[0].weight == self.LARGE
        assert store.list_user_holdings(1)[0].amount == self.LARGE
        assert store.list_revenue_earnings(revenue.id)[0].amount == self.LARGE
        assert vote.id is not None
        assert earning.id is not None

    def test_sums_keep_every_digit(self, store):
        """Aggregates over large holdings are exact."""
        store.create_token_holding(1, 1, Decimal("123456789.12345678"))
        store.create_token_holding(1, 1, self.LARGE)
        store.create_token_holding(1, 2, Decimal("0.00000001"))
        assert store.sum_holdings(1, 1) == Decimal("1111111110.99999999")
        assert store.holder_totals(1) == {1: Decimal("1111111110.99999999"), 2: Decimal("0.00000001")}
