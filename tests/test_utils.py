"""
Tests for errors, JSON encoding and the small utilities.
"""

import datetime
import json
from decimal import Decimal

import pytest

from fangov_ledger.errors import (
    InvalidStateError, InvalidTransitionError, LedgerError, NotFoundError, UnauthorizedError, ValidationError,
    parse_input
)
from fangov_ledger.models.ledger import EarningType, ShareProjection, Tally
from fangov_ledger.models.requests import RevenueEntry
from fangov_ledger.utils.clock import to_naive_utc, utc_now
from fangov_ledger.utils.json_encoder import json_dumps
from fangov_ledger.utils.locks import KeyedLocks


class TestErrors:
    """Tests for the error hierarchy."""

    @pytest.mark.parametrize("error,status", [
        (LedgerError, 500),
        (ValidationError, 400),
        (NotFoundError, 404),
        (InvalidStateError, 409),
        (InvalidTransitionError, 409),
        (UnauthorizedError, 403),
    ])
    def test_http_status(self, error, status):
        """Each failure kind maps to an HTTP status."""
        assert error.http_status == status
        assert issubclass(error, LedgerError)

    def test_parse_input_valid(self):
        """Valid input comes back as the model."""
        entry = parse_input(RevenueEntry, artist_id=1, amount="2.5", source=" streaming ")
        assert entry.amount == Decimal("2.5")
        assert entry.source == "streaming"

    def test_parse_input_invalid(self):
        """Pydantic failures become ledger validation errors naming the field."""
        with pytest.raises(ValidationError, match="Invalid RevenueEntry: amount") as info:
            parse_input(RevenueEntry, artist_id=1, amount=0, source="streaming")
        assert info.value.__cause__ is not None


class TestJsonEncoder:
    """Tests for json_dumps."""

    def test_decimal_exact_string(self):
        """Decimals are written as plain strings without trailing zeros."""
        assert json.loads(json_dumps({"a": Decimal("10.20000000"), "b": Decimal("100.00000000")})) == {
            "a": "10.2", "b": "100"
        }

    def test_datetime_and_enum(self):
        """Datetimes use ISO format and enums their value."""
        payload = {"at": datetime.datetime(2026, 3, 15, 12, 0), "type": EarningType.TOKEN_HOLDER}
        assert json.loads(json_dumps(payload)) == {"at": "2026-03-15T12:00:00", "type": "tokenHolder"}

    def test_nested_dataclasses(self):
        """Dataclasses are encoded field by field."""
        tally = Tally(per_option_weight=[Decimal("250"), Decimal("750")], per_option_percentage=[25, 75],
                      total_weight=Decimal("1000"))
        assert json.loads(json_dumps({"tally": tally, "share": ShareProjection(Decimal("60"), Decimal("37.14"))})) == {
            "tally": {"per_option_weight": ["250", "750"], "per_option_percentage": [25, 75], "total_weight": "1000"},
            "share": {"percentage": "60", "amount": "37.14"},
        }

    def test_unknown_type(self):
        """Other objects still fail loudly."""
        with pytest.raises(TypeError):
            json_dumps({"x": object()})


class TestClockAndLocks:
    """Tests for the clock helpers and keyed locks."""

    def test_utc_now_is_naive(self):
        assert utc_now().tzinfo is None

    def test_to_naive_utc(self):
        """Aware values are shifted to UTC, naive values pass through."""
        aware = datetime.datetime(2026, 3, 15, 14, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=2)))
        assert to_naive_utc(aware) == datetime.datetime(2026, 3, 15, 12, 0)
        naive = datetime.datetime(2026, 3, 15, 12, 0)
        assert to_naive_utc(naive) is naive

    def test_same_key_same_lock(self):
        """A key always maps to the same lock, different keys do not block each other."""
        locks = KeyedLocks()
        assert locks._lock_for(1) is locks._lock_for(1)
        with locks.hold(1):
            with locks.hold(2):
                assert locks._lock_for(1).locked()

    def test_one_entry_per_key(self):
        """Releasing a lock keeps its entry, repeated use of a key adds none."""
        locks = KeyedLocks()
        for _ in range(3):
            with locks.hold(7):
                pass
        with locks.hold(8):
            pass
        assert sorted(locks._locks) == [7, 8]
        assert not locks._lock_for(7).locked()
