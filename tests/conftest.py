"""
Shared fixtures for the ledger test suite.

Every test gets its own in-memory ledger and a clock it can move forward.
"""

import datetime
from dataclasses import dataclass

import pytest

from fangov_ledger.config import Settings
from fangov_ledger.db import Database
from fangov_ledger.engine import GovernanceEngine
from fangov_ledger.services.storage import LedgerStore


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime.datetime):
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> datetime.datetime:
        self.now = self.now + datetime.timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(datetime.datetime(2026, 3, 15, 12, 0, 0))


def make_settings(**overrides) -> Settings:
    values = {'LEDGER_BACKEND': 'memory', 'DATABASE_URL': None, 'PASSWORD_HASH_METHOD': 'pbkdf2:sha256:1000'}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def database(settings):
    db = Database(settings)
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def engine(database, settings, clock):
    return GovernanceEngine(database, settings, clock=clock)


@pytest.fixture
def make_engine(clock):
    """Factory for engines running with non-default settings."""
    databases = []

    def factory(**overrides) -> GovernanceEngine:
        custom = make_settings(**overrides)
        db = Database(custom)
        db.init()
        databases.append(db)
        return GovernanceEngine(db, custom, clock=clock)

    yield factory
    for db in databases:
        db.dispose()


@pytest.fixture
def store(database, clock):
    """A store bound to one open session; committed when the test ends."""
    with database.session() as session:
        yield LedgerStore(session, clock=clock)


@dataclass
class Ledger:
    artist_user_id: int
    artist_id: int
    fan1_id: int
    fan2_id: int
    outsider_id: int


@pytest.fixture
def ledger(engine):
    """Aurora (1,000,000 supply, 60/30/10) with fans holding 250 and 750 tokens."""
    owner = engine.register_user("aurora_artist", "secret")
    artist = engine.onboard_artist(
        owner.id,
        name="Aurora",
        genres=["Electronic", "Indie Pop"],
        token_name="AuroraShares",
        token_symbol="AURORA",
        token_supply=1_000_000,
        artist_share_pct=60,
        token_holder_share_pct=30,
        treasury_share_pct=10,
    )
    fan1 = engine.register_user("fan_one", "secret")
    fan2 = engine.register_user("fan_two", "secret")
    outsider = engine.register_user("outsider", "secret")
    engine.confirm_token_purchase(artist.id, fan1.id, 250, acquisition_ref="tx-1", method="crypto")
    engine.confirm_token_purchase(artist.id, fan2.id, 750, acquisition_ref="cs_2", method="usd")
    return Ledger(
        artist_user_id=owner.id,
        artist_id=artist.id,
        fan1_id=fan1.id,
        fan2_id=fan2.id,
        outsider_id=outsider.id,
    )


@pytest.fixture
def proposal(engine, ledger, clock):
    """An open two-option proposal ending in three days."""
    return engine.create_proposal(
        ledger.artist_id,
        ledger.artist_user_id,
        title="Album Concept Direction",
        description="Pick the sound of the next record",
        type="creative",
        options=["A", "B"],
        end_date=clock() + datetime.timedelta(days=3),
    )
