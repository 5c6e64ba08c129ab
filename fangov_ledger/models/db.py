"""SQLAlchemy database models for the governance and revenue ledger"""
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, BigInteger, JSON, Numeric, String, Text
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from fangov_ledger.config import AMOUNT_SCALE, SHARE_SCALE
from fangov_ledger.models.ledger import (
    ArtistRecipient, EarningType, ProposalStatus, Recipient, TokenHolderRecipient, TreasuryRecipient
)

Base = declarative_base()


class ExactDecimal(TypeDecorator):
    """
    Fixed-scale decimal that round-trips exactly on every backend.

    Native NUMERIC where the dialect has one. SQLite has no decimal storage and
    would pass values through float, so there the canonical string is stored.
    """
    impl = Numeric
    cache_ok = True

    def __init__(self, precision: int, scale: int):
        super().__init__(precision, scale, asdecimal=True)
        self.quantum = Decimal(1).scaleb(-scale)

    def load_dialect_impl(self, dialect):
        if dialect.name == 'sqlite':
            return dialect.type_descriptor(String())
        return dialect.type_descriptor(Numeric(self.impl.precision, self.impl.scale, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = (value if isinstance(value, Decimal) else Decimal(str(value))).quantize(self.quantum)
        return format(value, 'f') if dialect.name == 'sqlite' else value

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, Decimal):
            return value
        return Decimal(value)


# Token amounts and currency amounts share one exact decimal representation
Amount = ExactDecimal(28, AMOUNT_SCALE)
SharePct = ExactDecimal(5, SHARE_SCALE)

class User(Base):
    """
    A registered account. Identity is fixed at registration; only the
    profile fields (wallet, bio, image) may change later.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_artist = Column(Boolean, nullable=False, default=False)
    wallet_address = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_image = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False)

class Artist(Base):
    """
    Governance unit: one per user, issuing a fixed-supply token and
    splitting revenue between artist, token holders and treasury.
    """
    __tablename__ = 'artists'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    genres = Column(JSON, nullable=False, default=list)
    location = Column(String, nullable=True)
    banner_image = Column(String, nullable=True)
    token_name = Column(String, nullable=False)
    token_symbol = Column(String, nullable=False)
    token_supply = Column(BigInteger, nullable=False)
    artist_share_pct = Column(SharePct, nullable=False)
    token_holder_share_pct = Column(SharePct, nullable=False)
    treasury_share_pct = Column(SharePct, nullable=False)
    contract_address = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint('token_supply > 0', name='ck_artists_supply_positive'),
    )

class TokenHolding(Base):
    """
    One confirmed purchase. Several rows may exist per (artist, user);
    the holding is their sum. Rows are never updated.
    """
    __tablename__ = 'token_holdings'

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    amount = Column(Amount, nullable=False)
    acquisition_ref = Column(String, nullable=True)  # tx hash or payment session id
    method = Column(String, nullable=True)
    purchase_date = Column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_token_holdings_amount_positive'),
    )

class Proposal(Base):
    """Governance item voted on by an artist's token holders"""
    __tablename__ = 'proposals'

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String, nullable=False)
    options = Column(JSON, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=ProposalStatus.ACTIVE.value, index=True)

class Vote(Base):
    """A weighted vote; weight is the voter's holding when the vote was cast"""
    __tablename__ = 'votes'

    id = Column(Integer, primary_key=True)
    proposal_id = Column(Integer, ForeignKey('proposals.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    option_index = Column(Integer, nullable=False)
    weight = Column(Amount, nullable=False)
    timestamp = Column(DateTime, nullable=False)

    # Replaced votes are deleted; ids must still never be reused
    __table_args__ = {'sqlite_autoincrement': True}

class RevenueEvent(Base):
    """Recognized revenue for an artist, distributed at most once"""
    __tablename__ = 'revenues'

    id = Column(Integer, primary_key=True)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False, index=True)
    amount = Column(Amount, nullable=False)
    source = Column(String, nullable=False)
    date = Column(DateTime, nullable=True)
    distributed = Column(Boolean, nullable=False, default=False, index=True)

class Earning(Base):
    """
    Write-once distribution output. ``artist_id`` is always the artist whose
    revenue produced it; ``holder_user_id`` is set only for token-holder earnings.
    """
    __tablename__ = 'earnings'

    id = Column(Integer, primary_key=True)
    revenue_id = Column(Integer, ForeignKey('revenues.id'), nullable=False, index=True)
    artist_id = Column(Integer, ForeignKey('artists.id'), nullable=False, index=True)
    type = Column(String, nullable=False)
    holder_user_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    amount = Column(Amount, nullable=False)
    date = Column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(type = 'tokenHolder' AND holder_user_id IS NOT NULL) OR "
            "(type IN ('artist', 'treasury') AND holder_user_id IS NULL)",
            name='ck_earnings_recipient'
        ),
    )

    @property
    def recipient(self) -> Recipient:
        if self.type == EarningType.TOKEN_HOLDER.value:
            return TokenHolderRecipient(user_id=self.holder_user_id)
        if self.type == EarningType.ARTIST.value:
            return ArtistRecipient(artist_id=self.artist_id)
        return TreasuryRecipient(artist_id=self.artist_id)
