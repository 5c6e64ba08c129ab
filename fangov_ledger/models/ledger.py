"""Domain types for governance and revenue accounting"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, NewType, Optional, Union

if TYPE_CHECKING:
    from fangov_ledger.models.db import Earning

UserId = NewType('UserId', int)
ArtistId = NewType('ArtistId', int)
ProposalId = NewType('ProposalId', int)
RevenueId = NewType('RevenueId', int)


class ProposalStatus(str, Enum):
    ACTIVE = 'active'
    CLOSED = 'closed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self is not ProposalStatus.ACTIVE


class ProposalType(str, Enum):
    CREATIVE = 'creative'
    BUSINESS = 'business'
    RELEASE = 'release'
    PARTNERSHIP = 'partnership'
    TREASURY = 'treasury'


class AcquisitionMethod(str, Enum):
    """How a holding was paid for"""
    CRYPTO = 'crypto'  # acquisition_ref is an on-chain tx hash
    USD = 'usd'        # acquisition_ref is a payment session id


class EarningType(str, Enum):
    ARTIST = 'artist'
    TOKEN_HOLDER = 'tokenHolder'
    TREASURY = 'treasury'


@dataclass(frozen=True)
class ArtistRecipient:
    """The artist's own share of a revenue event"""
    artist_id: ArtistId
    kind = EarningType.ARTIST


@dataclass(frozen=True)
class TokenHolderRecipient:
    """A fan's pro rata share of the token-holder pool"""
    user_id: UserId
    kind = EarningType.TOKEN_HOLDER


@dataclass(frozen=True)
class TreasuryRecipient:
    """The artist treasury"""
    artist_id: ArtistId
    kind = EarningType.TREASURY


Recipient = Union[ArtistRecipient, TokenHolderRecipient, TreasuryRecipient]


@dataclass
class Tally:
    """Weighted vote totals for one proposal"""
    per_option_weight: List[Decimal]
    per_option_percentage: List[int]
    total_weight: Decimal


@dataclass
class ProposalView:
    """A proposal together with its artist labels and current tally"""
    proposal_id: int
    artist_id: int
    artist_name: str
    token_symbol: str
    title: str
    description: str
    type: str
    status: str
    start_date: datetime
    end_date: datetime
    votable: bool
    options: List[str]
    tally: Tally


@dataclass
class DistributionResult:
    """Earnings written for one revenue event.

    ``unallocated`` is the part of the event amount no Earning row was written
    for: the token-holder pool share of unissued supply plus rounding dust.
    """
    revenue_id: int
    amount: Decimal
    artist_earning: 'Earning'
    treasury_earning: 'Earning'
    token_holder_earnings: List['Earning'] = field(default_factory=list)
    unallocated: Decimal = Decimal('0')

    @property
    def token_holder_total(self) -> Decimal:
        return sum((earning.amount for earning in self.token_holder_earnings), Decimal('0'))

    @property
    def allocated(self) -> Decimal:
        return self.artist_earning.amount + self.treasury_earning.amount + self.token_holder_total


@dataclass
class ShareProjection:
    percentage: Decimal
    amount: Decimal


@dataclass
class RevenueSummary:
    """Month-by-month revenue for an artist with the share projection over the total"""
    artist_id: int
    artist_name: str
    total: Decimal
    last_month: Decimal
    monthly: Dict[str, Decimal]
    distribution: Dict[str, ShareProjection]


@dataclass
class PortfolioEntry:
    """A user's aggregate position in one artist's token"""
    artist_id: int
    artist_name: str
    token_name: str
    token_symbol: str
    amount: Decimal
    ownership_pct: Decimal
    first_purchase: Optional[datetime] = None


@dataclass
class ArtistView:
    """
    An artist profile joined with the owning user's public fields.

    ``token_distribution`` is the number of holding rows and is only filled in
    by the single-artist profile.
    """
    artist_id: int
    user_id: int
    name: str
    genres: List[str]
    location: Optional[str]
    banner_image: Optional[str]
    token_name: str
    token_symbol: str
    token_supply: int
    artist_share_pct: Decimal
    token_holder_share_pct: Decimal
    treasury_share_pct: Decimal
    contract_address: Optional[str]
    username: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    wallet_address: Optional[str] = None
    token_distribution: Optional[int] = None
