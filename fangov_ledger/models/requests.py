"""Input models validated at the service boundary"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from fangov_ledger.config import AMOUNT_SCALE, SHARE_SCALE
from fangov_ledger.models.ledger import AcquisitionMethod, ProposalStatus, ProposalType


class UserRegistration(BaseModel):
    """Fields a new account may be created with"""
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    is_artist: bool = False
    wallet_address: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator('username')
    @classmethod
    def username_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username must not be blank")
        return value


class ArtistOnboarding(BaseModel):
    """
    Artist profile and token configuration.

    Share percentages are checked individually here; whether they must total
    100 is a ledger policy applied by the accounts service.
    """
    user_id: int
    name: str = Field(min_length=1)
    genres: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    banner_image: Optional[str] = None
    token_name: str = Field(min_length=1)
    token_symbol: str = Field(pattern=r'^[A-Z0-9]{1,11}$', description="Short upper-case ticker")
    token_supply: int = Field(gt=0)
    artist_share_pct: Decimal = Field(ge=0, le=100, decimal_places=SHARE_SCALE)
    token_holder_share_pct: Decimal = Field(ge=0, le=100, decimal_places=SHARE_SCALE)
    treasury_share_pct: Decimal = Field(ge=0, le=100, decimal_places=SHARE_SCALE)
    contract_address: Optional[str] = None

    @property
    def share_total(self) -> Decimal:
        return self.artist_share_pct + self.token_holder_share_pct + self.treasury_share_pct


class TokenPurchase(BaseModel):
    """A confirmed purchase reported by the payment or wallet collaborator"""
    artist_id: int
    user_id: int
    amount: Decimal = Field(gt=0, decimal_places=AMOUNT_SCALE)
    acquisition_ref: Optional[str] = None
    method: Optional[AcquisitionMethod] = None


class ProposalDraft(BaseModel):
    artist_id: int
    creator_id: int
    title: str = Field(min_length=1)
    description: str = ""
    type: ProposalType
    options: List[str] = Field(min_length=2)
    end_date: datetime

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()

    @field_validator('options')
    @classmethod
    def options_distinct_labels(cls, options: List[str]) -> List[str]:
        labels = [option.strip() for option in options]
        if any(not label for label in labels):
            raise ValueError("options must not be empty")
        if len(set(labels)) != len(labels):
            raise ValueError("options must be distinct")
        return labels


class ProposalClosure(BaseModel):
    terminal_status: ProposalStatus

    @field_validator('terminal_status')
    @classmethod
    def must_be_terminal(cls, status: ProposalStatus) -> ProposalStatus:
        if not status.is_terminal:
            raise ValueError("terminal_status must be 'closed' or 'cancelled'")
        return status


class RevenueEntry(BaseModel):
    artist_id: int
    amount: Decimal = Field(gt=0, decimal_places=AMOUNT_SCALE)
    source: str = Field(min_length=1)
    date: Optional[datetime] = None

    @field_validator('source')
    @classmethod
    def source_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("source must not be blank")
        return value.strip()
