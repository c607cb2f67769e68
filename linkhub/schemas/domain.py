"""Domain request state and collaborator wire shapes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DomainStatus(str, Enum):
    """FSM states for a page's custom domain.

    none → pending → active | failed; failed → pending (retry);
    active → failed (administrative revocation).
    """

    NONE = "none"
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"


class ReservationType(str, Enum):
    BUY_NEW = "buy_new"
    CONNECT_OWN = "connect_own"


class DnsProbe(BaseModel):
    """Advisory DNS check result, cached for display only."""

    configured: bool
    message: str = ""
    addresses: Optional[list[str]] = None


class DomainRequest(BaseModel):
    id: str  # same as the owning page id
    requested_domain: Optional[str] = None
    reservation_type: Optional[ReservationType] = None
    status: DomainStatus = DomainStatus.NONE
    requested_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    notes: Optional[str] = None

    dns_probe: Optional[DnsProbe] = Field(default=None, exclude=True)


class SearchOutcome(str, Enum):
    RESERVED_BY_OTHER = "reserved_by_other"
    AVAILABLE = "available"
    TAKEN = "taken"
    CONNECTION_ERROR = "connection_error"


class AvailabilityEntry(BaseModel):
    name: str
    available: bool
    reserved: bool = False
    price: Optional[int] = None  # registrar micro-units
    currency: Optional[str] = None


class AvailabilityResponse(BaseModel):
    success: bool
    result: list[AvailabilityEntry] = []


class DomainSearchResult(BaseModel):
    """What the user sees after a search."""

    query: str
    domain: str
    suffix_added: bool = False
    outcome: SearchOutcome
    price: Optional[int] = None
    currency: Optional[str] = None
    display_price: Optional[str] = None
    message: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.outcome == SearchOutcome.CONNECTION_ERROR


class DomainRequestCounts(BaseModel):
    pending: int = 0
    active: int = 0
    failed: int = 0
    total: int = 0
