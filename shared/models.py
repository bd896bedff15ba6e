"""
Domain models for the fuel request workflow.

These models describe the records the lifecycle core reads and writes:
fuel requests, receipts, in-app notifications and the users they target.

Design decisions:
- Using Pydantic for validation and serialization
- Purchase facts are validated once on submission and never change afterwards
- Status is the only mutable field of a request
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict


# =============================================================================
# Enums - Status and role values used across the domain
# =============================================================================

class RequestStatus(str, Enum):
    """
    Fuel request lifecycle states.
    Pending is the only state with outgoing transitions.
    """
    PENDING = "Pending"           # Submitted, awaiting a manager decision
    APPROVED = "Approved"         # Manager approved the purchase
    REJECTED = "Rejected"         # Manager rejected the purchase

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class UserRole(str, Enum):
    """Roles as stored on user accounts."""
    DRIVER = "Driver"
    MANAGER = "Manager"
    FINANCE = "Finance"


class PushStatus(str, Enum):
    """What happened to the push half of a dispatch."""
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"           # Recipient has no push token


# =============================================================================
# Core Domain Models
# =============================================================================

class User(BaseModel):
    """
    User account as consumed by the lifecycle core.

    Accounts are owned by the identity service; we only read the role
    and the push token.
    """
    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Login / display name")
    email: Optional[str] = Field(default=None)
    role: UserRole = Field(..., description="Account role")
    push_token: Optional[str] = Field(
        default=None,
        description="Push delivery token; absent means in-app record only"
    )


class PurchaseFacts(BaseModel):
    """
    The purchase details a driver submits.

    Only the amounts are required. Every numeric value must be non-negative.
    """
    vehicle_name: Optional[str] = Field(default=None)
    vehicle_number: Optional[str] = Field(default=None)
    odometer: Optional[float] = Field(default=None, ge=0, description="Odometer reading")
    liters: float = Field(..., ge=0, description="Fuel volume purchased")
    rate: float = Field(..., ge=0, description="Price per liter")
    total: float = Field(..., ge=0, description="Amount paid")
    station: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    model_config = ConfigDict(frozen=True)


class FuelRequest(BaseModel):
    """
    A fuel purchase request.

    The request store owns these records. Everything except ``status``
    and ``updated_at`` is fixed at creation.
    """
    id: int = Field(..., description="Request identifier assigned by the store")
    driver_id: int = Field(..., description="Submitting driver")
    vehicle_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    odometer: Optional[float] = None
    liters: float = Field(..., ge=0)
    rate: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    station: Optional[str] = None
    notes: Optional[str] = None
    status: RequestStatus = Field(default=RequestStatus.PENDING)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default=None)

    @classmethod
    def from_facts(cls, request_id: int, driver_id: int, facts: PurchaseFacts) -> "FuelRequest":
        """Build a new Pending request from submitted facts."""
        return cls(id=request_id, driver_id=driver_id, **facts.model_dump())


class ReceiptInfo(BaseModel):
    """Receipt file reference supplied with a submission."""
    file_path: str = Field(..., min_length=1, description="Where the upload was stored")
    file_type: Optional[str] = Field(default=None, description="Media type of the file")


class Receipt(BaseModel):
    """Receipt linked to a request. At most one per request."""
    request_id: int
    driver_id: int
    file_path: str
    file_type: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Notification(BaseModel):
    """
    In-app notification record.

    One record is written per (event, recipient). ``is_read`` is flipped
    by the client-facing read acknowledgement, never by this core.
    """
    id: int
    user_id: int = Field(..., description="Recipient")
    title: str
    message: str
    is_read: bool = Field(default=False)
    data: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# Results
# =============================================================================

class DispatchOutcome(BaseModel):
    """
    Result of notifying one recipient.

    ``recorded`` reflects the durable write; ``push`` the best-effort half.
    """
    recipient_id: int
    recorded: bool
    notification_id: Optional[int] = None
    push: PushStatus = PushStatus.SKIPPED
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """Record written but the push did not go out."""
        return self.recorded and self.push != PushStatus.SENT


class ActionResult(BaseModel):
    """Response envelope returned for every triggering action."""
    success: bool
    message: str
    data: Optional[Any] = None
