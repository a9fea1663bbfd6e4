"""
Data schemas for the solar support portal.

Each entity model is stored as one element of a JSON collection in the
persistent store (see database.py):
- User -> users
- Tutorial -> tutorials
- Ticket -> tickets
- ExpressionOfInterest -> expressions_of_interest
- Notification -> notifications

Stored and wire field names are camelCase (customerId, isRead, ...);
attributes are snake_case.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

UserRole = Literal["customer", "admin"]
Sender = Literal["customer", "admin"]
TicketStatus = Literal["Open", "In Progress", "Closed"]
EnquiryStatus = Literal["pending", "approved", "rejected"]
NotificationType = Literal["ticket", "eoi", "document", "general"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class PortalModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Plain JSON-ready dict with camelCase keys, as persisted."""
        return self.model_dump(mode="json", by_alias=True)


class RequestModel(PortalModel):
    """Request bodies: unknown fields are rejected, blanks are stripped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


# ---------- Entities ----------

class System(PortalModel):
    capacity: float = Field(0, ge=0, description="Installed capacity in kW")
    inverter_details: str = ""
    inverter_serial_number: str = ""
    commissioning_date: Optional[datetime] = None

    @field_validator("commissioning_date", mode="before")
    @classmethod
    def _blank_date(cls, value: Any) -> Any:
        # admins are stored with an empty commissioning date
        if value == "":
            return None
        return value


class Document(PortalModel):
    id: str = Field(default_factory=lambda: new_id("doc"))
    name: str
    url: str = Field(..., description="Data URL or link to the file")
    uploaded_at: datetime = Field(default_factory=utcnow)


class User(PortalModel):
    id: str
    role: UserRole = "customer"
    full_name: str
    nic_number: str = ""
    contact_number: str = ""
    email: EmailStr
    password_hash: Optional[str] = Field(None, description="salt$sha256 digest")
    address: str = ""
    installed_by: str = ""
    file_number: str = ""
    system: System = Field(default_factory=System)
    documents: List[Document] = Field(default_factory=list)

    def public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"password_hash"})


class Tutorial(PortalModel):
    id: str = Field(default_factory=lambda: new_id("tut"))
    title: str
    youtube_url: str
    created_at: datetime = Field(default_factory=utcnow)


class TicketMessage(PortalModel):
    id: str
    sender: Sender
    text: str
    timestamp: datetime


class Ticket(PortalModel):
    id: str
    customer_id: str
    customer_name: str
    subject: str
    status: TicketStatus = "Open"
    created_at: datetime
    messages: List[TicketMessage] = Field(default_factory=list)
    complaint_type: str
    photo_urls: List[str] = Field(default_factory=list)


class ExpressionOfInterest(PortalModel):
    id: str
    name: str
    email: EmailStr
    phone: str
    submitted_at: datetime
    status: EnquiryStatus = "pending"


class Notification(PortalModel):
    id: str
    user_id: str
    message: str
    type: NotificationType = "general"
    related_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime


class WarrantyItem(PortalModel):
    name: str
    total_duration_years: int
    description: Optional[str] = None


class Toast(PortalModel):
    """Transient user-facing message. Never persisted."""

    id: str = Field(default_factory=lambda: new_id("toast"))
    message: str
    type: NotificationType = "general"
    level: Literal["info", "error"] = "info"


# ---------- Requests ----------

class UserCreate(RequestModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    contact_number: str = ""
    password: Optional[str] = None
    nic_number: str = ""
    address: str = ""
    installed_by: str = ""
    file_number: str = ""
    system: System = Field(default_factory=System)


class UserUpdate(RequestModel):
    full_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    contact_number: Optional[str] = None
    password: Optional[str] = Field(None, min_length=1)
    nic_number: Optional[str] = None
    address: Optional[str] = None
    installed_by: Optional[str] = None
    file_number: Optional[str] = None
    system: Optional[System] = None


class TicketCreate(RequestModel):
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    complaint_type: str = Field(..., min_length=1)
    photo_urls: List[str] = Field(default_factory=list)


class TicketMessageCreate(RequestModel):
    text: str = Field(..., min_length=1)
    sender: Sender = "customer"


class TicketStatusUpdate(RequestModel):
    status: TicketStatus


class DocumentCreate(RequestModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class EnquiryCreate(RequestModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)


class LoginRequest(RequestModel):
    email: EmailStr
    password: str
