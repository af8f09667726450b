"""
Domain models for the priority intelligence feature.

Messages, scores and digest items are lightweight dataclasses produced and
consumed in-process. VIP contacts are pydantic models because they
round-trip through the key-value store and need validation on the way in.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Source = Literal["email", "chat"]
Relationship = Literal[
    "direct_report", "manager", "peer", "external", "board", "investor", "client"
]
PriorityTier = Literal["critical", "high", "medium", "low"]
Category = Literal["strategic", "urgent", "operational", "informational"]
SortOrder = Literal["time", "priority", "sender"]
FilterId = Literal["vip", "urgent", "unread"]

FACTOR_NAMES = ("sender", "keywords", "urgency", "vip", "engagement")
TIER_WEIGHTS: dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}

IMPORTANCE_MIN = 1
IMPORTANCE_MAX = 100


@dataclass(frozen=True, slots=True)
class Sender:
    """Who sent a message: an address/handle plus an optional display name."""

    address: str | None = None
    name: str | None = None

    @property
    def identity(self) -> str:
        """Full sender string used for substring matching, e.g. 'Ann <ann@x.com>'."""
        address = self.address or ""
        name = self.name or ""
        if name and address:
            return f"{name} <{address}>"
        return name or address

    @property
    def label(self) -> str:
        return self.name or self.address or ""

    @property
    def domain(self) -> str:
        address = self.address or ""
        if "@" not in address:
            return ""
        return address.rsplit("@", 1)[1].strip().strip(">").lower()

    @property
    def key(self) -> str:
        """Behavior-store key for this sender."""
        return (self.address or self.name or "").strip().lower()


@dataclass(frozen=True, slots=True)
class Message:
    """Immutable inbound communication owned by an external connector."""

    id: str
    source: Source = "email"
    sender: Sender = field(default_factory=Sender)
    subject: str | None = None
    body: str | None = None
    timestamp: datetime | None = None
    channel: str | None = None
    read: bool = False
    priority_hint: str | None = None

    @property
    def is_chat(self) -> bool:
        return self.source == "chat"

    @property
    def subject_text(self) -> str:
        return self.subject or ""

    @property
    def body_text(self) -> str:
        return self.body or ""

    @property
    def content(self) -> str:
        """Lower-cased subject and body joined for keyword matching."""
        return f"{self.subject_text} {self.body_text}".lower()

    @property
    def headline(self) -> str:
        """Subject for email, message text for chat."""
        return self.subject_text or self.body_text


@dataclass(slots=True)
class BehaviorRecord:
    """Engagement history for a single contact key."""

    replies: int = 0
    opens: int = 0
    average_response_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "replies": self.replies,
            "opens": self.opens,
            "average_response_seconds": self.average_response_seconds,
        }


class VIPContact(BaseModel):
    """A contact the user marked (or accepted) as important."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    email: str = ""
    display_name: str = ""
    importance: int = 80
    relationship: Relationship = "peer"
    department: str | None = None
    notes: str | None = None
    last_contact: datetime | None = None
    response_time_hours: float = 0.0
    interaction_score: float = 0.0

    @field_validator("importance", mode="before")
    @classmethod
    def _clamp_importance(cls, value: Any) -> int:
        # Out-of-range importance is clamped, never rejected.
        try:
            numeric = int(round(float(value)))
        except (TypeError, ValueError):
            return 80
        return max(IMPORTANCE_MIN, min(IMPORTANCE_MAX, numeric))

    @field_validator("email", "display_name", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    def match_patterns(self) -> list[str]:
        """Lower-cased non-empty strings this contact matches senders against."""
        return [p.lower() for p in (self.email, self.display_name) if p]


@dataclass(frozen=True, slots=True)
class PriorityScore:
    score: int
    confidence: int
    factors: dict[str, int]
    explanation: str


@dataclass(frozen=True, slots=True)
class ScoredMessage:
    message: Message
    priority: PriorityScore


@dataclass(slots=True)
class DigestItem:
    """A message plus everything derived for it in one scoring pass."""

    message: Message
    priority: PriorityScore
    tier: PriorityTier
    category: Category
    is_vip: bool
    action_required: bool
    is_urgent: bool
    title: str
    sender_label: str
    summary: str
    timestamp: datetime

    @property
    def id(self) -> str:
        return self.message.id

    @property
    def read(self) -> bool:
        return self.message.read


@dataclass(slots=True)
class TimeGroup:
    id: str
    label: str
    period: str
    items: list[DigestItem] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BehaviorFilter:
    id: FilterId
    active: bool = False


@dataclass(slots=True)
class RegistryWriteResult:
    """Outcome of a write-through mutation; persistence failures are warnings."""

    contact: VIPContact | None
    persisted: bool
    warning: str | None = None
    removed: bool = False
