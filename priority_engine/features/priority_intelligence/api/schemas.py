"""
Request/response models for the priority intelligence routes.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from priority_engine.features.priority_intelligence.domain.models import (
    BehaviorFilter,
    DigestItem,
    Message,
    PriorityScore,
    RegistryWriteResult,
    Sender,
    TimeGroup,
    VIPContact,
)


class MessagePayload(BaseModel):
    """Inbound message as produced by a mailbox or chat connector."""

    id: str = Field(..., min_length=1)
    source: Literal["email", "chat"] = "email"
    sender_address: str | None = Field(default=None, description="Email address or chat handle")
    sender_name: str | None = None
    subject: str | None = None
    body: str | None = None
    timestamp: datetime | None = None
    channel: str | None = None
    read: bool = False
    priority_hint: str | None = None

    def to_message(self) -> Message:
        return Message(
            id=self.id,
            source=self.source,
            sender=Sender(address=self.sender_address, name=self.sender_name),
            subject=self.subject,
            body=self.body,
            timestamp=self.timestamp,
            channel=self.channel,
            read=self.read,
            priority_hint=self.priority_hint,
        )


class PriorityScoreResponse(BaseModel):
    score: int
    confidence: int
    factors: dict[str, int]
    explanation: str
    label: Literal["critical", "high", "medium", "low"]

    @classmethod
    def from_score(cls, score: PriorityScore, label: str) -> "PriorityScoreResponse":
        return cls(
            score=score.score,
            confidence=score.confidence,
            factors=score.factors,
            explanation=score.explanation,
            label=label,
        )


class FilterPayload(BaseModel):
    id: Literal["vip", "urgent", "unread"]
    active: bool = False

    def to_filter(self) -> BehaviorFilter:
        return BehaviorFilter(id=self.id, active=self.active)


class DigestRequest(BaseModel):
    messages: list[MessagePayload] = Field(default_factory=list, max_length=1000)
    filters: list[FilterPayload] | None = Field(
        default=None, description="Omit for the default view (unread only)"
    )
    sort: Literal["time", "priority", "sender"] = "time"
    category: Literal["strategic", "urgent", "operational", "informational"] | None = None
    now: datetime | None = Field(default=None, description="Reference time (defaults to server clock)")


class DigestItemResponse(BaseModel):
    id: str
    source: str
    title: str
    sender: str
    summary: str
    timestamp: datetime | None
    read: bool
    priority: Literal["critical", "high", "medium", "low"]
    score: int
    confidence: int
    explanation: str
    category: str
    is_vip: bool
    action_required: bool

    @classmethod
    def from_item(cls, item: DigestItem) -> "DigestItemResponse":
        return cls(
            id=item.id,
            source=item.message.source,
            title=item.title,
            sender=item.sender_label,
            summary=item.summary,
            timestamp=item.message.timestamp,
            read=item.read,
            priority=item.tier,
            score=item.priority.score,
            confidence=item.priority.confidence,
            explanation=item.priority.explanation,
            category=item.category,
            is_vip=item.is_vip,
            action_required=item.action_required,
        )


class TimeGroupResponse(BaseModel):
    id: str
    label: str
    period: str
    items: list[DigestItemResponse]

    @classmethod
    def from_group(cls, group: TimeGroup) -> "TimeGroupResponse":
        return cls(
            id=group.id,
            label=group.label,
            period=group.period,
            items=[DigestItemResponse.from_item(item) for item in group.items],
        )


class DigestResponse(BaseModel):
    groups: list[TimeGroupResponse]
    summary: dict[str, int]


class VipContactRequest(BaseModel):
    """Create (no id) or edit (existing id) a VIP contact."""

    id: str | None = None
    email: str = Field(default="", max_length=320)
    display_name: str = Field(default="", max_length=200)
    importance: int = 80
    relationship: Literal[
        "direct_report", "manager", "peer", "external", "board", "investor", "client"
    ] = "peer"
    department: str | None = None
    notes: str | None = None

    def to_contact(self) -> VIPContact:
        # Only the fields the client sent; upsert merges them over a stored contact.
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        return VIPContact.model_validate(data)


class VipMutationResponse(BaseModel):
    contact: VIPContact | None
    persisted: bool
    warning: str | None = None
    removed: bool = False

    @classmethod
    def from_result(cls, result: RegistryWriteResult) -> "VipMutationResponse":
        return cls(
            contact=result.contact,
            persisted=result.persisted,
            warning=result.warning,
            removed=result.removed,
        )


class VipListResponse(BaseModel):
    contacts: list[VIPContact]
    breakdown: dict[str, int]


class CandidateRequest(BaseModel):
    senders: list[str] = Field(default_factory=list, max_length=5000)


class CandidateResponse(BaseModel):
    candidates: list[str]
    drafts: list[VIPContact]


class BehaviorUpdateRequest(BaseModel):
    replies: int | None = Field(default=None, ge=0)
    opens: int | None = Field(default=None, ge=0)
    average_response_seconds: float | None = Field(default=None, ge=0)


class BehaviorUpdateResponse(BaseModel):
    contact: str
    persisted: bool
    warning: str | None = None
