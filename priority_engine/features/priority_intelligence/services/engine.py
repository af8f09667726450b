"""
Priority engine - the per-session entry point used by the presentation layer.

One engine is built per request or session for a single account. It owns
that account's VIP registry and behavior store and hands the scorer an
explicit ScoringContext instead of relying on module-level state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from priority_engine.features.priority_intelligence.domain.models import (
    BehaviorFilter,
    Message,
    PriorityScore,
    PriorityTier,
    RegistryWriteResult,
    ScoredMessage,
    SortOrder,
    TimeGroup,
    VIPContact,
)
from priority_engine.features.priority_intelligence.pipeline.digest import (
    DigestOrganizer,
    summarize,
)
from priority_engine.features.priority_intelligence.pipeline.scoring import (
    PriorityScorer,
    ScoringContext,
    ScoringRules,
    get_priority_label,
    get_scoring_rules,
)
from priority_engine.features.priority_intelligence.repository import (
    BehaviorRepository,
    KeyValueClient,
    VipContactRepository,
)
from priority_engine.infrastructure.observability.logging import get_logger

from .behavior_store import BehaviorStore
from .vip_registry import VipRegistry

logger = get_logger(__name__)


class PriorityEngine:
    def __init__(
        self,
        registry: VipRegistry,
        behavior: BehaviorStore,
        rules: ScoringRules | None = None,
        organizer: DigestOrganizer | None = None,
        scorer: PriorityScorer | None = None,
    ):
        self.rules = rules or registry.rules
        self.registry = registry
        self.behavior = behavior
        self.scorer = scorer or PriorityScorer()
        self.organizer = organizer or DigestOrganizer(rules=self.rules, is_vip=registry.is_vip)

    @classmethod
    async def for_user(
        cls,
        user_id: str,
        client: KeyValueClient | None = None,
        rules: ScoringRules | None = None,
        timezone: str | None = None,
    ) -> PriorityEngine:
        """Build an engine with the account's registry and behavior data loaded."""
        rules = rules or get_scoring_rules()
        registry = VipRegistry(user_id, VipContactRepository(client), rules=rules)
        behavior = BehaviorStore(user_id, BehaviorRepository(client))
        await registry.load()
        await behavior.load()
        organizer = DigestOrganizer(rules=rules, timezone=timezone, is_vip=registry.is_vip)
        logger.debug(
            "Priority engine ready",
            user_id=user_id,
            vip_contacts=len(registry.snapshot()),
            behavior_contacts=len(behavior),
        )
        return cls(registry, behavior, rules=rules, organizer=organizer)

    @property
    def user_id(self) -> str:
        return self.registry.user_id

    def context(self) -> ScoringContext:
        return ScoringContext(rules=self.rules, vips=self.registry, behavior=self.behavior)

    # -- scoring -----------------------------------------------------------

    def score_item(self, message: Message) -> PriorityScore:
        return self.scorer.score(message, self.context())

    def score_batch(self, messages: Iterable[Message]) -> list[ScoredMessage]:
        context = self.context()
        return [ScoredMessage(message=m, priority=self.scorer.score(m, context)) for m in messages]

    def get_priority_label(self, score: float) -> PriorityTier:
        return get_priority_label(score, self.rules)

    # -- digest ------------------------------------------------------------

    def organize_digest(
        self,
        messages: Iterable[Message],
        filters: Iterable[BehaviorFilter] | Mapping[str, bool] | None = None,
        sort_order: SortOrder = "time",
        category: str | None = None,
        now: datetime | None = None,
    ) -> list[TimeGroup]:
        return self.organizer.organize(
            self.score_batch(messages),
            filters=filters,
            sort_order=sort_order,
            category=category,
            now=now,
        )

    def digest_summary(self, groups: Iterable[TimeGroup]) -> dict[str, int]:
        # Sub-period groups overlap with "today"; count each message once.
        unique = {item.id: item for group in groups for item in group.items}
        return summarize(unique.values())

    # -- VIP registry ------------------------------------------------------

    def list_vip_contacts(self) -> list[VIPContact]:
        return self.registry.list()

    async def upsert_vip_contact(self, contact: VIPContact | dict[str, Any]) -> RegistryWriteResult:
        return await self.registry.upsert(contact)

    async def remove_vip_contact(self, contact_id: str) -> RegistryWriteResult:
        return await self.registry.remove(contact_id)

    def detect_vip_candidates(self, senders: Iterable[str]) -> list[str]:
        return self.registry.detect_candidates(senders)

    # -- behavior ----------------------------------------------------------

    async def update_behavior_data(self, contact: str, partial: dict[str, Any]) -> RegistryWriteResult:
        return await self.behavior.update_behavior_data(contact, partial)
