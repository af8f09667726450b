"""
Digest organizer - turns a batch of scored messages into the daily brief.

Items are categorized, filtered, sorted and then bucketed into time
windows. Windows overlap on purpose: a message from this morning is listed
under both "morning" and "today".
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from priority_engine.config import settings
from priority_engine.features.priority_intelligence.domain.models import (
    TIER_WEIGHTS,
    BehaviorFilter,
    DigestItem,
    ScoredMessage,
    SortOrder,
    TimeGroup,
)
from priority_engine.features.priority_intelligence.pipeline.scoring.rules import (
    DEFAULT_RULES,
    ScoringRules,
)
from priority_engine.features.priority_intelligence.pipeline.scoring.service import (
    get_priority_label,
)
from priority_engine.infrastructure.observability.logging import get_logger

from .filters import apply_filters

logger = get_logger(__name__)

TITLE_PREVIEW_CHARS = 50


@dataclass(frozen=True, slots=True)
class TimeWindow:
    id: str
    label: str
    period: str


TIME_WINDOWS = (
    TimeWindow("morning", "Morning Focus", "6:00 AM - 12:00 PM"),
    TimeWindow("afternoon", "Afternoon Execution", "12:00 PM - 6:00 PM"),
    TimeWindow("evening", "Evening Review", "6:00 PM - 12:00 AM"),
    TimeWindow("today", "Today", "All day"),
    TimeWindow("yesterday", "Yesterday", "Previous day"),
    TimeWindow("week", "This Week", "Last 7 days"),
)


def resolve_timezone(name: str | None) -> tzinfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown digest timezone, falling back to UTC", timezone=name)
        return ZoneInfo("UTC")


def categorize(content: str, rules: ScoringRules = DEFAULT_RULES) -> str:
    # Order matters: strategic terms outrank operational ones.
    lowered = content.lower()
    for rule in rules.category_rules:
        if any(keyword.lower() in lowered for keyword in rule.keywords if keyword):
            return rule.category
    return rules.fallback_category


def requires_action(content: str, rules: ScoringRules = DEFAULT_RULES) -> bool:
    lowered = content.lower()
    return any(keyword.lower() in lowered for keyword in rules.action_keywords if keyword)


def is_urgent_text(text: str, rules: ScoringRules = DEFAULT_RULES) -> bool:
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in rules.urgent_item_keywords if keyword)


def summarize_text(content: str) -> str:
    """First two sentences longer than 10 characters; '...' when more follow."""
    sentences = [s.strip() for s in content.split(".") if len(s.strip()) > 10]
    summary = ". ".join(sentences[:2])
    return summary + ("..." if len(sentences) > 2 else "")


def summarize(items: Iterable[DigestItem]) -> dict[str, int]:
    items = list(items)
    return {
        "total": len(items),
        "critical": sum(1 for item in items if item.tier == "critical"),
        "vip": sum(1 for item in items if item.is_vip),
        "action_required": sum(1 for item in items if item.action_required),
        "unread": sum(1 for item in items if not item.read),
        "urgent": sum(1 for item in items if item.is_urgent),
    }


class DigestOrganizer:
    def __init__(
        self,
        rules: ScoringRules = DEFAULT_RULES,
        timezone: tzinfo | str | None = None,
        is_vip: Callable[[str], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.rules = rules
        if timezone is None or isinstance(timezone, str):
            timezone = resolve_timezone(timezone or settings.DIGEST_TIMEZONE)
        self.timezone = timezone
        self._is_vip = is_vip or self._pattern_vip
        self._clock = clock or (lambda: datetime.now(self.timezone))

    def _pattern_vip(self, sender: str) -> bool:
        lowered = sender.lower()
        return any(p and p.lower() in lowered for p in self.rules.vip_item_patterns)

    def localize(self, timestamp: datetime | None) -> datetime:
        # Naive timestamps are taken to be in the digest timezone.
        if timestamp is None:
            return datetime.fromtimestamp(0, self.timezone)
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=self.timezone)
        return timestamp.astimezone(self.timezone)

    def build_item(self, scored: ScoredMessage) -> DigestItem:
        message = scored.message
        content = f"{message.subject_text} {message.body_text}"
        if message.subject_text:
            title = message.subject_text
        elif message.body_text:
            title = message.body_text[:TITLE_PREVIEW_CHARS] + "..."
        else:
            title = "No Subject"

        return DigestItem(
            message=message,
            priority=scored.priority,
            tier=get_priority_label(scored.priority.score, self.rules),
            category=categorize(content, self.rules),
            is_vip=self._is_vip(message.sender.identity),
            action_required=requires_action(content, self.rules),
            is_urgent=is_urgent_text(message.headline, self.rules),
            title=title,
            sender_label=message.sender.label or "Unknown",
            summary=summarize_text(message.body_text),
            timestamp=self.localize(message.timestamp),
        )

    def build_items(self, scored_messages: Iterable[ScoredMessage]) -> list[DigestItem]:
        return [self.build_item(scored) for scored in scored_messages]

    def sort(self, items: list[DigestItem], sort_order: SortOrder = "time") -> list[DigestItem]:
        if sort_order == "priority":
            return sorted(
                items,
                key=lambda i: (-TIER_WEIGHTS.get(i.tier, 0), -i.timestamp.timestamp(), i.id),
            )
        if sort_order == "sender":
            return sorted(
                items,
                key=lambda i: (i.sender_label.casefold(), -i.timestamp.timestamp(), i.id),
            )
        return sorted(items, key=lambda i: (-i.timestamp.timestamp(), i.id))

    def group(self, items: Iterable[DigestItem], now: datetime | None = None) -> list[TimeGroup]:
        now = self.localize(now or self._clock())
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        yesterday = today - timedelta(days=1)
        week = today - timedelta(days=7)

        groups = {
            window.id: TimeGroup(id=window.id, label=window.label, period=window.period)
            for window in TIME_WINDOWS
        }
        for item in items:
            ts = item.timestamp
            if ts >= today:
                groups["today"].items.append(item)
                if 6 <= ts.hour < 12:
                    groups["morning"].items.append(item)
                elif 12 <= ts.hour < 18:
                    groups["afternoon"].items.append(item)
                elif ts.hour >= 18:
                    groups["evening"].items.append(item)
            elif ts >= yesterday:
                groups["yesterday"].items.append(item)
            elif ts >= week:
                groups["week"].items.append(item)

        return [groups[window.id] for window in TIME_WINDOWS if groups[window.id].items]

    def organize(
        self,
        scored_messages: Iterable[ScoredMessage],
        filters: Iterable[BehaviorFilter] | Mapping[str, bool] | None = None,
        sort_order: SortOrder = "time",
        category: str | None = None,
        now: datetime | None = None,
    ) -> list[TimeGroup]:
        """
        Build the grouped digest view.

        Args:
            scored_messages: Messages paired with their PriorityScore
            filters: Behavior filters (vip/urgent/unread); inactive ones are ignored
            sort_order: "time" (newest first), "priority" or "sender"
            category: Optional category to keep (strategic/urgent/operational/informational)
            now: Reference time for the day boundaries (defaults to the clock)

        Returns:
            Non-empty TimeGroups in display order
        """
        items = self.build_items(scored_messages)
        if category:
            items = [item for item in items if item.category == category]
        items = apply_filters(items, filters)
        items = self.sort(items, sort_order)
        groups = self.group(items, now=now)
        logger.debug(
            "Digest organized",
            items=len(items),
            groups=[g.id for g in groups],
            sort_order=sort_order,
        )
        return groups
