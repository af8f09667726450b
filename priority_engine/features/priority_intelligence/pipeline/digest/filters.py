"""
Behavioral filters applied to digest items before grouping.

Each filter is an independent predicate; active filters are ANDed and an
inactive filter always passes, so applying the same set twice is a no-op.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from priority_engine.features.priority_intelligence.domain.models import (
    BehaviorFilter,
    DigestItem,
)

DEFAULT_BEHAVIOR_FILTERS: tuple[BehaviorFilter, ...] = (
    BehaviorFilter(id="vip", active=False),
    BehaviorFilter(id="urgent", active=False),
    BehaviorFilter(id="unread", active=True),
)

PREDICATES: dict[str, Callable[[DigestItem], bool]] = {
    "vip": lambda item: item.is_vip,
    "urgent": lambda item: item.is_urgent,
    "unread": lambda item: not item.read,
}


def normalize_filters(
    filters: Iterable[BehaviorFilter] | Mapping[str, bool] | None,
) -> list[BehaviorFilter]:
    """Accept BehaviorFilter objects or a {filter_id: active} mapping."""
    if not filters:
        return []
    if isinstance(filters, Mapping):
        return [BehaviorFilter(id=fid, active=bool(active)) for fid, active in filters.items()]
    return list(filters)


def active_predicates(filters: Iterable[BehaviorFilter]) -> list[Callable[[DigestItem], bool]]:
    # Unknown filter ids pass everything.
    return [PREDICATES[f.id] for f in filters if f.active and f.id in PREDICATES]


def apply_filters(
    items: Iterable[DigestItem],
    filters: Iterable[BehaviorFilter] | Mapping[str, bool] | None,
) -> list[DigestItem]:
    predicates = active_predicates(normalize_filters(filters))
    return [item for item in items if all(predicate(item) for predicate in predicates)]
