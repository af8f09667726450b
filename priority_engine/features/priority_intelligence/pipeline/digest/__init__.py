"""
Digest package.

Groups scored messages into the time-aware daily brief and applies the
behavioral filters.
"""

from .filters import DEFAULT_BEHAVIOR_FILTERS, apply_filters, normalize_filters
from .service import (
    TIME_WINDOWS,
    DigestOrganizer,
    categorize,
    is_urgent_text,
    requires_action,
    summarize,
    summarize_text,
)

__all__ = [
    "DEFAULT_BEHAVIOR_FILTERS",
    "TIME_WINDOWS",
    "DigestOrganizer",
    "apply_filters",
    "categorize",
    "is_urgent_text",
    "normalize_filters",
    "requires_action",
    "summarize",
    "summarize_text",
]
