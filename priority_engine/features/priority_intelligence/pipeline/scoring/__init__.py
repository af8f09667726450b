"""
Priority scoring package.

Provides the stateless message scorer, the context it reads from, and the
tunable scoring tables.
"""

from .rules import ScoringRules, get_scoring_rules, load_scoring_rules, parse_scoring_rules
from .service import (
    PriorityScorer,
    ScoringContext,
    get_priority_label,
    pattern_importance,
)

__all__ = [
    "PriorityScorer",
    "ScoringContext",
    "ScoringRules",
    "get_priority_label",
    "get_scoring_rules",
    "load_scoring_rules",
    "parse_scoring_rules",
    "pattern_importance",
]
