"""
Domain subpackage for the priority intelligence feature.
"""

from .errors import PriorityEngineError, ScoringRulesError, VipContactNotFoundError
from .models import (
    FACTOR_NAMES,
    TIER_WEIGHTS,
    BehaviorFilter,
    BehaviorRecord,
    DigestItem,
    Message,
    PriorityScore,
    RegistryWriteResult,
    ScoredMessage,
    Sender,
    TimeGroup,
    VIPContact,
)

__all__ = [
    "FACTOR_NAMES",
    "TIER_WEIGHTS",
    "BehaviorFilter",
    "BehaviorRecord",
    "DigestItem",
    "Message",
    "PriorityScore",
    "RegistryWriteResult",
    "ScoredMessage",
    "Sender",
    "TimeGroup",
    "VIPContact",
    "PriorityEngineError",
    "ScoringRulesError",
    "VipContactNotFoundError",
]
