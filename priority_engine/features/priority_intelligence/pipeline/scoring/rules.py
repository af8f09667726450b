"""
Scoring tables for the priority engine.

All weights, keyword lists and thresholds live here as data so they can be
tuned from a YAML file without touching the scorer. Defaults reproduce the
hand-tuned constants the engine shipped with.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from priority_engine.config import settings
from priority_engine.features.priority_intelligence.domain.errors import ScoringRulesError
from priority_engine.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class FactorWeights(BaseModel):
    """Per-factor weights for one message source. Weights are non-negative."""

    model_config = ConfigDict(extra="forbid")

    sender: float = Field(ge=0)
    keywords: float = Field(ge=0)
    urgency: float = Field(ge=0)
    vip: float = Field(ge=0)
    engagement: float = Field(ge=0)

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


class CategoryRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    keywords: list[str]


class TierThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid")

    critical: int = 80
    high: int = 65
    medium: int = 50


class ScoringRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Weighted combination
    email_weights: FactorWeights = FactorWeights(
        sender=0.25, keywords=0.20, urgency=0.30, vip=0.20, engagement=0.05
    )
    chat_weights: FactorWeights = FactorWeights(
        sender=0.20, keywords=0.25, urgency=0.35, vip=0.15, engagement=0.05
    )

    # Sender factor
    sender_base: int = 50
    internal_domain_bonus: int = 20
    important_domain_bonus: int = 30
    executive_bonus: int = 40
    internal_domains: list[str] = ["company.com", "internal.com"]
    important_domains: list[str] = ["board.com", "investors.com", "partners.com"]
    executive_tokens: list[str] = ["ceo", "founder", "president"]

    # Keyword factor
    keyword_base: int = 40
    critical_keyword_bonus: int = 15
    high_keyword_bonus: int = 10
    medium_keyword_bonus: int = 5
    critical_keywords: list[str] = ["urgent", "asap", "emergency", "critical", "deadline", "breaking"]
    high_keywords: list[str] = [
        "important",
        "meeting",
        "decision",
        "approve",
        "review",
        "action required",
    ]
    medium_keywords: list[str] = ["update", "fyi", "information", "notice", "reminder"]

    # Urgency factor
    urgency_base: int = 30
    urgency_match_bonus: int = 20
    urgency_patterns: list[str] = [
        "urgent",
        "asap",
        "emergency",
        "deadline",
        "today",
        "now",
        "immediately",
        "time.sensitive",
    ]
    same_day_phrases: list[str] = ["today", "this morning"]
    same_day_bonus: int = 25
    near_term_phrases: list[str] = ["tomorrow", "next week"]
    near_term_bonus: int = 10

    # VIP factor
    vip_patterns: list[str] = [
        "ceo@",
        "founder@",
        "president@",
        "chairman@",
        "board@",
        "investor@",
        "partner@",
        "director@",
    ]
    vip_pattern_importance: int = 85
    default_vip_importance: int = 40

    # Engagement factor
    engagement_base: int = 40
    frequent_reply_threshold: int = 10
    frequent_reply_bonus: int = 20
    regular_reply_threshold: int = 5
    regular_reply_bonus: int = 10
    fast_response_seconds: int = 3600
    fast_response_bonus: int = 15
    same_day_response_seconds: int = 86400
    same_day_response_bonus: int = 10

    # Confidence + explanation
    confidence_floor: int = 50
    variance_penalty: float = 0.5
    explanation_threshold: int = 70

    tiers: TierThresholds = TierThresholds()

    # VIP candidate detection
    role_tokens: list[str] = [
        "ceo",
        "founder",
        "president",
        "director",
        "head",
        "lead",
        "manager",
        "board",
        "investor",
    ]

    # Digest classification (evaluated in order, first match wins)
    category_rules: list[CategoryRule] = [
        CategoryRule(category="strategic", keywords=["strategy", "planning", "roadmap"]),
        CategoryRule(category="urgent", keywords=["urgent", "asap", "emergency"]),
        CategoryRule(category="operational", keywords=["meeting", "task", "project"]),
    ]
    fallback_category: str = "informational"
    action_keywords: list[str] = [
        "please",
        "can you",
        "need",
        "request",
        "approve",
        "review",
        "decision",
    ]
    urgent_item_keywords: list[str] = ["urgent", "asap", "emergency", "critical", "deadline"]
    vip_item_patterns: list[str] = ["ceo", "founder", "board", "investor", "president", "director"]

    def weights_for(self, is_chat: bool) -> dict[str, float]:
        return (self.chat_weights if is_chat else self.email_weights).as_dict()


DEFAULT_RULES = ScoringRules()


def parse_scoring_rules(data: dict[str, Any] | None) -> ScoringRules:
    """
    Build rules from a partial mapping; missing keys keep their defaults.

    Raises:
        ScoringRulesError: unknown keys or invalid values
    """
    if not data:
        return ScoringRules()
    if not isinstance(data, dict):
        raise ScoringRulesError("Scoring rules document must be a mapping")
    try:
        return ScoringRules.model_validate(data)
    except ValidationError as e:
        raise ScoringRulesError(f"Invalid scoring rules: {e}") from e


def load_scoring_rules(path: Path | None = None) -> ScoringRules:
    """
    Load scoring rules from a YAML file.

    A missing or unreadable file falls back to defaults with a warning; a
    readable file with invalid content raises ScoringRulesError.
    """
    if path is None:
        return ScoringRules()

    if not path.exists():
        logger.warning("Scoring rules file not found, using defaults", path=str(path))
        return ScoringRules()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read scoring rules, using defaults", path=str(path), error=str(e))
        return ScoringRules()

    rules = parse_scoring_rules(data)
    logger.info("Loaded scoring rules", path=str(path), overrides=sorted(data.keys()))
    return rules


@lru_cache(maxsize=1)
def get_scoring_rules() -> ScoringRules:
    """Process-wide rules loaded from PRIORITY_RULES_PATH."""
    return load_scoring_rules(settings.rules_path())
