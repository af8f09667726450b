"""
Priority scoring service - ranks a single message from five factor sub-scores.

The scorer is stateless: everything it reads (rules, VIP registry, behavior
history) arrives through the ScoringContext, so one scorer can be shared
freely across threads and requests.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from priority_engine.features.priority_intelligence.domain.models import (
    FACTOR_NAMES,
    BehaviorRecord,
    Message,
    PriorityScore,
    PriorityTier,
)
from priority_engine.infrastructure.observability.logging import get_logger

from .rules import DEFAULT_RULES, ScoringRules

logger = get_logger(__name__)

EXPLANATIONS = (
    ("vip", "VIP contact detected"),
    ("urgency", "High urgency indicators"),
    ("keywords", "Important keywords found"),
    ("sender", "Trusted sender"),
    ("engagement", "High engagement history"),
)
DEFAULT_EXPLANATION = "Standard priority assessment"


class VipMatcher(Protocol):
    def match_importance(self, sender: str) -> int: ...


class BehaviorLookup(Protocol):
    def get(self, key: str) -> BehaviorRecord | None: ...


class _NoVips:
    def __init__(self, rules: ScoringRules):
        self.rules = rules

    def match_importance(self, sender: str) -> int:
        return pattern_importance(sender, self.rules)


@dataclass(slots=True)
class ScoringContext:
    """Everything a scoring call may read, built once per request or session."""

    rules: ScoringRules = field(default_factory=lambda: DEFAULT_RULES)
    vips: VipMatcher | None = None
    behavior: BehaviorLookup | Mapping[str, BehaviorRecord] = field(default_factory=dict)

    def vip_importance(self, sender: str) -> int:
        matcher = self.vips or _NoVips(self.rules)
        return matcher.match_importance(sender)

    def behavior_for(self, key: str) -> BehaviorRecord:
        # No history reads as an immediate responder; a stored record without
        # latency gets no latency bonus.
        record = self.behavior.get(key) if key else None
        return record or BehaviorRecord(average_response_seconds=0)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, round_half_up(value)))


def pattern_importance(sender: str, rules: ScoringRules) -> int:
    """Static VIP-pattern fallback used when no registry contact matches."""
    lowered = (sender or "").lower()
    for pattern in rules.vip_patterns:
        if pattern and pattern.lower() in lowered:
            return rules.vip_pattern_importance
    return rules.default_vip_importance


def get_priority_label(score: float, rules: ScoringRules = DEFAULT_RULES) -> PriorityTier:
    if score >= rules.tiers.critical:
        return "critical"
    if score >= rules.tiers.high:
        return "high"
    if score >= rules.tiers.medium:
        return "medium"
    return "low"


class PriorityScorer:
    def score(self, message: Message, context: ScoringContext | None = None) -> PriorityScore:
        """
        Score one message. Never raises for a well-typed message.

        Args:
            message: Message to rank
            context: Rules, VIP registry and behavior data to score against

        Returns:
            PriorityScore with score/confidence in [0, 100] and the factor breakdown
        """
        context = context or ScoringContext()
        try:
            factors = self.compute_factors(message, context)
        except Exception as e:
            logger.error(
                "Priority scoring failed, using neutral score",
                message_id=getattr(message, "id", None),
                error=str(e),
                exc_info=True,
            )
            factors = self.neutral_factors(context.rules)

        return self.combine(factors, context.rules, is_chat=message.is_chat)

    def compute_factors(self, message: Message, context: ScoringContext) -> dict[str, int]:
        rules = context.rules
        sender = message.sender
        content = message.content
        return {
            "sender": self._sender(sender.identity, sender.domain, rules),
            "keywords": self._keywords(content, rules),
            "urgency": self._urgency(content, rules),
            "vip": clamp(context.vip_importance(sender.identity)),
            "engagement": self._engagement(context.behavior_for(sender.key), rules),
        }

    def combine(self, factors: dict[str, int], rules: ScoringRules, is_chat: bool) -> PriorityScore:
        weights = rules.weights_for(is_chat)
        weighted = sum(weights[name] * factors[name] for name in FACTOR_NAMES)
        return PriorityScore(
            score=clamp(weighted),
            confidence=self._confidence(factors, rules),
            factors=dict(factors),
            explanation=self._explanation(factors, rules),
        )

    @staticmethod
    def neutral_factors(rules: ScoringRules) -> dict[str, int]:
        return {
            "sender": rules.sender_base,
            "keywords": rules.keyword_base,
            "urgency": rules.urgency_base,
            "vip": rules.default_vip_importance,
            "engagement": rules.engagement_base,
        }

    def _sender(self, identity: str, domain: str, rules: ScoringRules) -> int:
        lowered = identity.lower()
        candidates = [rules.sender_base]
        if domain and domain in {d.lower() for d in rules.internal_domains}:
            candidates.append(rules.sender_base + rules.internal_domain_bonus)
        if domain and domain in {d.lower() for d in rules.important_domains}:
            candidates.append(rules.sender_base + rules.important_domain_bonus)
        if any(token and token.lower() in lowered for token in rules.executive_tokens):
            candidates.append(rules.sender_base + rules.executive_bonus)
        return clamp(max(candidates))

    def _keywords(self, content: str, rules: ScoringRules) -> int:
        score = rules.keyword_base
        tiers = (
            (rules.critical_keywords, rules.critical_keyword_bonus),
            (rules.high_keywords, rules.high_keyword_bonus),
            (rules.medium_keywords, rules.medium_keyword_bonus),
        )
        for keywords, bonus in tiers:
            score += bonus * sum(1 for keyword in keywords if keyword and keyword.lower() in content)
        return clamp(score)

    def _urgency(self, content: str, rules: ScoringRules) -> int:
        score = rules.urgency_base
        for pattern in rules.urgency_patterns:
            matches = len(re.findall(pattern, content)) if pattern else 0
            score += matches * rules.urgency_match_bonus
        if any(phrase in content for phrase in rules.same_day_phrases):
            score += rules.same_day_bonus
        if any(phrase in content for phrase in rules.near_term_phrases):
            score += rules.near_term_bonus
        return clamp(score)

    def _engagement(self, record: BehaviorRecord, rules: ScoringRules) -> int:
        score = rules.engagement_base
        replies = record.replies or 0
        if replies > rules.frequent_reply_threshold:
            score += rules.frequent_reply_bonus
        elif replies > rules.regular_reply_threshold:
            score += rules.regular_reply_bonus

        latency = record.average_response_seconds
        if latency is not None:
            if latency < rules.fast_response_seconds:
                score += rules.fast_response_bonus
            elif latency < rules.same_day_response_seconds:
                score += rules.same_day_response_bonus
        return clamp(score)

    def _confidence(self, factors: dict[str, int], rules: ScoringRules) -> int:
        # Lower spread between factors means the signals agree.
        values = [factors[name] for name in FACTOR_NAMES]
        mean = sum(values) / len(values)
        variance = sum((value - mean) ** 2 for value in values) / len(values)
        confidence = max(rules.confidence_floor, 100 - rules.variance_penalty * variance)
        return clamp(confidence, low=rules.confidence_floor)

    def _explanation(self, factors: dict[str, int], rules: ScoringRules) -> str:
        parts = [text for name, text in EXPLANATIONS if factors[name] > rules.explanation_threshold]
        return ", ".join(parts) if parts else DEFAULT_EXPLANATION
