"""
Priority intelligence feature package.

Keeps every layer of message prioritisation co-located (domain models,
scoring and digest pipelines, persistence, services and API router) so
the feature can be read top to bottom in one place.
"""

# Re-export the primary building blocks for easy access.
from .api.router import router  # noqa: F401
from .domain.models import DigestItem, Message, PriorityScore, Sender, VIPContact  # noqa: F401
from .pipeline.scoring import PriorityScorer, ScoringContext, ScoringRules  # noqa: F401
from .services import BehaviorStore, PriorityEngine, VipRegistry  # noqa: F401
