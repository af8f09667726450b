"""
Service layer for the priority intelligence feature.
"""

from .behavior_store import BehaviorStore
from .engine import PriorityEngine
from .vip_registry import VipRegistry

__all__ = ["BehaviorStore", "PriorityEngine", "VipRegistry"]
