"""
Persistence layer for the priority intelligence feature.
"""

from .kv_repository import (
    BehaviorRepository,
    KeyValueClient,
    VipContactRepository,
    record_from_dict,
)

__all__ = ["BehaviorRepository", "KeyValueClient", "VipContactRepository", "record_from_dict"]
