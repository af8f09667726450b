"""
Behavior store - per-contact engagement history read by the scorer.
"""

from __future__ import annotations

from typing import Any

from priority_engine.features.priority_intelligence.domain.models import (
    BehaviorRecord,
    RegistryWriteResult,
)
from priority_engine.features.priority_intelligence.repository import (
    BehaviorRepository,
    record_from_dict,
)
from priority_engine.infrastructure.observability.logging import (
    get_logger,
    log_persistence_failure,
)

logger = get_logger(__name__)

PERSISTENCE_WARNING = "Behavior data could not be saved; changes apply to this session only"


class BehaviorStore:
    def __init__(self, user_id: str, repository: BehaviorRepository | None = None):
        self.user_id = user_id
        self.repository = repository or BehaviorRepository()
        self._records: dict[str, BehaviorRecord] = {}
        self._loaded = False
        self._hydrated = False

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    async def load(self) -> None:
        # An unreadable map leaves the store unhydrated and never written back.
        if self._loaded:
            return
        self._loaded = True
        records = await self.repository.load(self.user_id)
        if records is None:
            logger.warning("Behavior data unavailable, updates stay in session", user_id=self.user_id)
            return
        self._records = records
        self._hydrated = True
        logger.debug("Behavior data loaded", user_id=self.user_id, contacts=len(self._records))

    @staticmethod
    def normalize_key(contact: str) -> str:
        return (contact or "").strip().lower()

    def get(self, key: str) -> BehaviorRecord | None:
        return self._records.get(self.normalize_key(key))

    def __len__(self) -> int:
        return len(self._records)

    async def update_behavior_data(
        self, contact: str, partial: dict[str, Any]
    ) -> RegistryWriteResult:
        """Merge a partial record into the contact's history and write it through."""
        await self.load()
        key = self.normalize_key(contact)
        merged = record_from_dict(partial or {}, base=self._records.get(key))

        # Replace the mapping so readers holding the old dict are unaffected.
        records = dict(self._records)
        records[key] = merged
        self._records = records

        saved = self._hydrated and await self.repository.save(self.user_id, self._records)
        if not saved:
            log_persistence_failure(
                store="behavior",
                key=self.repository.key_for(self.user_id),
                user_id=self.user_id,
                operation="update",
            )
        return RegistryWriteResult(
            contact=None,
            persisted=saved,
            warning=None if saved else PERSISTENCE_WARNING,
        )
