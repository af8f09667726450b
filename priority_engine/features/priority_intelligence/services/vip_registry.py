"""
VIP registry - the user's important contacts, cached in memory and written
through to the key-value store on every mutation.

The in-memory snapshot is an immutable tuple that each mutation replaces
wholesale, so a scoring pass running alongside an edit always sees one
consistent version of the registry without locking.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from priority_engine.features.priority_intelligence.domain.models import (
    RegistryWriteResult,
    VIPContact,
)
from priority_engine.features.priority_intelligence.pipeline.scoring.rules import (
    DEFAULT_RULES,
    ScoringRules,
)
from priority_engine.features.priority_intelligence.pipeline.scoring.service import (
    pattern_importance,
)
from priority_engine.features.priority_intelligence.repository import VipContactRepository
from priority_engine.infrastructure.observability.logging import (
    get_logger,
    log_persistence_failure,
)

logger = get_logger(__name__)

PERSISTENCE_WARNING = "VIP contacts could not be saved; changes apply to this session only"
CANDIDATE_IMPORTANCE = 75
CANDIDATE_NOTE = "Auto-detected VIP"


class VipRegistry:
    def __init__(
        self,
        user_id: str,
        repository: VipContactRepository | None = None,
        rules: ScoringRules = DEFAULT_RULES,
    ):
        self.user_id = user_id
        self.repository = repository or VipContactRepository()
        self.rules = rules
        self._contacts: tuple[VIPContact, ...] = ()
        self._loaded = False
        self._hydrated = False

    @property
    def hydrated(self) -> bool:
        """True once the cache holds what storage has for this account."""
        return self._hydrated

    async def load(self) -> None:
        """
        Hydrate the cache from storage (once per registry instance).

        When storage cannot be read the registry starts empty and stays
        unhydrated: edits still apply to this session but are never written
        back, so an unread list is not overwritten.
        """
        if self._loaded:
            return
        self._loaded = True
        contacts = await self.repository.load(self.user_id)
        if contacts is None:
            logger.warning("VIP registry unavailable, edits stay in session", user_id=self.user_id)
            return
        self._contacts = tuple(contacts)
        self._hydrated = True
        logger.info("VIP registry loaded", user_id=self.user_id, count=len(contacts))

    def snapshot(self) -> tuple[VIPContact, ...]:
        return self._contacts

    def list(self) -> list[VIPContact]:
        """Contacts ordered by importance (highest first)."""
        return sorted(
            self._contacts,
            key=lambda c: (-c.importance, c.display_name.lower(), c.id),
        )

    def get(self, contact_id: str) -> VIPContact | None:
        return next((c for c in self._contacts if c.id == contact_id), None)

    async def upsert(self, contact: VIPContact | dict[str, Any]) -> RegistryWriteResult:
        """
        Add a contact or update the one with the same id.

        Importance outside [1, 100] is clamped by VIPContact validation.
        """
        await self.load()
        if not isinstance(contact, VIPContact):
            contact = VIPContact.model_validate(contact)

        existing = self.get(contact.id)
        if existing is None:
            if contact.last_contact is None:
                contact = contact.model_copy(update={"last_contact": datetime.now(UTC)})
            contacts = (*self._contacts, contact)
        else:
            # Fields the caller did not set keep their stored values.
            provided = contact.model_dump(exclude_unset=True)
            contact = VIPContact.model_validate({**existing.model_dump(), **provided})
            contacts = tuple(contact if c.id == contact.id else c for c in self._contacts)

        # Cache first; readers see the new snapshot before the write is issued.
        self._contacts = contacts
        logger.info(
            "VIP contact saved",
            user_id=self.user_id,
            contact_id=contact.id,
            importance=contact.importance,
            created=existing is None,
        )

        persisted = await self._persist("upsert")
        return RegistryWriteResult(
            contact=contact,
            persisted=persisted,
            warning=None if persisted else PERSISTENCE_WARNING,
        )

    async def remove(self, contact_id: str) -> RegistryWriteResult:
        await self.load()
        existing = self.get(contact_id)
        if existing is None:
            return RegistryWriteResult(contact=None, persisted=True, removed=False)

        self._contacts = tuple(c for c in self._contacts if c.id != contact_id)
        logger.info("VIP contact removed", user_id=self.user_id, contact_id=contact_id)

        persisted = await self._persist("remove")
        return RegistryWriteResult(
            contact=existing,
            persisted=persisted,
            warning=None if persisted else PERSISTENCE_WARNING,
            removed=True,
        )

    def find_match(self, sender: str) -> VIPContact | None:
        """Highest-importance contact whose email or name occurs in ``sender``."""
        lowered = (sender or "").lower()
        if not lowered:
            return None
        best: VIPContact | None = None
        for contact in self._contacts:
            if any(pattern in lowered for pattern in contact.match_patterns()):
                if best is None or contact.importance > best.importance:
                    best = contact
        return best

    def match_importance(self, sender: str) -> int:
        match = self.find_match(sender)
        if match is not None:
            return match.importance
        return pattern_importance(sender, self.rules)

    def is_vip(self, sender: str) -> bool:
        if self.find_match(sender) is not None:
            return True
        lowered = (sender or "").lower()
        return any(p and p.lower() in lowered for p in self.rules.vip_item_patterns)

    def detect_candidates(self, observed_senders: Iterable[str]) -> list[str]:
        """
        Suggest senders whose identifier looks like a senior role.

        Senders already matching a registry contact are skipped, and nothing
        is added to the registry.
        """
        tokens = [t.lower() for t in self.rules.role_tokens if t]
        seen: set[str] = set()
        candidates: list[str] = []
        for sender in observed_senders:
            cleaned = (sender or "").strip()
            lowered = cleaned.lower()
            if not cleaned or lowered in seen:
                continue
            seen.add(lowered)
            if not any(token in lowered for token in tokens):
                continue
            if self.find_match(cleaned) is not None:
                continue
            candidates.append(cleaned)
        return candidates

    @staticmethod
    def draft_from_candidate(sender: str) -> VIPContact:
        """Unsaved contact pre-filled from a detected candidate, for the user to confirm."""
        local_part = sender.split("@", 1)[0] or sender
        return VIPContact(
            email=sender,
            display_name=local_part[:1].upper() + local_part[1:],
            importance=CANDIDATE_IMPORTANCE,
            relationship="external",
            notes=CANDIDATE_NOTE,
        )

    def importance_breakdown(self) -> dict[str, int]:
        critical = sum(1 for c in self._contacts if c.importance >= 90)
        high = sum(1 for c in self._contacts if 80 <= c.importance < 90)
        return {
            "total": len(self._contacts),
            "critical": critical,
            "high": high,
            "other": len(self._contacts) - critical - high,
        }

    async def _persist(self, operation: str) -> bool:
        if not self._hydrated:
            saved = False
        else:
            saved = await self.repository.save(self.user_id, list(self._contacts))
        if not saved:
            log_persistence_failure(
                store="vip_registry",
                key=self.repository.key_for(self.user_id),
                user_id=self.user_id,
                operation=operation,
            )
        return saved
