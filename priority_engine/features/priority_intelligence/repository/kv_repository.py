"""
Key-value persistence for VIP contacts and behavior records.

Each user's VIP list and behavior map is stored as a single JSON blob in
Redis. Nothing here raises on a Redis failure. A failed write returns False,
and a load that could not read or decode the stored blob returns None so
the caller can tell it apart from an account with nothing stored yet.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from priority_engine.config import settings
from priority_engine.features.priority_intelligence.domain.models import (
    BehaviorRecord,
    VIPContact,
)
from priority_engine.infrastructure.observability.logging import get_logger
from priority_engine.services.redis_client import RedisUnavailableError, fast_redis

logger = get_logger(__name__)

_CONTACT_LIST = TypeAdapter(list[VIPContact])


class KeyValueClient(Protocol):
    # get returns None for an absent key and raises RedisUnavailableError
    # when the read itself fails.
    async def get(self, key: str) -> str | None: ...

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class VipContactRepository:
    """Get/set of the serialized VIP contact list keyed by account."""

    store = "vip_registry"

    def __init__(self, client: KeyValueClient | None = None, ttl_s: int | None = None):
        self.client = client or fast_redis
        self.ttl_s = ttl_s if ttl_s is not None else settings.VIP_REGISTRY_TTL_S

    @staticmethod
    def key_for(user_id: str) -> str:
        return settings.redis_key("vip_contacts", user_id)

    async def load(self, user_id: str) -> list[VIPContact] | None:
        """Stored contacts, [] when none are stored, None when storage could not be read."""
        try:
            raw = await self.client.get(self.key_for(user_id))
        except RedisUnavailableError:
            logger.warning("Stored data could not be read", user_id=user_id, store=self.store)
            return None
        if not raw:
            return []
        try:
            return _CONTACT_LIST.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Stored VIP contacts could not be decoded",
                user_id=user_id,
                error_count=e.error_count(),
            )
            return None

    async def save(self, user_id: str, contacts: list[VIPContact]) -> bool:
        payload = _CONTACT_LIST.dump_json(contacts).decode("utf-8")
        return await self.client.set_with_ttl(self.key_for(user_id), payload, self.ttl_s)


class BehaviorRepository:
    """Get/set of the per-contact behavior map keyed by account."""

    store = "behavior"

    def __init__(self, client: KeyValueClient | None = None, ttl_s: int | None = None):
        self.client = client or fast_redis
        self.ttl_s = ttl_s if ttl_s is not None else settings.VIP_REGISTRY_TTL_S

    @staticmethod
    def key_for(user_id: str) -> str:
        return settings.redis_key("behavior", user_id)

    async def load(self, user_id: str) -> dict[str, BehaviorRecord] | None:
        """Stored records, {} when none are stored, None when storage could not be read."""
        try:
            raw = await self.client.get(self.key_for(user_id))
        except RedisUnavailableError:
            logger.warning("Stored data could not be read", user_id=user_id, store=self.store)
            return None
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(
                "Stored behavior data could not be decoded",
                user_id=user_id,
                error=str(e),
            )
            return None
        if not isinstance(data, dict):
            logger.warning("Stored behavior data is not a mapping", user_id=user_id)
            return None

        records: dict[str, BehaviorRecord] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                records[key] = record_from_dict(value)
        return records

    async def save(self, user_id: str, records: dict[str, BehaviorRecord]) -> bool:
        payload = json.dumps({key: record.to_dict() for key, record in records.items()})
        return await self.client.set_with_ttl(self.key_for(user_id), payload, self.ttl_s)


def record_from_dict(data: dict[str, Any], base: BehaviorRecord | None = None) -> BehaviorRecord:
    """Merge known BehaviorRecord fields from ``data`` over ``base``; unknown keys and None are ignored."""
    record = BehaviorRecord(
        replies=base.replies if base else 0,
        opens=base.opens if base else 0,
        average_response_seconds=base.average_response_seconds if base else None,
    )
    for name, cast in (("replies", int), ("opens", int), ("average_response_seconds", float)):
        value = data.get(name)
        if value is None:
            continue
        try:
            setattr(record, name, cast(value))
        except (TypeError, ValueError):
            logger.debug("Ignoring malformed behavior field", field=name)
    return record
