import json

import pytest

from priority_engine.features.priority_intelligence.domain.models import VIPContact
from priority_engine.features.priority_intelligence.repository import VipContactRepository
from priority_engine.features.priority_intelligence.services.vip_registry import (
    CANDIDATE_IMPORTANCE,
    PERSISTENCE_WARNING,
    VipRegistry,
)


def _registry(client, user_id="user-1"):
    return VipRegistry(user_id, VipContactRepository(client))


@pytest.mark.asyncio
async def test_upsert_new_contact_persists_and_sets_last_contact(fake_redis):
    registry = _registry(fake_redis)

    result = await registry.upsert({"email": "alice@acme.com", "display_name": "Alice"})

    assert result.persisted is True
    assert result.warning is None
    assert result.contact.last_contact is not None
    stored = json.loads(fake_redis.store[VipContactRepository.key_for("user-1")])
    assert [c["email"] for c in stored] == ["alice@acme.com"]


@pytest.mark.asyncio
async def test_upsert_existing_id_updates_in_place(fake_redis):
    registry = _registry(fake_redis)
    created = await registry.upsert(VIPContact(email="bob@acme.com", importance=70))

    edited = created.contact.model_copy(update={"importance": 92})
    await registry.upsert(edited)

    assert len(registry.snapshot()) == 1
    assert registry.get(created.contact.id).importance == 92


@pytest.mark.parametrize(("raw", "expected"), [(150, 100), (0, 1), (-20, 1), (55, 55)])
def test_importance_is_clamped(raw, expected):
    assert VIPContact(email="x@y.com", importance=raw).importance == expected


@pytest.mark.asyncio
async def test_failed_write_keeps_session_change_and_warns(failing_redis):
    registry = _registry(failing_redis)

    result = await registry.upsert({"email": "carol@acme.com", "importance": 90})

    assert result.persisted is False
    assert result.warning == PERSISTENCE_WARNING
    assert registry.find_match("carol@acme.com") is not None
    assert registry.match_importance("Carol <carol@acme.com>") == 90


@pytest.mark.asyncio
async def test_remove_contact(fake_redis):
    registry = _registry(fake_redis)
    created = await registry.upsert({"email": "dan@acme.com"})

    result = await registry.remove(created.contact.id)

    assert result.removed is True
    assert registry.snapshot() == ()
    assert json.loads(fake_redis.store[VipContactRepository.key_for("user-1")]) == []


@pytest.mark.asyncio
async def test_remove_unknown_id_is_noop(fake_redis):
    registry = _registry(fake_redis)

    result = await registry.remove("does-not-exist")

    assert result.removed is False
    assert fake_redis.writes == 0


@pytest.mark.asyncio
async def test_load_round_trips_contacts(fake_redis):
    writer = _registry(fake_redis)
    await writer.upsert({"email": "erin@acme.com", "display_name": "Erin", "importance": 88})

    reader = _registry(fake_redis)
    await reader.load()

    assert [c.email for c in reader.list()] == ["erin@acme.com"]
    assert reader.list()[0].importance == 88


@pytest.mark.asyncio
async def test_corrupt_stored_blob_is_never_overwritten(fake_redis):
    key = VipContactRepository.key_for("user-1")
    fake_redis.store[key] = "{not json"
    registry = _registry(fake_redis)

    await registry.load()
    result = await registry.upsert({"email": "new@acme.com"})

    assert registry.hydrated is False
    assert result.persisted is False
    assert result.warning == PERSISTENCE_WARNING
    assert [c.email for c in registry.list()] == ["new@acme.com"]
    assert fake_redis.store[key] == "{not json"


@pytest.mark.asyncio
async def test_failed_read_does_not_wipe_stored_contacts(fake_redis, unreadable_redis):
    writer = _registry(fake_redis)
    for email in ("a@acme.com", "b@acme.com", "c@acme.com"):
        await writer.upsert({"email": email})
    key = VipContactRepository.key_for("user-1")
    before = fake_redis.store[key]

    registry = _registry(unreadable_redis)
    await registry.load()
    added = await registry.upsert({"email": "new@acme.com"})
    removed = await registry.remove(added.contact.id)

    assert added.persisted is False
    assert added.warning == PERSISTENCE_WARNING
    assert removed.persisted is False
    assert fake_redis.store[key] == before
    assert len(json.loads(fake_redis.store[key])) == 3


@pytest.mark.asyncio
async def test_edit_keeps_fields_the_caller_did_not_send(fake_redis):
    registry = _registry(fake_redis)
    created = await registry.upsert(
        {
            "email": "gina@acme.com",
            "display_name": "Gina",
            "importance": 70,
            "response_time_hours": 2.5,
            "interaction_score": 0.8,
        }
    )

    result = await registry.upsert({"id": created.contact.id, "importance": 95})

    edited = registry.get(created.contact.id)
    assert result.contact == edited
    assert edited.importance == 95
    assert edited.email == "gina@acme.com"
    assert edited.display_name == "Gina"
    assert edited.last_contact == created.contact.last_contact
    assert edited.response_time_hours == 2.5
    assert edited.interaction_score == 0.8
    stored = json.loads(fake_redis.store[VipContactRepository.key_for("user-1")])
    assert stored[0]["response_time_hours"] == 2.5


@pytest.mark.asyncio
async def test_stored_non_string_text_is_coerced(fake_redis):
    fake_redis.store[VipContactRepository.key_for("user-1")] = json.dumps(
        [{"id": "c1", "email": 123, "display_name": None, "importance": 90}]
    )
    registry = _registry(fake_redis)

    await registry.load()

    assert registry.hydrated is True
    assert registry.get("c1").email == "123"
    assert registry.get("c1").display_name == ""


@pytest.mark.asyncio
async def test_list_orders_by_importance(fake_redis):
    registry = _registry(fake_redis)
    for email, importance in [("a@x.com", 70), ("b@x.com", 95), ("c@x.com", 85)]:
        await registry.upsert({"email": email, "importance": importance})

    assert [c.importance for c in registry.list()] == [95, 85, 70]
    assert registry.importance_breakdown() == {"total": 3, "critical": 1, "high": 1, "other": 1}


@pytest.mark.asyncio
async def test_find_match_prefers_highest_importance(fake_redis):
    registry = _registry(fake_redis)
    await registry.upsert({"email": "team@acme.com", "importance": 60})
    await registry.upsert({"display_name": "Jane Smith", "importance": 97})

    match = registry.find_match("Jane Smith <team@acme.com>")

    assert match.importance == 97


def test_match_importance_falls_back_to_patterns():
    registry = VipRegistry("user-1")

    assert registry.match_importance("founder@startup.io") == 85
    assert registry.match_importance("someone@example.com") == 40


def test_detect_candidates_requires_role_token_and_dedupes():
    registry = VipRegistry("user-1")

    candidates = registry.detect_candidates(
        [
            "director@acme.com",
            "DIRECTOR@acme.com",
            "friend@acme.com",
            "head.of.sales@acme.com",
            "",
        ]
    )

    assert candidates == ["director@acme.com", "head.of.sales@acme.com"]


@pytest.mark.asyncio
async def test_detect_candidates_skips_existing_vips(fake_redis):
    registry = _registry(fake_redis)
    await registry.upsert({"email": "ceo@acme.com"})

    assert registry.detect_candidates(["ceo@acme.com", "manager@acme.com"]) == ["manager@acme.com"]
    assert len(registry.snapshot()) == 1


def test_draft_from_candidate():
    draft = VipRegistry.draft_from_candidate("director@acme.com")

    assert draft.email == "director@acme.com"
    assert draft.display_name == "Director"
    assert draft.importance == CANDIDATE_IMPORTANCE
    assert draft.relationship == "external"
    assert draft.notes == "Auto-detected VIP"


def test_is_vip_uses_registry_or_patterns():
    registry = VipRegistry("user-1")

    assert registry.is_vip("board@acme.com") is True
    assert registry.is_vip("friend@acme.com") is False
