"""
Priority intelligence routes.

All routes act on the authenticated account (`sub` claim). A fresh
PriorityEngine is loaded per request from the key/value store; registry
writes that fail to persist still return 200 with a warning.
"""

from fastapi import APIRouter, Depends

from priority_engine.auth.verify import current_user_id
from priority_engine.config import settings
from priority_engine.features.priority_intelligence.domain.errors import VipContactNotFoundError
from priority_engine.features.priority_intelligence.pipeline.digest import DEFAULT_BEHAVIOR_FILTERS
from priority_engine.features.priority_intelligence.services import PriorityEngine
from priority_engine.features.priority_intelligence.services.vip_registry import VipRegistry
from priority_engine.infrastructure.observability.logging import get_logger
from priority_engine.services.redis_client import fast_redis

from .schemas import (
    BehaviorUpdateRequest,
    BehaviorUpdateResponse,
    CandidateRequest,
    CandidateResponse,
    DigestRequest,
    DigestResponse,
    MessagePayload,
    PriorityScoreResponse,
    TimeGroupResponse,
    VipContactRequest,
    VipListResponse,
    VipMutationResponse,
)

router = APIRouter(prefix="/priority", tags=["priority"])
logger = get_logger(__name__)


async def get_engine(user_id: str = Depends(current_user_id)) -> PriorityEngine:
    return await PriorityEngine.for_user(
        user_id, client=fast_redis, timezone=settings.DIGEST_TIMEZONE
    )


@router.post("/score", response_model=PriorityScoreResponse)
async def score_message(payload: MessagePayload, engine: PriorityEngine = Depends(get_engine)):
    priority = engine.score_item(payload.to_message())
    return PriorityScoreResponse.from_score(priority, engine.get_priority_label(priority.score))


@router.post("/digest", response_model=DigestResponse)
async def build_digest(request: DigestRequest, engine: PriorityEngine = Depends(get_engine)):
    """Score a batch and return it grouped into time windows."""
    if request.filters is None:
        filters = DEFAULT_BEHAVIOR_FILTERS
    else:
        filters = [f.to_filter() for f in request.filters]
    groups = engine.organize_digest(
        [m.to_message() for m in request.messages],
        filters=filters,
        sort_order=request.sort,
        category=request.category,
        now=request.now,
    )
    logger.info(
        "Digest built",
        user_id=engine.user_id,
        messages=len(request.messages),
        groups=len(groups),
    )
    return DigestResponse(
        groups=[TimeGroupResponse.from_group(g) for g in groups],
        summary=engine.digest_summary(groups),
    )


@router.get("/vips", response_model=VipListResponse)
async def list_vips(engine: PriorityEngine = Depends(get_engine)):
    contacts = engine.list_vip_contacts()
    return VipListResponse(contacts=contacts, breakdown=engine.registry.importance_breakdown())


@router.post("/vips", response_model=VipMutationResponse)
async def upsert_vip(request: VipContactRequest, engine: PriorityEngine = Depends(get_engine)):
    result = await engine.upsert_vip_contact(request.to_contact())
    return VipMutationResponse.from_result(result)


@router.delete("/vips/{contact_id}", response_model=VipMutationResponse)
async def remove_vip(contact_id: str, engine: PriorityEngine = Depends(get_engine)):
    result = await engine.remove_vip_contact(contact_id)
    if not result.removed:
        raise VipContactNotFoundError(contact_id)
    return VipMutationResponse.from_result(result)


@router.post("/vips/candidates", response_model=CandidateResponse)
async def detect_candidates(request: CandidateRequest, engine: PriorityEngine = Depends(get_engine)):
    candidates = engine.detect_vip_candidates(request.senders)
    return CandidateResponse(
        candidates=candidates,
        drafts=[VipRegistry.draft_from_candidate(sender) for sender in candidates],
    )


@router.put("/behavior/{contact}", response_model=BehaviorUpdateResponse)
async def update_behavior(
    contact: str,
    request: BehaviorUpdateRequest,
    engine: PriorityEngine = Depends(get_engine),
):
    result = await engine.update_behavior_data(contact, request.model_dump(exclude_none=True))
    return BehaviorUpdateResponse(
        contact=contact, persisted=result.persisted, warning=result.warning
    )
