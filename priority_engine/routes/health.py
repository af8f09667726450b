# priority_engine/routes/health.py
"""
Health check endpoints with Redis and configuration readiness.
"""

import time

from fastapi import APIRouter

from priority_engine.config import settings
from priority_engine.features.priority_intelligence.pipeline.scoring import get_scoring_rules
from priority_engine.services.redis_client import fast_redis

router = APIRouter()


async def redis_ping() -> bool:
    return await fast_redis.ping()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "priority-engine"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check: Redis connectivity plus configuration sanity.

    Scoring keeps working without Redis (registry edits become
    session-only), so `scoring_ok` is reported separately.
    """
    checks = {}
    overall_ok = True

    # 1) Redis health check
    t0 = time.time()
    try:
        redis_ok = await redis_ping()
        checks["redis"] = {
            "ok": bool(redis_ok),
            "latency_ms": round((time.time() - t0) * 1000, 1),
            "connection_type": "native_pooled",
        }
        overall_ok = overall_ok and bool(redis_ok)
    except Exception as e:
        checks["redis"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Configuration checks
    config_issues = []

    if not settings.AUTH_JWKS_URL:
        config_issues.append("AUTH_JWKS_URL not set")

    rules_path = settings.rules_path()
    if rules_path is not None and not rules_path.is_file():
        config_issues.append(f"PRIORITY_RULES_PATH not found: {rules_path}")

    config_ok = not config_issues
    checks["configuration"] = {
        "ok": config_ok,
        "issues": config_issues if config_issues else None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and config_ok

    # 3) Scoring rules
    try:
        rules = get_scoring_rules()
        checks["scoring"] = {"ok": True, "email_weights": rules.email_weights.as_dict()}
    except Exception as e:
        checks["scoring"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    return {
        "overall_ok": overall_ok,
        "scoring_ok": checks["scoring"]["ok"],
        "checks": checks,
        "timestamp": time.time(),
    }
