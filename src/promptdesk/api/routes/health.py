"""
Health endpoint.

  GET /health -- Liveness check: times one rule-pack and one checklist load,
                 reports cache sizes, rate-limiter entries, uptime and memory.

Returns 503 when either asset cannot be loaded.
"""

import logging
import resource
import sys
import time

from fastapi import APIRouter, Request, Response

from ...errors import PromptDeskError
from ...rulepacks.models import Level, OutputFormat
from ..models.responses import AssetCheck, HealthResponse
from .prompt import SERVICE_VERSION

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_asset(load) -> AssetCheck:
    start = time.perf_counter()
    try:
        load()
    except PromptDeskError as e:
        logger.error(f"[Health] Asset check failed: {e.kind.value}")
        return AssetCheck(ok=False, latency_ms=0.0, error=e.kind.value)
    return AssetCheck(ok=True, latency_ms=round((time.perf_counter() - start) * 1000, 2))


def _memory_mb() -> float:
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(peak / divisor, 1)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, response: Response) -> HealthResponse:
    context = request.app.state.context
    rulepack = _check_asset(lambda: context.rule_packs.load(OutputFormat.PRESS_RELEASE))
    checklist = _check_asset(
        lambda: context.checklists.load(OutputFormat.PRESS_RELEASE, Level.INTERMEDIATE)
    )
    healthy = rulepack.ok and checklist.ok
    if not healthy:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=SERVICE_VERSION,
        environment=context.settings.environment,
        uptime_seconds=round(context.uptime_seconds(), 1),
        memory_mb=_memory_mb(),
        rulepack=rulepack,
        checklist=checklist,
        cache={
            "rulepacks": context.rule_packs.cache_stats(),
            "checklists": context.checklists.cache_stats(),
        },
        rate_limiter=context.rate_limiter.store.stats(),
        llm_configured=context.llm_client is not None,
    )
