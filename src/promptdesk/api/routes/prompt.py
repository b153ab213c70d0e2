"""
Prompt generation API.

  POST /api/v1/prompt          -- Generate a topic-specific instruction prompt
  GET  /api/v1/prompt          -- Describe accepted formats, levels and limits
  POST /api/v1/prompt/direct   -- Build a finished prompt from the rule-pack, no model call

Security:
  - Input bounds validated by UserInput before anything else runs
  - Rate limiting on the POST endpoints (failed requests refunded for burst)
  - Token budget enforced before the model call
"""

import logging

from fastapi import APIRouter, Depends, Request

from ...display import FORMAT_NAMES, LEVEL_NAMES
from ...inputs import (
    MAX_CONTEXT_LENGTH,
    MAX_REQUIREMENT_LENGTH,
    MAX_REQUIREMENTS,
    MAX_TOPIC_LENGTH,
    UserInput,
)
from ..errors import error_response
from ..middleware.rate_limit import enforce_rate_limit, refund_failed_request
from ..models.responses import ServiceInfoResponse

logger = logging.getLogger(__name__)
router = APIRouter()

SERVICE_NAME = "promptdesk"
SERVICE_VERSION = "0.1.0"


@router.post("/prompt")
async def generate_prompt(
    body: UserInput,
    request: Request,
    checks: list = Depends(enforce_rate_limit),
):
    """Assemble, budget-check, call the model and quality-gate the result."""
    pipeline = request.app.state.pipeline
    result = await pipeline.generate(body, request.state.request_id)
    if not result.ok:
        refund_failed_request(request)
        return error_response(request, result.error)
    return result.data


@router.post("/prompt/direct")
async def direct_prompt(
    body: UserInput,
    request: Request,
    checks: list = Depends(enforce_rate_limit),
):
    """Model-free prompt built from the rule-pack template."""
    result = request.app.state.pipeline.direct(body, request.state.request_id)
    if not result.ok:
        refund_failed_request(request)
        return error_response(request, result.error)
    return result.data


@router.get("/prompt", response_model=ServiceInfoResponse)
async def describe_service(request: Request) -> ServiceInfoResponse:
    context = request.app.state.context
    return ServiceInfoResponse(
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        formats=dict(FORMAT_NAMES),
        levels=dict(LEVEL_NAMES),
        token_limits=context.governor.limits(),
        limits={
            "topic": MAX_TOPIC_LENGTH,
            "context": MAX_CONTEXT_LENGTH,
            "additionalRequirements": MAX_REQUIREMENTS,
            "requirementLength": MAX_REQUIREMENT_LENGTH,
            "hardInputCeiling": context.governor.hard_input_ceiling,
        },
        rate_limits={
            name: {"windowSeconds": p.window_seconds, "maxRequests": p.max_requests}
            for name, p in context.rate_limiter.policies.items()
        },
    )
