"""
Rate limiting dependency -- admission control for the generation routes.

Each request is checked against:
  - ip      / default   broad window (100 per 15 minutes)
  - ip      / burst     short window (5 per minute, failed requests refunded)
  - session / default   only when an x-session-id or bearer token is present

The request is admitted only if all of them allow it. The most restrictive
decision (smallest remaining) goes into the X-RateLimit-* headers on both
success and rejection.

    @router.post("/prompt")
    async def generate(..., checks=Depends(enforce_rate_limit)): ...

Configuration via environment: RATE_LIMIT_DEFAULT, RATE_LIMIT_BURST and their
*_WINDOW counterparts (see config.py).
"""

import logging

from fastapi import Request, Response

from ...admission import client_ip, mask_identity, rate_limit_headers, session_id
from ...errors import RateLimitExceeded

logger = logging.getLogger(__name__)


def identity_checks(request: Request) -> list[tuple[str, str]]:
    """(identity, policy) pairs that apply to this request."""
    fallback = request.client.host if request.client else None
    ip = client_ip(request.headers, fallback)
    checks = [(f"ip:{ip}", "default"), (f"ip:{ip}", "burst")]
    session = session_id(request.headers)
    if session:
        checks.append((f"session:{session}", "default"))
    return checks


async def enforce_rate_limit(request: Request, response: Response) -> list[tuple[str, str]]:
    """
    Count the request against every applicable policy.

    Raises RateLimitExceeded (HTTP 429 with Retry-After) if any policy denies.
    Returns the checks so the route can refund them if the request fails.
    """
    limiter = request.app.state.context.rate_limiter
    checks = identity_checks(request)
    decision = limiter.check_many(checks)
    headers = rate_limit_headers(decision.most_restrictive)
    request.state.rate_limit_headers = headers
    request.state.rate_limit_checks = checks

    if not decision.allowed:
        denied = [r for r in decision.results if not r.allowed]
        retry_after = max((r.retry_after or 0) for r in denied)
        logger.warning(
            f"[RateLimit] [{getattr(request.state, 'request_id', '')}] "
            f"{mask_identity(checks[0][0])} denied by {[r.policy for r in denied]}"
        )
        request.state.rate_limit_headers = {**headers, "Retry-After": str(retry_after)}
        raise RateLimitExceeded(
            f"요청 한도를 초과했습니다. {retry_after}초 후 다시 시도해주세요.",
            details={"retryAfter": retry_after, "policies": [r.policy for r in denied]},
        )

    for name, value in headers.items():
        response.headers[name] = value
    return checks


def refund_failed_request(request: Request) -> None:
    """Undo the count for policies that do not count failed requests."""
    checks = getattr(request.state, "rate_limit_checks", None)
    if checks:
        request.app.state.context.rate_limiter.refund_failed(checks)
