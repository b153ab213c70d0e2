"""Admission control -- fixed-window rate limiting per client identity."""
from .rate_limiter import (
    CompositeDecision,
    MemoryStore,
    RateLimitDecision,
    RateLimitEntry,
    RateLimiter,
    RateLimitPolicy,
    client_ip,
    default_policies,
    mask_identity,
    rate_limit_headers,
    session_id,
)
