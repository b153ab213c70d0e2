"""
Pydantic response models -- fixed-shape responses.

The generation, rule-pack and checklist routes return camelCase dicts built by
the domain objects; only the diagnostic shapes are modelled here.
"""

from pydantic import BaseModel, Field


class AssetCheck(BaseModel):
    """One timed asset load."""

    ok: bool
    latency_ms: float = 0.0
    error: str | None = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str = ""
    uptime_seconds: float = 0.0
    memory_mb: float = 0.0
    rulepack: AssetCheck
    checklist: AssetCheck
    cache: dict[str, dict] = Field(default_factory=dict)
    rate_limiter: dict[str, int] = Field(default_factory=dict)
    llm_configured: bool = False


class ServiceInfoResponse(BaseModel):
    """GET /api/v1/prompt -- what the generator accepts."""

    service: str
    version: str
    formats: dict[str, str]
    levels: dict[str, str]
    token_limits: dict[str, int]
    limits: dict[str, int]
    rate_limits: dict[str, dict]
