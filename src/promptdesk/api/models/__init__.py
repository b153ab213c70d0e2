"""Pydantic models for API request/response contracts."""
from .requests import ChecklistScoreRequest, ContentValidationRequest, RulePackBulkRequest
from .responses import AssetCheck, HealthResponse, ServiceInfoResponse
