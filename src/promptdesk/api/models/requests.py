"""
Pydantic request models -- the API contract for the non-generation routes.

  POST /api/v1/prompt        -> UserInput (see inputs.py)
  POST /api/v1/rulepack      -> RulePackBulkRequest
  POST /api/v1/checklist     -> ChecklistScoreRequest
  POST /api/v1/validate      -> ContentValidationRequest
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...rulepacks.models import Level, OutputFormat
from ...security import validate_length, validate_not_empty

MAX_CONTENT_LENGTH = 20_000
MAX_BULK_FORMATS = 10


class RulePackBulkRequest(BaseModel):
    """Fetch several rule-packs at once."""

    formats: list[str] = Field(..., min_length=1, max_length=MAX_BULK_FORMATS)
    version: str = "v1"


class ChecklistScoreRequest(BaseModel):
    """Score content against the checklist for (format, level)."""

    content: str
    format: OutputFormat
    level: Level
    version: str = "v1"

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = validate_not_empty(v, "content")
        return validate_length(v, "content", max_length=MAX_CONTENT_LENGTH)


class ContentValidationRequest(BaseModel):
    """Validate arbitrary content against a rule-pack, optionally its checklist too."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    format: OutputFormat
    level: Level
    version: str = "v1"
    mode: str | None = None
    include_checklist: bool = Field(True, alias="includeChecklist")

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        v = validate_not_empty(v, "content")
        return validate_length(v, "content", max_length=MAX_CONTENT_LENGTH)
