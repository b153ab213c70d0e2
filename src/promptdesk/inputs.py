"""
UserInput -- the validated prompt-generation request.

Bounds are enforced at the boundary; nothing downstream re-checks them:

    topic                    required, trimmed, 1-200 chars
    format, level            closed enums
    context                  optional, <= 500 chars
    tone                     default "public_official"
    mode                     optional rule-pack mode name
    additionalRequirements   <= 5 items, each <= 100 chars
    options                  includeWarnings (True), strictMode (False),
                             customTone (<= 50 chars)

Both snake_case and the camelCase wire names are accepted.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .assembly import DEFAULT_TONE
from .rulepacks.models import Level, OutputFormat
from .security import (
    scan_fields,
    validate_length,
    validate_list_size,
    validate_no_control_chars,
    validate_not_empty,
)

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 200
MAX_CONTEXT_LENGTH = 500
MAX_REQUIREMENTS = 5
MAX_REQUIREMENT_LENGTH = 100
MAX_CUSTOM_TONE_LENGTH = 50


class RequestOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_warnings: bool = Field(True, alias="includeWarnings")
    strict_mode: bool = Field(False, alias="strictMode")
    custom_tone: str | None = Field(None, alias="customTone")

    @field_validator("custom_tone")
    @classmethod
    def _custom_tone(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return validate_length(v.strip(), "customTone", max_length=MAX_CUSTOM_TONE_LENGTH) or None


class UserInput(BaseModel):
    """One prompt-generation request, immutable once validated."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    topic: str
    format: OutputFormat
    level: Level
    context: str | None = None
    tone: str = DEFAULT_TONE
    mode: str | None = None
    additional_requirements: list[str] = Field(
        default_factory=list, alias="additionalRequirements"
    )
    options: RequestOptions = Field(default_factory=RequestOptions)

    @field_validator("topic")
    @classmethod
    def _topic(cls, v: str) -> str:
        v = validate_not_empty(v, "topic")
        validate_length(v, "topic", min_length=1, max_length=MAX_TOPIC_LENGTH)
        validate_no_control_chars(v, "topic")
        return v

    @field_validator("context")
    @classmethod
    def _context(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        validate_length(v, "context", max_length=MAX_CONTEXT_LENGTH)
        validate_no_control_chars(v, "context")
        return v

    @field_validator("tone")
    @classmethod
    def _tone(cls, v: str | None) -> str:
        return (v or "").strip() or DEFAULT_TONE

    @field_validator("mode")
    @classmethod
    def _mode(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("additional_requirements")
    @classmethod
    def _requirements(cls, v: list[str]) -> list[str]:
        validate_list_size(v, "additionalRequirements", max_items=MAX_REQUIREMENTS)
        cleaned = []
        for item in v:
            item = item.strip()
            if not item:
                continue
            validate_length(item, "additionalRequirements", max_length=MAX_REQUIREMENT_LENGTH)
            validate_no_control_chars(item, "additionalRequirements")
            cleaned.append(item)
        return cleaned

    @model_validator(mode="after")
    def _screen(self) -> "UserInput":
        """Log injection-like text in the interpolated fields. Never blocks."""
        fields = {"topic": self.topic, "context": self.context}
        for i, item in enumerate(self.additional_requirements):
            fields[f"additionalRequirements.{i}"] = item
        flagged = scan_fields(fields)
        if flagged:
            logger.info(f"[Inputs] Accepted with injection findings in {sorted(flagged)}")
        return self

    @property
    def tone_used(self) -> str:
        return self.options.custom_tone or self.tone
