"""
Rule-pack data model -- one output format's required structure and style rules.

On disk a rule-pack is YAML with camelCase keys:

    id: press_release_v1
    type: formatPack
    requiredSections: [headline, lead, body, quote, contact]
    toneDefault: public_official
    dos: [...]
    donts: [...]
    structureHints: {headline: {maxCharacters: 60}}
    complianceRules: [facts_required, source_required]
    modes:                       # optional alternate section sets
      policy: {description: ..., requiredSections: [...]}

Models are frozen: a loaded pack is shared across requests and never mutated.
"""

import re
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..display import KNOWN_COMPLIANCE_RULES
from ..errors import InvalidInput

# Versions become part of an asset file name
VERSION_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,31}")


class OutputFormat(str, Enum):
    """The six supported document formats."""

    PRESS_RELEASE = "press_release"
    SPEECH = "speech"
    SNS = "sns"
    INQUIRY = "inquiry"
    REPORT = "report"
    MEDIA_SCRAPING = "media_scraping"


class Level(str, Enum):
    """Detail tier -- controls verbosity and the token ceiling."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    def next_lower(self) -> "Level | None":
        """The next lower tier, or None for basic."""
        order = [Level.BASIC, Level.INTERMEDIATE, Level.ADVANCED]
        index = order.index(self)
        return order[index - 1] if index > 0 else None


def check_version(version: str) -> str:
    """The version unchanged, or InvalidInput when it is not a plain name."""
    if not VERSION_PATTERN.fullmatch(version or ""):
        raise InvalidInput(
            f"버전 형식이 올바르지 않습니다: {version!r}",
            details={"field": "version", "version": version},
        )
    return version


class Mode(BaseModel):
    """A named alternate required-section set within one rule-pack."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str
    required_sections: list[str] = Field(..., alias="requiredSections")


class RulePack(BaseModel):
    """Versioned, static definition of one output format."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: Literal["formatPack"] = "formatPack"
    required_sections: list[str] = Field(..., alias="requiredSections", min_length=1)
    tone_default: str = Field(..., alias="toneDefault")
    dos: list[str]
    donts: list[str]
    structure_hints: dict[str, Any] = Field(..., alias="structureHints")
    compliance_rules: list[str] = Field(..., alias="complianceRules")
    modes: dict[str, Mode] | None = None

    @field_validator("required_sections")
    @classmethod
    def _sections_unique(cls, v: list[str]) -> list[str]:
        duplicates = sorted({s for s in v if v.count(s) > 1})
        if duplicates:
            raise ValueError(f"requiredSections has duplicate keys: {', '.join(duplicates)}")
        return v

    def effective_sections(self, mode: str | None = None) -> list[str]:
        """Mode's sections when the pack declares that mode, else the default list."""
        if self.modes and mode and mode in self.modes:
            return list(self.modes[mode].required_sections)
        return list(self.required_sections)

    def available_modes(self) -> dict[str, Mode]:
        return dict(self.modes or {})

    def default_mode(self) -> str | None:
        """First declared mode, if any."""
        if not self.modes:
            return None
        return next(iter(self.modes))

    def has_mode(self, mode: str) -> bool:
        return bool(self.modes) and mode in self.modes

    def unknown_compliance_rules(self) -> list[str]:
        """Compliance ids outside the known set (tolerated, rendered verbatim)."""
        return [r for r in self.compliance_rules if r not in KNOWN_COMPLIANCE_RULES]

    def summary(self, version: str) -> dict:
        """The compact rule-pack block returned with a generated prompt."""
        return {
            "id": self.id,
            "version": version,
            "requiredSections": list(self.required_sections),
            "complianceRules": list(self.compliance_rules),
        }
