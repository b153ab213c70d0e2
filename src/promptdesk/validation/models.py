"""Data models for prompt and content validation."""

from dataclasses import asdict, dataclass, field


@dataclass
class ValidationOutcome:
    """Rule/compliance-based result.

    Attributes:
        is_valid: False when any hard error was found.
        errors: Hard failures (drive is_valid).
        warnings: Soft failures (reported, never block).
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass
class ChecklistOutcome:
    """Checklist-based result: which flattened items were recognised in the text."""

    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    total: int = 0
    score: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Scorecard:
    """The seven-point structural scorecard."""

    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    total_checks: int = 7
    score: int = 0

    @property
    def passed_checks(self) -> int:
        return len(self.passed)

    def to_dict(self) -> dict:
        return {
            "passed": list(self.passed),
            "failed": list(self.failed),
            "score": self.score,
            "totalChecks": self.total_checks,
            "passedChecks": self.passed_checks,
        }


@dataclass
class PromptQualityReport:
    """Quality-gate verdict for one generated prompt."""

    format: str
    level: str
    validation: ValidationOutcome = field(default_factory=ValidationOutcome)
    scorecard: Scorecard = field(default_factory=Scorecard)
    overall_score: int = 0
    checklist: ChecklistOutcome | None = None

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid

    def to_dict(self) -> dict:
        return {
            "format": self.format,
            "level": self.level,
            "validation": self.validation.to_dict(),
            "scorecard": self.scorecard.to_dict(),
            "overallScore": self.overall_score,
            "checklist": self.checklist.to_dict() if self.checklist else None,
        }


@dataclass
class ContentValidation:
    """Rule-pack based validation of arbitrary content."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    format: str = ""
    level: str = ""
    token_count: int = 0
    rulepack_version: str = "v1"

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "metadata": {
                "format": self.format,
                "level": self.level,
                "tokenCount": self.token_count,
                "rulepackVersion": self.rulepack_version,
            },
        }
