"""
QualityGate -- scores a generated prompt on a seven-point structural scorecard.

Checks (equal weight, score = round(passed / 7 * 100)):
  1. 역할 정의 포함     role-assignment phrase AND a role noun      (hard error)
  2. 메타 지시문 없음   no phrase revealing the text is about
                        generating a prompt                         (hard error)
  3. 주제 특화 맞춤형   no generic qualifier AND longer than min_length
  4. 형식 명시          the format's display name appears
  5. 구조 가이드라인    a structure keyword appears
  6. 작성 지침 포함     a guidance keyword appears
  7. 실행 가능한 지시   an imperative "write/create/generate" form appears

Checks 1-2 drive is_valid; the rest are warnings. An invalid prompt never
scores above 60 regardless of the other checks.

The phrase lists are data (PhraseLists), matched case-insensitively as plain
substrings.
"""

import logging
from dataclasses import dataclass, field

from ..display import format_name
from ..rulepacks.models import Level, OutputFormat
from .models import PromptQualityReport, Scorecard, ValidationOutcome

logger = logging.getLogger(__name__)

TOTAL_CHECKS = 7
INVALID_SCORE_CAP = 60
DEFAULT_MIN_LENGTH = 500

CHECK_ROLE = "역할 정의 포함"
CHECK_NO_META = "메타 지시문 없음"
CHECK_SPECIFIC = "주제 특화 맞춤형"
CHECK_FORMAT = "형식 명시"
CHECK_STRUCTURE = "구조 가이드라인"
CHECK_GUIDANCE = "작성 지침 포함"
CHECK_ACTION = "실행 가능한 지시"


@dataclass
class PhraseLists:
    """Configurable phrase lists. Defaults reproduce the established behaviour."""

    meta_leaks: list[str] = field(
        default_factory=lambda: [
            "프롬프트를 생성",
            "프롬프트를 출력",
            "위 모든 항목을 반영한",
            "작성용 프롬프트를",
            "출력하십시오",
            "생성해주세요",
            "만들어주세요",
            "프롬프트 생성 과정",
        ]
    )
    generic: list[str] = field(
        default_factory=lambda: ["일반적인", "보편적인", "표준적인", "평범한"]
    )
    role_assignment: list[str] = field(default_factory=lambda: ["당신은"])
    role_nouns: list[str] = field(default_factory=lambda: ["전문가", "작성자"])
    structure: list[str] = field(default_factory=lambda: ["구조", "구성", "섹션", "형식"])
    guidance: list[str] = field(
        default_factory=lambda: ["작성 원칙", "지침", "요구사항", "주의사항"]
    )
    action: list[str] = field(default_factory=lambda: ["작성해", "만들어", "생성해"])


def _found(text_lower: str, phrases: list[str]) -> list[str]:
    return [p for p in phrases if p.lower() in text_lower]


class QualityGate:
    """Validates one generated prompt against the structural scorecard.

    Usage:
        gate = QualityGate()
        report = gate.evaluate(text, OutputFormat.PRESS_RELEASE, Level.INTERMEDIATE)
        report.is_valid, report.overall_score
    """

    def __init__(self, phrases: PhraseLists | None = None, min_length: int = DEFAULT_MIN_LENGTH):
        self.phrases = phrases or PhraseLists()
        self.min_length = min_length

    def evaluate(
        self, text: str, fmt: OutputFormat | str, level: Level | str
    ) -> PromptQualityReport:
        text = text or ""
        lowered = text.lower()
        fmt_name = format_name(fmt)
        errors: list[str] = []
        warnings: list[str] = []
        passed: list[str] = []
        failed: list[str] = []

        def record(name: str, ok: bool) -> None:
            (passed if ok else failed).append(name)

        has_role = bool(_found(lowered, self.phrases.role_assignment)) and bool(
            _found(lowered, self.phrases.role_nouns)
        )
        record(CHECK_ROLE, has_role)
        if not has_role:
            errors.append("프롬프트에 명확한 역할 정의가 없습니다.")

        leaks = _found(lowered, self.phrases.meta_leaks)
        record(CHECK_NO_META, not leaks)
        if leaks:
            errors.append(f"메타 지시문 발견: {', '.join(leaks)}")

        specific = not _found(lowered, self.phrases.generic) and len(text) > self.min_length
        record(CHECK_SPECIFIC, specific)
        if not specific:
            warnings.append("주제에 특화된 맞춤형 내용이 부족해 보입니다.")

        named = fmt_name.lower() in lowered
        record(CHECK_FORMAT, named)
        if not named:
            warnings.append(f"{fmt_name} 형식이 명시되지 않았습니다.")

        structured = bool(_found(lowered, self.phrases.structure))
        record(CHECK_STRUCTURE, structured)
        if not structured:
            warnings.append("구조나 구성에 대한 가이드라인이 부족합니다.")

        guided = bool(_found(lowered, self.phrases.guidance))
        record(CHECK_GUIDANCE, guided)
        if not guided:
            warnings.append("구체적인 작성 지침이나 요구사항이 부족합니다.")

        actionable = bool(_found(lowered, self.phrases.action))
        record(CHECK_ACTION, actionable)
        if not actionable:
            warnings.append("명확한 실행 지시가 없습니다.")

        score = round(len(passed) / TOTAL_CHECKS * 100)
        is_valid = not errors
        overall = score if is_valid else min(score, INVALID_SCORE_CAP)

        if not is_valid:
            logger.debug(f"[QualityGate] Invalid prompt ({len(errors)} errors, score {overall})")

        return PromptQualityReport(
            format=getattr(fmt, "value", fmt),
            level=getattr(level, "value", level),
            validation=ValidationOutcome(is_valid=is_valid, errors=errors, warnings=warnings),
            scorecard=Scorecard(passed=passed, failed=failed, total_checks=TOTAL_CHECKS, score=score),
            overall_score=overall,
        )


@dataclass
class RegenerationPolicy:
    """At most max_regenerations extra model calls after a hard validation failure."""

    max_regenerations: int = 1

    def should_regenerate(self, report: PromptQualityReport, regenerations: int) -> bool:
        return not report.is_valid and regenerations < self.max_regenerations
