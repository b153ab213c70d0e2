"""
ContentValidator -- checks arbitrary content against a format's rule-pack.

Used by the content-validation endpoint. Checks run in this order:

  1. token count against the level ceiling               (error)
  2. required sections, by keyword presence              (error)
  3. compliance rules with a known heuristic             (error)
  4. structure hints: maxLines / maxCharacters / maxCount (warning)

Compliance ids without a heuristic are accepted silently.
"""

import logging
import re

from ..rulepacks.loader import DEFAULT_VERSION, RulePackLoader
from ..rulepacks.models import Level, OutputFormat, RulePack
from ..tokens import TokenGovernor, estimate_tokens
from .models import ContentValidation

logger = logging.getLogger(__name__)

SECTION_KEYWORDS: dict[str, list[str]] = {
    "headline": ["제목", "헤드라인", "표제"],
    "subhead": ["부제", "소제목"],
    "lead": ["리드", "서론", "개요"],
    "lede": ["리드", "서론", "개요"],
    "body": ["본문", "내용", "상세"],
    "quote": ["인용", "발언", "말씀"],
    "background": ["배경", "경위", "현황"],
    "contact": ["연락처", "문의", "담당"],
    "opening": ["인사", "개회", "시작"],
    "introduction": ["소개", "도입", "서론"],
    "main_points": ["주요", "핵심", "요점"],
    "conclusion": ["결론", "마무리", "정리"],
    "closing": ["마감", "종료", "감사"],
    "hook": ["훅", "도입부", "시작"],
    "main_content": ["주요내용", "본문", "핵심"],
    "call_to_action": ["행동촉구", "참여", "요청"],
    "hashtags": ["해시태그", "#"],
    "summary": ["요약", "개요", "정리"],
    "analysis": ["분석", "검토", "평가"],
    "appendix": ["부록", "첨부", "참고"],
}

# (pattern, must_match, message)
COMPLIANCE_CHECKS: dict[str, tuple[re.Pattern, bool, str]] = {
    "facts_required": (
        re.compile(r"\d{4}년|\d+%|\d+명|\d+건|통계|자료|조사|연구"),
        True,
        "객관적 사실 기반 내용이 부족합니다",
    ),
    "source_required": (
        re.compile(r"출처|자료|참고|근거|기준|법령|조례|규정"),
        True,
        "출처나 근거가 명시되지 않았습니다",
    ),
    "objective_tone": (
        re.compile(r"아마도|추측|생각|느낌|개인적|주관적"),
        False,
        "객관적 어조가 유지되지 않았습니다",
    ),
    "no_exaggeration": (
        re.compile(r"매우|극도로|엄청|대단히|놀랍게|획기적|혁신적|최고|최대|최소"),
        False,
        "과장된 표현이 포함되어 있습니다",
    ),
    "evidence_based": (
        re.compile(r"증명|입증|확인|검증|사례|예시|데이터|결과|분석"),
        True,
        "충분한 근거나 증거가 제시되지 않았습니다",
    ),
    "official_tone": (
        re.compile(r"ㅋ|ㅎ|~|!!|요즘|막|진짜|완전"),
        False,
        "공식적인 어조가 유지되지 않았습니다",
    ),
}

HASHTAG = re.compile(r"#\w+")


def section_present(content: str, section: str) -> bool:
    keywords = SECTION_KEYWORDS.get(section, [section])
    return any(keyword in content for keyword in keywords)


def extract_section_content(content: str, section: str) -> str:
    """Lines following the first line that mentions the section, up to the next header."""
    keywords = SECTION_KEYWORDS.get(section, [section])
    collected: list[str] = []
    inside = False
    for line in content.splitlines():
        if not inside:
            if any(keyword in line for keyword in keywords):
                inside = True
            continue
        if line.startswith("#") or "##" in line:
            break
        collected.append(line)
    return "\n".join(collected).strip()


def check_compliance(content: str, rules: list[str]) -> list[str]:
    errors = []
    for rule in rules:
        check = COMPLIANCE_CHECKS.get(rule)
        if check is None:
            continue
        pattern, must_match, message = check
        if bool(pattern.search(content)) != must_match:
            errors.append(message)
    return errors


def check_structure_hints(content: str, pack: RulePack) -> list[str]:
    warnings = []
    for section, hints in pack.structure_hints.items():
        if not isinstance(hints, dict):
            continue
        body = extract_section_content(content, section)
        max_lines = hints.get("maxLines")
        if max_lines and body and len(body.splitlines()) > max_lines:
            warnings.append(f"{section} 섹션이 권장 줄 수({max_lines})를 초과했습니다")
        max_chars = hints.get("maxCharacters")
        if max_chars and len(body) > max_chars:
            warnings.append(f"{section} 섹션이 권장 글자 수({max_chars})를 초과했습니다")
        max_count = hints.get("maxCount")
        if section == "hashtags" and max_count:
            count = len(HASHTAG.findall(content))
            if count > max_count:
                warnings.append(f"해시태그가 권장 개수({max_count})를 초과했습니다")
    return warnings


class ContentValidator:
    """Rule-pack based validation of user-supplied content.

    Usage:
        validator = ContentValidator(loader, governor)
        result = validator.validate(text, OutputFormat.SNS, Level.BASIC)
    """

    def __init__(self, rule_packs: RulePackLoader, governor: TokenGovernor):
        self._rule_packs = rule_packs
        self._governor = governor

    def validate(
        self,
        content: str,
        fmt: OutputFormat | str,
        level: Level | str,
        version: str = DEFAULT_VERSION,
        mode: str | None = None,
    ) -> ContentValidation:
        pack = self._rule_packs.load(fmt, version)
        errors: list[str] = []

        token_count = estimate_tokens(content)
        ceiling = self._governor.ceiling(level)
        if token_count > ceiling:
            errors.append(f"Token count ({token_count}) exceeds limit ({ceiling})")

        missing = [s for s in pack.effective_sections(mode) if not section_present(content, s)]
        if missing:
            errors.append(f"Missing required sections: {', '.join(missing)}")

        errors.extend(check_compliance(content, pack.compliance_rules))
        warnings = check_structure_hints(content, pack)

        logger.debug(
            f"[ContentValidator] {pack.id}: {len(errors)} errors, {len(warnings)} warnings"
        )
        return ContentValidation(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            format=getattr(fmt, "value", fmt),
            level=getattr(level, "value", level),
            token_count=token_count,
            rulepack_version=version,
        )
