"""Human-readable (Korean) names for formats, levels, sections and compliance rules.

Unknown keys display verbatim.
"""

FORMAT_NAMES: dict[str, str] = {
    "press_release": "보도자료",
    "speech": "연설문",
    "sns": "SNS 게시글",
    "inquiry": "자료제출",
    "report": "보고서",
    "media_scraping": "이슈 분석",
}

LEVEL_NAMES: dict[str, str] = {
    "basic": "기본",
    "intermediate": "중급",
    "advanced": "고급",
}

SECTION_NAMES: dict[str, str] = {
    "headline": "제목",
    "subhead": "부제",
    "lead": "리드 문단",
    "lede": "리드 문단",
    "body": "본문",
    "quote": "인용문",
    "background": "배경 정보",
    "contact": "연락처",
    "opening": "오프닝",
    "introduction": "도입부",
    "main_points": "주요 포인트",
    "conclusion": "결론",
    "closing": "마무리",
    "hook": "훅",
    "main_content": "메인 콘텐츠",
    "call_to_action": "행동 유도",
    "hashtags": "해시태그",
    "summary": "요약",
    "analysis": "분석",
    "appendix": "부록",
}

COMPLIANCE_RULE_DESCRIPTIONS: dict[str, str] = {
    "facts_required": "객관적 사실 기반 작성 필수",
    "source_required": "출처 및 근거 명시 필수",
    "objective_tone": "객관적 어조 유지",
    "no_exaggeration": "과장된 표현 금지",
    "evidence_based": "증거 기반 내용 작성",
    "accuracy_required": "정확성 검증 필수",
    "official_tone": "공식적 어조 유지",
    "character_limit": "글자 수 제한 준수",
    "platform_optimized": "플랫폼 최적화",
    "engaging_content": "흥미로운 내용 구성",
    "accurate_information": "정확한 정보 제공",
    "appropriate_hashtags": "적절한 해시태그 사용",
    "audience_appropriate": "청중에 적합한 내용",
    "clear_message": "명확한 메시지 전달",
    "logical_flow": "논리적 구성",
    "respectful_tone": "존중하는 어조",
    "complete_information": "완전한 정보 제공",
    "clear_structure": "명확한 구조",
    "contact_included": "연락처 정보 포함",
}

KNOWN_COMPLIANCE_RULES = frozenset(COMPLIANCE_RULE_DESCRIPTIONS)


def _key(value) -> str:
    return getattr(value, "value", value)


def format_name(fmt: str) -> str:
    return FORMAT_NAMES.get(_key(fmt), _key(fmt))


def level_name(level: str) -> str:
    return LEVEL_NAMES.get(_key(level), _key(level))


def section_name(section: str) -> str:
    return SECTION_NAMES.get(section, section)


def compliance_description(rule: str) -> str:
    return COMPLIANCE_RULE_DESCRIPTIONS.get(rule, rule)
