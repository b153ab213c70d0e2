"""
Prompt assembly -- deterministic composition of the two model payloads.

  instruction payload (system role): what kind of prompt to produce and the
      rules it must carry -- role, required sections, dos, don'ts, generic
      guidance, compliance rules, extra requirements, strict mode, closing.
  task payload (user role): the concrete topic, level and context.

Both are plain ordered line concatenation. Optional blocks are present or
absent; nothing reorders. No clock, randomness or I/O: identical input gives
byte-identical output.

assemble_direct_prompt() builds a finished prompt straight from the rule-pack,
without a model call.
"""

from dataclasses import dataclass, field

from ..display import compliance_description, format_name, level_name, section_name
from ..rulepacks.models import Level, OutputFormat, RulePack

DEFAULT_TONE = "public_official"


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class InstructionConfig:
    """Inputs of the instruction payload.

    Attributes:
        rule_pack: Loaded rule-pack for the target format.
        format: Target format (display name goes into the role line).
        level: Detail tier.
        token_ceiling: The level's ceiling, interpolated into the guidance.
        tone: Requested tone id (reported in metadata, not rendered).
        mode: Optional rule-pack mode selecting an alternate section set.
        additional_requirements: Free-text bullets, already bounded upstream.
        strict_mode: Adds the source-citation sentence.
    """

    rule_pack: RulePack
    format: OutputFormat
    level: Level
    token_ceiling: int
    tone: str = DEFAULT_TONE
    mode: str | None = None
    additional_requirements: list[str] = field(default_factory=list)
    strict_mode: bool = False


@dataclass
class TaskConfig:
    """Inputs of the task payload."""

    format: OutputFormat
    level: Level
    topic: str
    context: str | None = None
    tone: str | None = None
    mode: str | None = None
    additional_requirements: list[str] = field(default_factory=list)


@dataclass
class AssemblyResult:
    """The two payloads sent to the model. Lives for one request only."""

    instruction: str
    task: str

    @property
    def combined(self) -> str:
        return self.instruction + self.task


# =============================================================================
# ASSEMBLY
# =============================================================================


def _bullets(items: list[str]) -> list[str]:
    return [f"• {item}" for item in items]


def assemble_instruction(config: InstructionConfig) -> str:
    """Instruction payload, sections (a) to (i) in fixed order."""
    fmt = format_name(config.format)
    sections = config.rule_pack.effective_sections(config.mode)

    lines = [
        f"당신은 국회 보좌진용 {fmt} 프롬프트 생성 전문가입니다.",
        "",
        "📋 필수 구성:",
        *_bullets([section_name(s) for s in sections]),
        "",
        "✅ 작성 원칙:",
        *_bullets(config.rule_pack.dos),
        "",
        "❌ 금지사항:",
        *_bullets(config.rule_pack.donts),
        "",
        "🎯 생성 지침:",
        "1. 주제 분야 분석",
        "2. 전문가 역할 정의",
        "3. 분야별 핵심 질문 포함",
        "4. 전문 용어 명시",
        f"5. {level_name(config.level)} 수준에 맞춤",
        f"6. {config.token_ceiling}토큰 이내 작성 지시",
    ]

    if config.rule_pack.compliance_rules:
        lines += ["", "🔒 준수사항:"]
        lines += _bullets([compliance_description(r) for r in config.rule_pack.compliance_rules])

    if config.additional_requirements:
        lines += ["", "🎯 특별 요구사항:"]
        lines += _bullets(config.additional_requirements)

    if config.strict_mode:
        lines += ["", "⚠️ 엄격 모드: 출처 명시와 사실 검증을 요구하는 지침을 반드시 포함하세요."]

    lines += [
        "",
        "설명 없이 바로 붙여 넣을 프롬프트 텍스트만 출력하세요.",
    ]
    return "\n".join(lines)


def assemble_task(config: TaskConfig) -> str:
    """Task payload: the concrete topic and conditions."""
    lines = [
        f"{format_name(config.format)} 작성용 맞춤형 프롬프트를 생성해주세요:",
        "",
        f"📌 주제: {config.topic}",
        f"📊 수준: {level_name(config.level)}",
    ]
    if config.context:
        lines.append(f"📄 배경상황: {config.context}")

    if config.additional_requirements:
        lines += ["", "🎯 추가 요구사항:"]
        lines += _bullets(config.additional_requirements)

    lines += [
        "",
        "분야별 전문 용어와 고려사항을 반영하세요.",
    ]
    return "\n".join(lines)


def assemble(instruction: InstructionConfig, task: TaskConfig) -> AssemblyResult:
    return AssemblyResult(
        instruction=assemble_instruction(instruction),
        task=assemble_task(task),
    )


def assemble_direct_prompt(config: InstructionConfig, topic: str, context: str | None = None) -> str:
    """A finished, model-free prompt built from the rule-pack alone."""
    fmt = format_name(config.format)
    sections = config.rule_pack.effective_sections(config.mode)

    lines = [
        f"당신은 전문적인 {fmt} 작성 전문가입니다.",
        f"다음 주제와 조건에 맞춰 높은 품질의 {fmt}을(를) 작성해주세요.",
        "",
        "📋 필수 구성 요소:",
        *_bullets([section_name(s) for s in sections]),
        "",
        "✅ 작성 원칙:",
        *_bullets(config.rule_pack.dos),
        "",
        "❌ 금지사항:",
        *_bullets(config.rule_pack.donts),
        "",
        "📝 작성 가이드:",
        "• 전문적이고 공식적인 어조 유지",
        f"• {config.token_ceiling}토큰 이내 분량으로 작성",
        "• 한국어로 작성",
        "• 한국 공공 커뮤니케이션 표준 준수",
        "• 구체적이고 실무적인 내용 포함",
    ]

    if config.rule_pack.compliance_rules:
        lines += ["", "🔒 준수사항:"]
        lines += _bullets([compliance_description(r) for r in config.rule_pack.compliance_rules])

    if config.additional_requirements:
        lines += ["", "🎯 추가 요구사항:"]
        lines += _bullets(config.additional_requirements)

    if config.strict_mode:
        lines += ["", "⚠️ 모든 주장에 대해 출처와 근거를 명시하고 사실 검증을 철저히 하세요."]

    lines += ["", f"📌 주제: {topic}"]
    if context:
        lines.append(f"📄 배경상황: {context}")

    lines += ["", "위 조건에 맞춰 작성해주세요."]
    return "\n".join(lines)
