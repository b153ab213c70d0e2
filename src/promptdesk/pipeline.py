"""
PromptPipeline -- one prompt-generation request from input to response data.

Flow:
  1. rule-pack lookup          RulePackNotFound / RulePackMalformed
  2. assembly                  instruction + task payloads (pure)
  3. level budget              TokenLimitExceeded, no model call
  4. hard input ceiling        TokenLimitExceeded, no model call
  5. model call                UpstreamTimeout / UpstreamRateLimited / UpstreamError
  6. quality gate              a hard failure triggers one regeneration with the
                               same payloads; a second failure still returns the
                               prompt with warnings attached
  7. checklist scoring         skipped when no checklist exists
  8. usage log                 actual provider usage, offline only

Components raise PromptDeskError; generate() converts every outcome into a
GenerationResult, so callers never see an exception for an expected failure.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .assembly import InstructionConfig, TaskConfig, assemble, assemble_direct_prompt
from .context import AppContext
from .errors import ChecklistNotFound, PromptDeskError, ServiceError, UpstreamError, to_service_error
from .inputs import UserInput
from .llm import CacheablePrompt
from .tokens import estimate_tokens
from .validation.models import ChecklistOutcome, PromptQualityReport

logger = logging.getLogger(__name__)

CHECKLIST_PASS_SCORE = 80
CHECKLIST_WARNING = "일부 체크리스트 항목이 통과하지 못했습니다."
REVIEW_SUGGESTION = "내용을 검토하고 수정해보세요."
REGENERATION_WARNING = "재생성 후에도 품질 검증을 통과하지 못했습니다."


@dataclass
class GenerationResult:
    """Success XOR failure for one request."""

    request_id: str
    data: dict[str, Any] | None = None
    error: ServiceError | None = None
    regenerations: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, request_id: str, data: dict[str, Any], regenerations: int = 0) -> "GenerationResult":
        return cls(request_id=request_id, data=data, regenerations=regenerations)

    @classmethod
    def failure(cls, request_id: str, error: ServiceError) -> "GenerationResult":
        return cls(request_id=request_id, error=error)


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:16]}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PromptPipeline:
    """Runs generation requests against one AppContext.

    Usage:
        pipeline = PromptPipeline(context)
        result = await pipeline.generate(UserInput(topic=..., format=..., level=...))
        if result.ok:
            result.data["prompt"]
    """

    def __init__(self, context: AppContext):
        self._ctx = context

    def build_configs(self, user_input: UserInput, pack) -> tuple[InstructionConfig, TaskConfig]:
        instruction = InstructionConfig(
            rule_pack=pack,
            format=user_input.format,
            level=user_input.level,
            token_ceiling=self._ctx.governor.ceiling(user_input.level),
            tone=user_input.tone_used,
            mode=user_input.mode,
            additional_requirements=list(user_input.additional_requirements),
            strict_mode=user_input.options.strict_mode,
        )
        task = TaskConfig(
            format=user_input.format,
            level=user_input.level,
            topic=user_input.topic,
            context=user_input.context,
            tone=user_input.tone_used,
            mode=user_input.mode,
            additional_requirements=list(user_input.additional_requirements),
        )
        return instruction, task

    async def generate(self, user_input: UserInput, request_id: str | None = None) -> GenerationResult:
        request_id = request_id or new_request_id()
        try:
            return await self._generate(user_input, request_id)
        except PromptDeskError as e:
            logger.info(f"[Pipeline] [{request_id}] Failed: {e.kind.value}")
            return GenerationResult.failure(request_id, e.error)
        except Exception as e:
            logger.exception(f"[Pipeline] [{request_id}] Unexpected error: {type(e).__name__}")
            return GenerationResult.failure(request_id, to_service_error(e))

    async def _generate(self, user_input: UserInput, request_id: str) -> GenerationResult:
        started = time.perf_counter()
        ctx = self._ctx
        version = ctx.settings.default_version
        fmt, level = user_input.format, user_input.level

        pack = ctx.rule_packs.load(fmt, version)
        instruction_config, task_config = self.build_configs(user_input, pack)
        payloads = assemble(instruction_config, task_config)

        budget = ctx.governor.enforce(payloads.instruction, payloads.task, fmt, level, request_id)
        ctx.governor.enforce_hard_ceiling(payloads.instruction, payloads.task)

        if ctx.llm_client is None:
            raise UpstreamError("AI 서비스가 설정되지 않았습니다.", details={"reason": "NO_CLIENT"})

        prompt = CacheablePrompt(system=payloads.instruction, user_message=payloads.task)
        logger.info(
            f"[Pipeline] [{request_id}] {fmt.value}/{level.value}: "
            f"payload {budget.estimated}/{budget.allowance} tokens"
        )

        text, report = await self._call_and_check(prompt, user_input, request_id)
        regenerations = 0
        while ctx.regeneration.should_regenerate(report, regenerations):
            regenerations += 1
            logger.info(
                f"[Pipeline] [{request_id}] Quality gate failed "
                f"({'; '.join(report.validation.errors)}), regenerating"
            )
            text, report = await self._call_and_check(prompt, user_input, request_id)

        checklist = self._checklist(text, fmt, level, version, request_id)
        elapsed_ms = round((time.perf_counter() - started) * 1000)

        data = {
            "prompt": text,
            "metadata": {
                "format": fmt.value,
                "level": level.value,
                "tokenCount": estimate_tokens(text),
                "estimatedOutputTokens": budget.estimated_completion_tokens,
                "rulepackId": pack.id,
                "toneUsed": user_input.tone_used,
                "mode": user_input.mode if pack.has_mode(user_input.mode or "") else None,
                "generatedAt": _now_iso(),
                "processingTimeMs": elapsed_ms,
                "requestId": request_id,
            },
            "validation": self._validation_block(
                report, checklist, budget.warnings, regenerations, user_input.options.include_warnings
            ),
            "rulepack": pack.summary(version),
        }
        logger.info(
            f"[Pipeline] [{request_id}] Done in {elapsed_ms}ms "
            f"(score {report.overall_score}, regenerations {regenerations})"
        )
        return GenerationResult.success(request_id, data, regenerations)

    async def _call_and_check(
        self, prompt: CacheablePrompt, user_input: UserInput, request_id: str
    ) -> tuple[str, PromptQualityReport]:
        ctx = self._ctx
        llm = ctx.settings.llm
        response = await ctx.llm_client.call(
            prompt,
            role="prompt_generation",
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
        )
        ctx.governor.record_usage(request_id, response.usage, response.latency_ms)
        text = response.content.strip()
        report = ctx.quality_gate.evaluate(text, user_input.format, user_input.level)
        return text, report

    def _checklist(self, text: str, fmt, level, version: str, request_id: str) -> ChecklistOutcome | None:
        try:
            return self._ctx.checklists.evaluate(text, fmt, level, version)
        except ChecklistNotFound:
            logger.debug(f"[Pipeline] [{request_id}] No checklist for {fmt.value}/{level.value}")
            return None

    @staticmethod
    def _validation_block(
        report: PromptQualityReport,
        checklist: ChecklistOutcome | None,
        budget_warnings: list[str],
        regenerations: int,
        include_warnings: bool,
    ) -> dict:
        passed = report.is_valid
        if checklist is not None:
            passed = passed and checklist.score >= CHECKLIST_PASS_SCORE

        block: dict[str, Any] = {
            "passed": passed,
            "score": report.overall_score,
            "checklist": checklist.to_dict() if checklist else None,
        }
        if not include_warnings:
            return block

        warnings = list(report.validation.errors) + list(report.validation.warnings)
        if checklist is not None and checklist.score < CHECKLIST_PASS_SCORE:
            warnings.append(CHECKLIST_WARNING)
        if regenerations and not report.is_valid:
            warnings.append(REGENERATION_WARNING)
        warnings.extend(budget_warnings)
        block["warnings"] = warnings
        block["suggestions"] = [REVIEW_SUGGESTION] if report.validation.errors else []
        block["scorecard"] = report.scorecard.to_dict()
        return block

    def direct(self, user_input: UserInput, request_id: str | None = None) -> GenerationResult:
        """Build a finished prompt from the rule-pack alone, without a model call."""
        request_id = request_id or new_request_id()
        try:
            ctx = self._ctx
            version = ctx.settings.default_version
            pack = ctx.rule_packs.load(user_input.format, version)
            instruction_config, _ = self.build_configs(user_input, pack)
            text = assemble_direct_prompt(instruction_config, user_input.topic, user_input.context)
            report = ctx.quality_gate.evaluate(text, user_input.format, user_input.level)
            data = {
                "prompt": text,
                "metadata": {
                    "format": user_input.format.value,
                    "level": user_input.level.value,
                    "tokenCount": estimate_tokens(text),
                    "rulepackId": pack.id,
                    "toneUsed": user_input.tone_used,
                    "generatedAt": _now_iso(),
                    "requestId": request_id,
                },
                "validation": {
                    "passed": report.is_valid,
                    "score": report.overall_score,
                    "warnings": list(report.validation.errors) + list(report.validation.warnings),
                },
                "rulepack": pack.summary(version),
            }
            return GenerationResult.success(request_id, data)
        except PromptDeskError as e:
            return GenerationResult.failure(request_id, e.error)
