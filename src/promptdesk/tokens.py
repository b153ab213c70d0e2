"""
Token estimation and budget governance.

estimate_tokens() is a conservative approximation, not the downstream model's
tokenizer: Hangul characters count 1 token per 2.5 chars, everything else
1 token per 4 chars, each part rounded up.

TokenGovernor enforces two gates before the model call:

  1. Level allowance -- floor(ceiling * (1 - reserved_fraction)); with the
     default 20% reservation basic/intermediate/advanced allow 240/480/720.
  2. Hard input ceiling -- 700 tokens regardless of level, applied right
     before dispatch in case a level ceiling is misconfigured upward.

Oversized payloads are rejected, never truncated. Actual usage reported by the
provider is written to the `promptdesk.usage` log for offline tuning; it never
affects the current request.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .display import level_name
from .errors import TokenLimitExceeded
from .rulepacks.models import Level, OutputFormat

logger = logging.getLogger(__name__)
usage_logger = logging.getLogger("promptdesk.usage")

HANGUL = re.compile(r"[\u3130-\u318F\uAC00-\uD7AF]")
DENSE_CHARS_PER_TOKEN = 2.5
LATIN_CHARS_PER_TOKEN = 4.0

DEFAULT_LIMITS = {"basic": 300, "intermediate": 600, "advanced": 900}
DEFAULT_RESERVED_FRACTION = 0.2
DEFAULT_HARD_INPUT_CEILING = 700
DEFAULT_WARNING_THRESHOLD = 0.8

# USD per 1M tokens
DEFAULT_PRICING = {"input": 0.15, "output": 0.60}

COMPLETION_ESTIMATES: dict[str, dict[str, int]] = {
    "press_release": {"basic": 150, "intermediate": 250, "advanced": 350},
    "speech": {"basic": 200, "intermediate": 300, "advanced": 450},
    "sns": {"basic": 50, "intermediate": 100, "advanced": 150},
    "inquiry": {"basic": 180, "intermediate": 280, "advanced": 400},
    "report": {"basic": 250, "intermediate": 400, "advanced": 550},
    "media_scraping": {"basic": 120, "intermediate": 200, "advanced": 300},
}
DEFAULT_COMPLETION_ESTIMATE = 200


def estimate_tokens(text: str) -> int:
    """Script-aware estimate, rounded up."""
    if not text:
        return 0
    dense = len(HANGUL.findall(text))
    other = len(text) - dense
    return math.ceil(dense / DENSE_CHARS_PER_TOKEN) + math.ceil(other / LATIN_CHARS_PER_TOKEN)


def estimate_tokens_uniform(text: str, chars_per_token: float = DENSE_CHARS_PER_TOKEN) -> int:
    """Fallback estimate without script partitioning."""
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class TokenUsage:
    """Token counts for one model call (actual when reported by the provider)."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0

    def __post_init__(self):
        if not self.total_tokens:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass
class BudgetCheck:
    """Pre-call verdict for one assembled payload."""

    allowed: bool
    estimated: int
    allowance: int
    ceiling: int
    remaining: int
    estimated_completion_tokens: int = 0
    estimated_cost_usd: float = 0.0
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


# =============================================================================
# GOVERNOR
# =============================================================================


class TokenGovernor:
    """Enforces per-level token ceilings and records actual usage.

    Usage:
        governor = TokenGovernor()
        check = governor.check(instruction, task, OutputFormat.SNS, Level.BASIC)
        if not check.allowed:
            print(check.suggestions)
    """

    def __init__(
        self,
        limits: dict[str, int] | None = None,
        reserved_fraction: float = DEFAULT_RESERVED_FRACTION,
        hard_input_ceiling: int = DEFAULT_HARD_INPUT_CEILING,
        warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
        pricing: dict[str, float] | None = None,
    ):
        self._limits = dict(limits or DEFAULT_LIMITS)
        self._reserved_fraction = reserved_fraction
        self._hard_input_ceiling = hard_input_ceiling
        self._warning_threshold = warning_threshold
        self._pricing = dict(pricing or DEFAULT_PRICING)

    def limits(self) -> dict[str, int]:
        return dict(self._limits)

    def ceiling(self, level: Level | str) -> int:
        return self._limits[getattr(level, "value", level)]

    def allowance(self, level: Level | str) -> int:
        """Input-side allowance: the ceiling minus the completion reservation."""
        return math.floor(self.ceiling(level) * (1 - self._reserved_fraction))

    @property
    def hard_input_ceiling(self) -> int:
        return self._hard_input_ceiling

    def estimate_completion_tokens(self, fmt: OutputFormat | str, level: Level | str) -> int:
        fmt_value = getattr(fmt, "value", fmt)
        level_value = getattr(level, "value", level)
        return COMPLETION_ESTIMATES.get(fmt_value, {}).get(level_value, DEFAULT_COMPLETION_ESTIMATE)

    def cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        return (
            prompt_tokens / 1_000_000 * self._pricing["input"]
            + completion_tokens / 1_000_000 * self._pricing["output"]
        )

    def check(
        self,
        instruction: str,
        task: str,
        fmt: OutputFormat | str,
        level: Level | str,
        request_id: str = "",
    ) -> BudgetCheck:
        """Estimate the combined payload and compare it with the level allowance."""
        level = Level(getattr(level, "value", level))
        estimated = estimate_tokens(instruction + task)
        ceiling = self.ceiling(level)
        allowance = self.allowance(level)
        allowed = estimated <= allowance
        completion = self.estimate_completion_tokens(fmt, level)

        warnings: list[str] = []
        suggestions: list[str] = []
        if not allowed:
            warnings.append(
                f"프롬프트 토큰이 {level_name(level)} 레벨 한도를 초과했습니다 ({estimated}/{allowance})"
            )
            suggestions.append("주제를 더 간결하게 작성해보세요")
            suggestions.append("배경 정보를 줄여보세요")
            lower = level.next_lower()
            if lower is not None:
                suggestions.append(f"{level_name(lower)} 레벨로 변경해보세요")
        elif estimated > allowance * self._warning_threshold:
            warnings.append(f"토큰 사용량이 높습니다 ({estimated}/{allowance})")
            suggestions.append("더 나은 성능을 위해 내용을 줄여보세요")

        if estimated + completion > ceiling * 0.9:
            warnings.append(f"예상 총 토큰이 한도에 가깝습니다 ({estimated + completion}/{ceiling})")

        result = BudgetCheck(
            allowed=allowed,
            estimated=estimated,
            allowance=allowance,
            ceiling=ceiling,
            remaining=max(0, allowance - estimated),
            estimated_completion_tokens=completion,
            estimated_cost_usd=self.cost(estimated, completion),
            warnings=warnings,
            suggestions=suggestions,
        )
        self._log(
            {
                "type": "estimate",
                "requestId": request_id,
                "format": getattr(fmt, "value", fmt),
                "level": level.value,
                "estimated": estimated,
                "allowance": allowance,
                "allowed": allowed,
            },
            level=logging.DEBUG,
        )
        return result

    def enforce(
        self,
        instruction: str,
        task: str,
        fmt: OutputFormat | str,
        level: Level | str,
        request_id: str = "",
    ) -> BudgetCheck:
        """check(), raising TokenLimitExceeded when the payload is over its allowance."""
        result = self.check(instruction, task, fmt, level, request_id)
        if not result.allowed:
            logger.info(
                f"[TokenGovernor] [{request_id}] Rejected: {result.estimated} > {result.allowance}"
            )
            raise TokenLimitExceeded(result.estimated, result.allowance, result.suggestions)
        return result

    def enforce_hard_ceiling(self, instruction: str, task: str) -> int:
        """Last gate before dispatch, independent of level."""
        estimated = estimate_tokens(instruction + task)
        if estimated > self._hard_input_ceiling:
            raise TokenLimitExceeded(
                estimated,
                self._hard_input_ceiling,
                ["주제를 더 간결하게 작성해보세요", "배경 정보를 줄여보세요"],
            )
        return estimated

    def record_usage(
        self, request_id: str, usage: TokenUsage, response_time_ms: float = 0.0
    ) -> TokenUsage:
        """Write actual provider usage to the usage log. Returns usage with cost filled in."""
        usage.estimated_cost_usd = self.cost(usage.prompt_tokens, usage.completion_tokens)
        self._log(
            {
                "type": "actual",
                "requestId": request_id,
                "promptTokens": usage.prompt_tokens,
                "completionTokens": usage.completion_tokens,
                "totalTokens": usage.total_tokens,
                "estimatedCost": round(usage.estimated_cost_usd, 8),
                "processingTime": round(response_time_ms),
            }
        )
        return usage

    def _log(self, record: dict, level: int = logging.INFO) -> None:
        record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        usage_logger.log(level, json.dumps(record, ensure_ascii=False))
