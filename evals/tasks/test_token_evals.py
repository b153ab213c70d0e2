"""
Token Evals -- estimation, level allowances, hard ceiling, usage log.

CODE-BASED graders: estimates are deterministic, so expected counts are exact.
"""

import json
import logging

import pytest

from src.promptdesk.errors import ErrorKind, TokenLimitExceeded
from src.promptdesk.rulepacks.models import Level, OutputFormat
from src.promptdesk.tokens import TokenGovernor, TokenUsage, estimate_tokens, estimate_tokens_uniform


class TestEstimation:
    """Eval: Hangul at 2.5 chars/token, everything else at 4, each rounded up."""

    def test_latin_text(self):
        assert estimate_tokens("a" * 200) == 50
        assert estimate_tokens("a" * 1000) == 250
        assert estimate_tokens("abc") == 1

    def test_hangul_text(self):
        assert estimate_tokens("가나다라마") == 2
        assert estimate_tokens("가" * 10) == 4

    def test_mixed_parts_rounded_separately(self):
        assert estimate_tokens("가나 ab") == 2

    def test_empty(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens_uniform("") == 0

    def test_uniform_fallback(self):
        assert estimate_tokens_uniform("a" * 10) == 4


class TestAllowances:
    """Eval: allowance = floor(ceiling * 0.8) per level."""

    def test_default_allowances(self):
        governor = TokenGovernor()
        assert [governor.allowance(l) for l in Level] == [240, 480, 720]
        assert governor.ceiling("intermediate") == 600

    def test_custom_limits(self):
        governor = TokenGovernor(limits={"basic": 100, "intermediate": 200, "advanced": 333})
        assert governor.allowance(Level.ADVANCED) == 266


class TestBudgetCheck:
    """Eval: payloads over the allowance are rejected with suggestions."""

    def test_small_payload_allowed(self):
        check = TokenGovernor().check("a" * 200, "", OutputFormat.SNS, Level.BASIC)
        assert check.allowed
        assert check.estimated == 50
        assert check.remaining == 190
        assert check.suggestions == []

    def test_large_payload_rejected(self):
        check = TokenGovernor().check("a" * 1000, "", OutputFormat.SNS, Level.BASIC)
        assert not check.allowed
        assert check.estimated == 250
        assert check.allowance == 240
        assert check.remaining == 0
        assert "주제를 더 간결하게 작성해보세요" in check.suggestions

    def test_lower_level_suggested_above_basic(self):
        check = TokenGovernor().check("a" * 2000, "", "sns", "intermediate")
        assert not check.allowed
        assert "기본 레벨로 변경해보세요" in check.suggestions

    def test_near_limit_warns(self):
        check = TokenGovernor().check("a" * 800, "", OutputFormat.SNS, Level.BASIC)
        assert check.allowed
        assert any("토큰 사용량이 높습니다" in w for w in check.warnings)

    def test_instruction_and_task_counted_together(self):
        check = TokenGovernor().check("a" * 600, "a" * 400, OutputFormat.SNS, Level.BASIC)
        assert check.estimated == 250
        assert not check.allowed

    def test_completion_estimate_per_format(self):
        governor = TokenGovernor()
        assert governor.estimate_completion_tokens(OutputFormat.PRESS_RELEASE, Level.BASIC) == 150
        assert governor.estimate_completion_tokens("unknown", "basic") == 200


class TestEnforcement:
    """Eval: enforce() raises TOKEN_LIMIT_EXCEEDED, never truncates."""

    def test_enforce_raises_with_details(self):
        with pytest.raises(TokenLimitExceeded) as exc:
            TokenGovernor().enforce("a" * 1000, "", OutputFormat.SNS, Level.BASIC)
        assert exc.value.kind == ErrorKind.TOKEN_LIMIT_EXCEEDED
        assert exc.value.details["tokenCount"] == 250
        assert exc.value.details["limit"] == 240
        assert exc.value.details["suggestions"]

    def test_hard_ceiling_independent_of_level(self):
        governor = TokenGovernor(limits={"basic": 5000, "intermediate": 5000, "advanced": 5000})
        assert governor.check("a" * 2804, "", "report", "advanced").allowed
        with pytest.raises(TokenLimitExceeded) as exc:
            governor.enforce_hard_ceiling("a" * 2804, "")
        assert exc.value.allowance == 700

    def test_hard_ceiling_allows_at_limit(self):
        assert TokenGovernor().enforce_hard_ceiling("a" * 2800, "") == 700


class TestUsageLog:
    """Eval: actual usage goes to the promptdesk.usage log as JSON."""

    def test_record_usage(self, caplog):
        caplog.set_level(logging.INFO, logger="promptdesk.usage")
        usage = TokenGovernor().record_usage(
            "req_1", TokenUsage(prompt_tokens=1_000_000, completion_tokens=1_000_000), 42.4
        )
        assert usage.total_tokens == 2_000_000
        assert usage.estimated_cost_usd == pytest.approx(0.75)

        records = [json.loads(r.getMessage()) for r in caplog.records if r.name == "promptdesk.usage"]
        actual = [r for r in records if r["type"] == "actual"]
        assert actual[-1]["requestId"] == "req_1"
        assert actual[-1]["processingTime"] == 42
