"""
Pipeline Evals -- one generation request end to end, model mocked.

Covers the success shape, regeneration, every failure path, and the
"no model call when over budget" guarantee.
"""

import pytest

from src.promptdesk.config import Settings, TokenSettings
from src.promptdesk.context import build_context
from src.promptdesk.errors import ErrorKind, UpstreamRateLimited, UpstreamTimeout
from src.promptdesk.inputs import UserInput
from src.promptdesk.pipeline import (
    CHECKLIST_PASS_SCORE,
    CHECKLIST_WARNING,
    REGENERATION_WARNING,
    PromptPipeline,
    new_request_id,
)
from src.promptdesk.tokens import estimate_tokens

from evals.conftest import GOOD_PROMPT, LEAKY_PROMPT, llm_response


def _input(**overrides):
    values = {"topic": "청년 창업 지원 정책 발표", "format": "press_release", "level": "intermediate"}
    values.update(overrides)
    return UserInput(**values)


@pytest.fixture
def pipeline(context):
    return PromptPipeline(context)


class TestSuccess:
    """Eval: a valid model answer becomes a complete success payload."""

    async def test_success_shape(self, pipeline, mock_llm):
        result = await pipeline.generate(_input(), request_id="req_test")
        assert result.ok
        assert result.request_id == "req_test"
        assert result.regenerations == 0
        mock_llm.call.assert_awaited_once()

        data = result.data
        assert data["prompt"] == GOOD_PROMPT
        meta = data["metadata"]
        assert meta["format"] == "press_release"
        assert meta["level"] == "intermediate"
        assert meta["tokenCount"] == estimate_tokens(GOOD_PROMPT)
        assert meta["rulepackId"] == "press_release_v1"
        assert meta["toneUsed"] == "public_official"
        assert meta["requestId"] == "req_test"
        assert data["rulepack"]["version"] == "v1"

    async def test_validation_block(self, pipeline):
        validation = (await pipeline.generate(_input())).data["validation"]
        assert validation["passed"] is True
        assert validation["score"] == 100
        assert validation["checklist"]["score"] >= 80
        assert validation["suggestions"] == []
        assert validation["scorecard"]["passedChecks"] == 7

    async def test_warnings_omitted_on_request(self, pipeline):
        validation = (await pipeline.generate(_input(options={"includeWarnings": False}))).data["validation"]
        assert set(validation) == {"passed", "score", "checklist"}

    async def test_payloads_sent_as_system_and_user(self, pipeline, mock_llm):
        await pipeline.generate(_input(options={"strictMode": True}, additional_requirements=["통계 포함"]))
        prompt = mock_llm.call.call_args.args[0]
        assert "엄격 모드" in prompt.system
        assert "• 통계 포함" in prompt.system
        assert "📌 주제: 청년 창업 지원 정책 발표" in prompt.user_message

    async def test_mode_reported_only_when_declared(self, pipeline):
        declared = await pipeline.generate(_input(mode="policy"))
        unknown = await pipeline.generate(_input(mode="foo"))
        assert declared.data["metadata"]["mode"] == "policy"
        assert unknown.data["metadata"]["mode"] is None

    def test_request_ids_unique(self):
        ids = {new_request_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("req_") for i in ids)


class TestRegeneration:
    """Eval: one regeneration on a hard failure, then return with warnings."""

    async def test_regenerates_once_then_passes(self, pipeline, mock_llm):
        mock_llm.call.side_effect = [llm_response(LEAKY_PROMPT), llm_response(GOOD_PROMPT)]
        result = await pipeline.generate(_input())
        assert result.ok
        assert result.regenerations == 1
        assert mock_llm.call.await_count == 2
        assert result.data["validation"]["passed"] is True

    async def test_second_failure_still_returns(self, pipeline, mock_llm):
        mock_llm.call.side_effect = [llm_response(LEAKY_PROMPT), llm_response(LEAKY_PROMPT)]
        result = await pipeline.generate(_input())
        assert result.ok
        assert mock_llm.call.await_count == 2
        validation = result.data["validation"]
        assert validation["passed"] is False
        assert validation["score"] == 60
        assert REGENERATION_WARNING in validation["warnings"]
        assert validation["suggestions"]

    async def test_same_payloads_on_regeneration(self, pipeline, mock_llm):
        mock_llm.call.side_effect = [llm_response(LEAKY_PROMPT), llm_response(GOOD_PROMPT)]
        await pipeline.generate(_input())
        first, second = mock_llm.call.call_args_list
        assert first.args[0] == second.args[0]


class TestChecklistGate:
    """Eval: a valid prompt still reports passed=False under the checklist threshold."""

    SHORT_VALID = "당신은 보도자료 작성 전문가입니다. 구성과 작성 원칙에 맞춰 작성해 주십시오."

    async def test_low_checklist_score_fails_passed(self, pipeline, mock_llm):
        mock_llm.call.return_value = llm_response(self.SHORT_VALID)
        result = await pipeline.generate(_input())
        validation = result.data["validation"]
        assert mock_llm.call.await_count == 1
        assert validation["score"] == 86
        assert validation["checklist"]["score"] < CHECKLIST_PASS_SCORE
        assert validation["passed"] is False
        assert CHECKLIST_WARNING in validation["warnings"]

    async def test_full_checklist_has_no_checklist_warning(self, pipeline):
        validation = (await pipeline.generate(_input())).data["validation"]
        assert CHECKLIST_WARNING not in validation["warnings"]


class TestFailures:
    """Eval: every failure ends as a GenerationResult with the right kind."""

    async def test_upstream_timeout(self, pipeline, mock_llm):
        mock_llm.call.side_effect = UpstreamTimeout()
        result = await pipeline.generate(_input())
        assert not result.ok
        assert result.error.kind == ErrorKind.UPSTREAM_TIMEOUT
        assert result.error.status_code == 504

    async def test_upstream_rate_limited(self, pipeline, mock_llm):
        mock_llm.call.side_effect = UpstreamRateLimited()
        result = await pipeline.generate(_input())
        assert result.error.kind == ErrorKind.UPSTREAM_RATE_LIMITED
        assert result.error.status_code == 503

    async def test_unexpected_error_is_internal(self, pipeline, mock_llm):
        mock_llm.call.side_effect = RuntimeError("boom")
        result = await pipeline.generate(_input())
        assert result.error.kind == ErrorKind.INTERNAL_ERROR
        assert "RuntimeError" in result.error.details["error"]

    async def test_no_client_configured(self, context):
        context.llm_client = None
        result = await PromptPipeline(context).generate(_input())
        assert result.error.kind == ErrorKind.UPSTREAM_ERROR
        assert result.error.details["reason"] == "NO_CLIENT"

    async def test_token_limit_skips_model_call(self, mock_llm, clock):
        settings = Settings(environment="test", tokens=TokenSettings(basic=50, intermediate=60, advanced=70))
        context = build_context(settings, llm_client=mock_llm, clock=clock)
        result = await PromptPipeline(context).generate(_input())
        assert result.error.kind == ErrorKind.TOKEN_LIMIT_EXCEEDED
        assert result.error.details["limit"] == 48
        assert result.error.details["suggestions"]
        mock_llm.call.assert_not_called()

    async def test_hard_ceiling_skips_model_call(self, mock_llm, clock):
        settings = Settings(
            environment="test",
            tokens=TokenSettings(basic=5000, intermediate=5000, advanced=5000, hard_input_ceiling=100),
        )
        context = build_context(settings, llm_client=mock_llm, clock=clock)
        result = await PromptPipeline(context).generate(_input())
        assert result.error.kind == ErrorKind.TOKEN_LIMIT_EXCEEDED
        assert result.error.details["limit"] == 100
        mock_llm.call.assert_not_called()

    async def test_missing_rule_pack(self, mock_llm, clock, tmp_path):
        settings = Settings(environment="test", rulepack_dir=tmp_path)
        context = build_context(settings, llm_client=mock_llm, clock=clock)
        result = await PromptPipeline(context).generate(_input())
        assert result.error.kind == ErrorKind.RULEPACK_NOT_FOUND
        mock_llm.call.assert_not_called()


class TestChecklistTolerance:
    """Eval: a missing checklist never fails the request."""

    async def test_missing_checklist(self, mock_llm, clock, tmp_path):
        settings = Settings(environment="test", checklist_dir=tmp_path)
        context = build_context(settings, llm_client=mock_llm, clock=clock)
        result = await PromptPipeline(context).generate(_input())
        assert result.ok
        assert result.data["validation"]["checklist"] is None
        assert result.data["validation"]["passed"] is True


class TestDirect:
    """Eval: the direct prompt needs no model call."""

    def test_direct(self, pipeline, mock_llm):
        result = pipeline.direct(_input(context="예산 확대"))
        assert result.ok
        assert "📌 주제: 청년 창업 지원 정책 발표" in result.data["prompt"]
        assert result.data["validation"]["passed"] is True
        mock_llm.call.assert_not_called()

    def test_direct_unknown_rule_pack(self, mock_llm, clock, tmp_path):
        context = build_context(Settings(environment="test", rulepack_dir=tmp_path), llm_client=mock_llm, clock=clock)
        result = PromptPipeline(context).direct(_input())
        assert result.error.kind == ErrorKind.RULEPACK_NOT_FOUND
