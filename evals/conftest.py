"""Eval test fixtures -- mock LLM, fake clock, fresh application context per test."""

import pytest
from unittest.mock import AsyncMock

from src.promptdesk.config import Settings
from src.promptdesk.context import build_context
from src.promptdesk.llm import LLMResponse
from src.promptdesk.tokens import TokenUsage

GOOD_PROMPT = """당신은 청년 창업 정책을 담당하는 국회 보좌진 출신 보도자료 작성 전문가입니다.
아래 지침에 따라 '청년 창업 지원 정책 발표' 보도자료를 작성해 주십시오.

[구성]
1. 제목: 정책의 핵심 성과를 40자 이내로 요약
2. 부제: 지원 대상과 규모를 한 문장으로 제시
3. 리드 문단: 누가, 언제, 어디서, 무엇을, 왜, 어떻게 발표했는지 육하원칙으로 서술
4. 본문: 청년 창업 현황 통계(중소벤처기업부 2024년 자료 등)와 지원 내용, 기대 효과를 단락별로 정리
5. 인용문: 의원의 발언을 따옴표로 분리하여 정책 취지를 설명
6. 연락처: 담당 보좌관 이름, 전화번호, 이메일

[작성 원칙]
- 모든 수치에는 출처를 괄호로 표기하십시오
- 공식적인 어조와 객관적 서술 방식을 유지하십시오
- 창업 초기 자금, 멘토링, 규제 샌드박스 등 분야 전문 용어를 정확히 사용하십시오
- 지원 대상 연령, 업력 기준, 지원 한도를 표로 정리해도 좋습니다
- 지역별 창업 지원센터와의 연계 방안을 한 단락으로 설명하십시오

[주의사항]
- 확인되지 않은 성과를 단정하지 마십시오
- 타 정당이나 기관을 비방하지 마십시오
- 과장된 수식어 대신 구체적 수치로 설명하십시오

위 구조와 원칙에 맞추어 600토큰 이내로 작성해 주십시오."""

LEAKY_PROMPT = GOOD_PROMPT + "\n\n위 모든 항목을 반영한 보도자료 작성용 프롬프트를 생성해주세요."


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def llm_response(content: str = GOOD_PROMPT) -> LLMResponse:
    return LLMResponse(
        content=content,
        usage=TokenUsage(prompt_tokens=320, completion_tokens=410),
        model="mock-model",
        provider="mock",
        latency_ms=12.0,
        finish_reason="stop",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_llm():
    """Mock LLM client that returns a known-good prompt without API calls."""
    client = AsyncMock()
    client.call.return_value = llm_response()
    return client


@pytest.fixture
def settings():
    return Settings(environment="test")


@pytest.fixture
def context(settings, mock_llm, clock):
    """Fresh context per test: no shared caches or rate-limit windows."""
    return build_context(settings, llm_client=mock_llm, clock=clock)


@pytest.fixture
def api_client(context):
    from fastapi.testclient import TestClient

    from src.promptdesk.api.gateway import create_app

    return TestClient(create_app(context))
