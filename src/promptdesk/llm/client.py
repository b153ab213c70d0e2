"""
Provider-agnostic LLM client for the prompt-generation call.

One call per request attempt: the instruction payload goes out as the system
message, the task payload as the user message, and the completion text comes
back with the usage the provider reported.

    client = create_client(LLMSettings(timeout=60))
    response = await client.call(
        CacheablePrompt(system=instruction, user_message=task),
        role="prompt_generation",
        temperature=0.7,
        max_tokens=2000,
    )

Providers are adapters over the official async SDKs (OpenAI by default,
Anthropic). SDK retries are disabled and the whole call is bounded by
asyncio.wait_for; a failure surfaces as UpstreamTimeout, UpstreamRateLimited
or UpstreamError and the caller may resend the whole request.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any

from ..config import LLMSettings
from ..errors import PromptDeskError, UpstreamError, UpstreamRateLimited, UpstreamTimeout
from ..security.prompt_guard import sanitize_for_prompt
from ..tokens import TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_PROMPT_LENGTH = 20_000

# SDK exception class names, matched by name so neither SDK is imported here
TIMEOUT_ERRORS = {"APITimeoutError", "TimeoutException", "ReadTimeout", "Timeout"}
RATE_LIMIT_ERRORS = {"RateLimitError"}


@dataclass
class CacheablePrompt:
    """The two payloads of one call. `system` is stable per format and level."""

    system: str = ""
    user_message: str = ""

    @property
    def total_length(self) -> int:
        return len(self.system) + len(self.user_message)


@dataclass
class LLMResponse:
    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    provider: str = ""
    latency_ms: float = 0.0
    finish_reason: str | None = None


# =============================================================================
# PROVIDER ADAPTERS
# =============================================================================


class ProviderAdapter:
    """Wraps one SDK client. Subclasses fill in the class attributes and complete()."""

    name = ""
    api_key_env = ""
    model_env = ""
    fallback_model = ""

    def __init__(self, api_key: str):
        self.sdk: Any = self.connect(api_key)

    @classmethod
    def default_model(cls) -> str:
        return os.environ.get(cls.model_env, cls.fallback_model)

    def connect(self, api_key: str) -> Any:
        raise NotImplementedError

    async def complete(
        self, model: str, prompt: CacheablePrompt, temperature: float, max_tokens: int
    ) -> LLMResponse:
        raise NotImplementedError


class OpenAIAdapter(ProviderAdapter):
    name = "openai"
    api_key_env = "OPENAI_API_KEY"
    model_env = "OPENAI_MODEL"
    fallback_model = "gpt-4o-mini"

    def connect(self, api_key: str) -> Any:
        import openai

        return openai.AsyncOpenAI(api_key=api_key, max_retries=0)

    async def complete(self, model, prompt, temperature, max_tokens) -> LLMResponse:
        messages = [{"role": "user", "content": prompt.user_message}]
        if prompt.system:
            messages.insert(0, {"role": "system", "content": prompt.system})

        completion = await self.sdk.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not completion.choices:
            raise UpstreamError("AI 응답을 받지 못했습니다.", details={"reason": "NO_CHOICES"})
        choice = completion.choices[0]
        text = choice.message.content or ""
        if not text.strip():
            raise UpstreamError("AI 응답이 비어 있습니다.", details={"reason": "NO_CONTENT"})

        reported = completion.usage
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                prompt_tokens=getattr(reported, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(reported, "completion_tokens", 0) or 0,
            ),
            model=model,
            provider=self.name,
            finish_reason=choice.finish_reason,
        )


class AnthropicAdapter(ProviderAdapter):
    """The instruction payload is sent as a cacheable system block."""

    name = "anthropic"
    api_key_env = "ANTHROPIC_API_KEY"
    model_env = "ANTHROPIC_MODEL"
    fallback_model = "claude-sonnet-4-20250514"

    def connect(self, api_key: str) -> Any:
        import anthropic

        return anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    async def complete(self, model, prompt, temperature, max_tokens) -> LLMResponse:
        extra = {}
        if prompt.system:
            extra["system"] = [
                {"type": "text", "text": prompt.system, "cache_control": {"type": "ephemeral"}}
            ]

        message = await self.sdk.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt.user_message}],
            **extra,
        )
        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        if not text.strip():
            raise UpstreamError("AI 응답이 비어 있습니다.", details={"reason": "NO_CONTENT"})

        reported = message.usage
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                prompt_tokens=getattr(reported, "input_tokens", 0) or 0,
                completion_tokens=getattr(reported, "output_tokens", 0) or 0,
            ),
            model=model,
            provider=self.name,
            finish_reason=message.stop_reason,
        )


PROVIDERS: dict[str, type[ProviderAdapter]] = {
    OpenAIAdapter.name: OpenAIAdapter,
    AnthropicAdapter.name: AnthropicAdapter,
}


# =============================================================================
# CLIENT
# =============================================================================


class LLMClient:
    """
    Timeout-bounded, error-mapped access to one provider.

    Usage:
        client = LLMClient(provider="anthropic", timeout=30)
        response = await client.call(prompt, role="prompt_generation")
    """

    def __init__(
        self,
        provider: str = "openai",
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        adapter_cls = PROVIDERS.get(provider.lower())
        if adapter_cls is None:
            raise ValueError(f"Unsupported provider: {provider}")

        if not api_key:
            api_key = os.environ.get(adapter_cls.api_key_env, "")
            if not api_key:
                logger.warning(f"[LLM] {adapter_cls.api_key_env} not set -- calls will fail")

        self._adapter = adapter_cls(api_key)
        self._model = model or adapter_cls.default_model()
        self._timeout = timeout
        self._payload_limit = max_prompt_length // 2
        logger.info(f"[LLM] {adapter_cls.name} client ready (model={self._model}, timeout={timeout}s)")

    @property
    def provider(self) -> str:
        return self._adapter.name

    @property
    def model(self) -> str:
        return self._model

    @property
    def adapter(self) -> ProviderAdapter:
        return self._adapter

    def bounded(self, prompt: CacheablePrompt) -> CacheablePrompt:
        """Each payload capped at half of max_prompt_length, null bytes removed."""
        return CacheablePrompt(
            system=sanitize_for_prompt(prompt.system, max_length=self._payload_limit),
            user_message=sanitize_for_prompt(prompt.user_message, max_length=self._payload_limit),
        )

    async def call(
        self,
        prompt: CacheablePrompt,
        role: str = "prompt_generation",
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """
        One provider call, cancelled when the timeout expires.

        Raises:
            UpstreamTimeout: no answer within the timeout.
            UpstreamRateLimited: the provider answered 429.
            UpstreamError: any other provider failure, or an empty completion.
        """
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._adapter.complete(self._model, self.bounded(prompt), temperature, max_tokens),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"[LLM] {self.provider}/{role}: no answer after {self._timeout}s")
            raise UpstreamTimeout(details={"timeoutSeconds": self._timeout}) from e
        except PromptDeskError:
            raise
        except Exception as e:
            raise self._translate(e) from e

        response.latency_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"[LLM] {self.provider}/{role}: {response.usage.prompt_tokens} in, "
            f"{response.usage.completion_tokens} out ({response.latency_ms:.0f}ms, "
            f"finish={response.finish_reason})"
        )
        return response

    def _translate(self, error: Exception) -> PromptDeskError:
        name = type(error).__name__
        status = getattr(error, "status_code", None)
        if name in TIMEOUT_ERRORS:
            logger.warning(f"[LLM] {self.provider} timeout ({name})")
            return UpstreamTimeout(details={"timeoutSeconds": self._timeout})
        if name in RATE_LIMIT_ERRORS or status == 429:
            logger.warning(f"[LLM] {self.provider} rate limited")
            return UpstreamRateLimited(details={"provider": self.provider})

        logger.error(f"[LLM] {self.provider} call failed: {name}")
        details: dict[str, Any] = {"provider": self.provider, "error": name}
        if status is not None:
            details["status"] = status
        return UpstreamError(details=details)


def create_client(settings: LLMSettings | None = None, api_key: str | None = None) -> LLMClient:
    """
    Client for the configured provider.

    LLM_PROVIDER wins; otherwise the first provider whose API key is set
    (OpenAI, then Anthropic); otherwise OpenAI.
    """
    settings = settings or LLMSettings()
    provider = settings.provider
    if provider is None:
        provider = next(
            (name for name, cls in PROVIDERS.items() if os.environ.get(cls.api_key_env)),
            OpenAIAdapter.name,
        )
        logger.debug(f"[LLM] Provider auto-detected: {provider}")

    return LLMClient(
        provider=provider,
        model=settings.model,
        api_key=api_key,
        timeout=settings.timeout,
    )
