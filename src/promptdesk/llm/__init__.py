"""
LLM Client -- provider-agnostic wrapper for the prompt-generation call.

Supports OpenAI (GPT) and Anthropic (Claude).
Handles timeouts, error mapping, token usage and prompt sanitization.

Usage:
    from .llm import CacheablePrompt, create_client

    client = create_client()  # Auto-detects provider from env
    response = await client.call(CacheablePrompt(system=..., user_message=...))
    print(response.content)
"""

from .client import (
    PROVIDERS,
    AnthropicAdapter,
    CacheablePrompt,
    LLMClient,
    LLMResponse,
    OpenAIAdapter,
    ProviderAdapter,
    create_client,
)
