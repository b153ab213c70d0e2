"""
AppContext -- the process-wide collaborators, built once at startup.

Every cache and store lives here and is passed explicitly to whoever needs it
(pipeline, routes, CLI). Tests build a fresh context per test, so there is no
hidden shared state to reset.

    context = build_context(load_settings())
    app = create_app(context)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .admission import MemoryStore, RateLimiter, default_policies
from .config import Settings, load_settings
from .llm import create_client
from .rulepacks import AssetCache, ChecklistLoader, RulePackLoader
from .tokens import TokenGovernor
from .validation.content import ContentValidator
from .validation.quality_gate import QualityGate, RegenerationPolicy

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    rule_packs: RulePackLoader
    checklists: ChecklistLoader
    governor: TokenGovernor
    rate_limiter: RateLimiter
    quality_gate: QualityGate
    regeneration: RegenerationPolicy
    content_validator: ContentValidator
    llm_client: Any = None
    clock: Callable[[], float] = time.time
    start_time: float = field(default_factory=time.time)

    def uptime_seconds(self) -> float:
        return self.clock() - self.start_time


def build_context(
    settings: Settings | None = None,
    llm_client: Any = None,
    clock: Callable[[], float] | None = None,
) -> AppContext:
    """Wire all collaborators from settings.

    Args:
        settings: Configuration (loaded from the environment when None).
        llm_client: Anything with an async call(prompt, role, temperature,
            max_tokens); created from settings when None.
        clock: Time source for the rate limiter and uptime (time.time by default).
    """
    settings = settings or load_settings()
    clock = clock or time.time

    rule_packs = RulePackLoader(settings.rulepack_dir, AssetCache("rulepacks"))
    checklists = ChecklistLoader(settings.checklist_dir, AssetCache("checklists"))
    governor = TokenGovernor(
        limits=settings.tokens.as_limits(),
        reserved_fraction=settings.tokens.reserved_fraction,
        hard_input_ceiling=settings.tokens.hard_input_ceiling,
        warning_threshold=settings.tokens.warning_threshold,
    )
    rate_limiter = RateLimiter(
        default_policies(settings.rate_limits),
        MemoryStore(clock=clock, sweep_interval=settings.rate_limits.sweep_interval),
    )

    if llm_client is None:
        try:
            llm_client = create_client(settings.llm)
        except Exception as e:
            logger.warning(f"[Context] LLM client init failed (non-fatal): {e}")

    context = AppContext(
        settings=settings,
        rule_packs=rule_packs,
        checklists=checklists,
        governor=governor,
        rate_limiter=rate_limiter,
        quality_gate=QualityGate(),
        regeneration=RegenerationPolicy(),
        content_validator=ContentValidator(rule_packs, governor),
        llm_client=llm_client,
        clock=clock,
        start_time=clock(),
    )
    logger.info(f"[Context] Built application context (env={settings.environment})")
    return context
