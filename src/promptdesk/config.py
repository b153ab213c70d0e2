"""
Settings -- environment-driven configuration with safe defaults.

Every value has a documented default and a tolerant parser: a malformed
environment value logs a warning and falls back to the default instead of
failing startup.

    TOKEN_LIMIT_BASIC=300          per-level token ceilings
    TOKEN_LIMIT_INTERMEDIATE=600
    TOKEN_LIMIT_ADVANCED=900
    TOKEN_RESERVED_FRACTION=0.2    share of the ceiling kept for the completion
    TOKEN_HARD_INPUT_CEILING=700   absolute cap on what is sent upstream
    LLM_PROVIDER / LLM_MODEL / LLM_TIMEOUT=60 / LLM_TEMPERATURE / LLM_MAX_TOKENS
    RATE_LIMIT_DEFAULT=100 per RATE_LIMIT_DEFAULT_WINDOW=900 seconds
    RATE_LIMIT_BURST=5 per RATE_LIMIT_BURST_WINDOW=60 seconds
    RATE_LIMIT_STRICT=10 per RATE_LIMIT_STRICT_WINDOW=60 seconds
    RULEPACK_DIR / CHECKLIST_DIR   asset directory overrides
    PROMPTDESK_ENV (or ENV)        production (default) | staging | development | test
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent / "assets"
DEFAULT_RULEPACK_DIR = ASSETS_DIR / "rulepacks" / "format"
DEFAULT_CHECKLIST_DIR = ASSETS_DIR / "checklists"

DEVELOPMENT_ENVIRONMENTS = ("development", "dev", "local", "test")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not an integer, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not a number, using {default}")
        return default


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


@dataclass
class TokenSettings:
    """Per-level ceilings and the pre-call budget parameters."""

    basic: int = 300
    intermediate: int = 600
    advanced: int = 900
    reserved_fraction: float = 0.2
    hard_input_ceiling: int = 700
    warning_threshold: float = 0.8

    def as_limits(self) -> dict[str, int]:
        return {
            "basic": self.basic,
            "intermediate": self.intermediate,
            "advanced": self.advanced,
        }


@dataclass
class LLMSettings:
    """External model call parameters (completion size is owned here, not by the budget)."""

    provider: str | None = None
    model: str | None = None
    timeout: float = 60.0
    temperature: float = 0.7
    max_tokens: int = 2000


@dataclass
class RateLimitSettings:
    default_max: int = 100
    default_window: float = 15 * 60
    burst_max: int = 5
    burst_window: float = 60
    strict_max: int = 10
    strict_window: float = 60
    sweep_interval: float = 5 * 60


@dataclass
class Settings:
    """Process-wide configuration, built once at startup."""

    environment: str = "production"
    tokens: TokenSettings = field(default_factory=TokenSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    rate_limits: RateLimitSettings = field(default_factory=RateLimitSettings)
    rulepack_dir: Path = DEFAULT_RULEPACK_DIR
    checklist_dir: Path = DEFAULT_CHECKLIST_DIR
    default_version: str = "v1"
    cors_origins: list[str] = field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:8000",
        ]
    )

    @property
    def is_development(self) -> bool:
        """Development-like modes return internal error detail to callers."""
        return self.environment.lower() in DEVELOPMENT_ENVIRONMENTS


def load_settings() -> Settings:
    """Build Settings from the environment."""
    environment = os.environ.get(
        "PROMPTDESK_ENV", os.environ.get("ENV", "production")
    ).strip() or "production"

    tokens = TokenSettings(
        basic=_env_int("TOKEN_LIMIT_BASIC", 300),
        intermediate=_env_int("TOKEN_LIMIT_INTERMEDIATE", 600),
        advanced=_env_int("TOKEN_LIMIT_ADVANCED", 900),
        reserved_fraction=_env_float("TOKEN_RESERVED_FRACTION", 0.2),
        hard_input_ceiling=_env_int("TOKEN_HARD_INPUT_CEILING", 700),
        warning_threshold=_env_float("TOKEN_WARNING_THRESHOLD", 0.8),
    )
    llm = LLMSettings(
        provider=os.environ.get("LLM_PROVIDER", "").strip() or None,
        model=os.environ.get("LLM_MODEL", "").strip() or None,
        timeout=_env_float("LLM_TIMEOUT", 60.0),
        temperature=_env_float("LLM_TEMPERATURE", 0.7),
        max_tokens=_env_int("LLM_MAX_TOKENS", 2000),
    )
    rate_limits = RateLimitSettings(
        default_max=_env_int("RATE_LIMIT_DEFAULT", 100),
        default_window=_env_float("RATE_LIMIT_DEFAULT_WINDOW", 15 * 60),
        burst_max=_env_int("RATE_LIMIT_BURST", 5),
        burst_window=_env_float("RATE_LIMIT_BURST_WINDOW", 60),
        strict_max=_env_int("RATE_LIMIT_STRICT", 10),
        strict_window=_env_float("RATE_LIMIT_STRICT_WINDOW", 60),
        sweep_interval=_env_float("RATE_LIMIT_SWEEP_INTERVAL", 5 * 60),
    )

    settings = Settings(
        environment=environment,
        tokens=tokens,
        llm=llm,
        rate_limits=rate_limits,
        rulepack_dir=Path(_env_str("RULEPACK_DIR", str(DEFAULT_RULEPACK_DIR))),
        checklist_dir=Path(_env_str("CHECKLIST_DIR", str(DEFAULT_CHECKLIST_DIR))),
    )

    origins_env = os.environ.get("CORS_ORIGINS", "")
    if origins_env.strip():
        settings.cors_origins = [o.strip() for o in origins_env.split(",") if o.strip()]

    return settings


def configure_logging(level: str | int = "INFO") -> None:
    """Single stream handler for the service; idempotent."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(handler)
