"""
RulePackLoader -- reads `<format>_<version>.yaml` rule-packs and caches them.

    loader = RulePackLoader(directory, cache=AssetCache("rulepacks"))
    pack = loader.load(OutputFormat.PRESS_RELEASE)      # cached for process lifetime
    pack.effective_sections(mode="policy")

Failures:
  - RulePackNotFound  -- unknown format or no file for that version
  - RulePackMalformed -- YAML error or schema violation
  - InvalidInput      -- a version that is not a plain file-name component
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as SchemaError

from ..errors import RulePackMalformed, RulePackNotFound
from .cache import AssetCache
from .models import OutputFormat, RulePack, check_version

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "v1"


class RulePackLoader:
    """Loads and validates format rule-packs from a directory of YAML files."""

    def __init__(self, directory: Path, cache: AssetCache | None = None):
        self._directory = Path(directory)
        self._cache = cache if cache is not None else AssetCache("rulepacks")

    @staticmethod
    def available_formats() -> list[OutputFormat]:
        return list(OutputFormat)

    @staticmethod
    def is_format_supported(fmt: str) -> bool:
        return fmt in {f.value for f in OutputFormat}

    def load(self, fmt: OutputFormat | str, version: str = DEFAULT_VERSION) -> RulePack:
        """Load one rule-pack, from cache when possible."""
        fmt_value = getattr(fmt, "value", fmt)
        if not self.is_format_supported(fmt_value):
            raise RulePackNotFound(
                f"지원하지 않는 형식입니다: {fmt_value}",
                details={"format": fmt_value, "availableFormats": [f.value for f in OutputFormat]},
            )
        check_version(version)
        key = f"{fmt_value}_{version}"
        return self._cache.get_or_load(key, lambda: self._read(fmt_value, version))

    def _read(self, fmt: str, version: str) -> RulePack:
        path = self._directory / f"{fmt}_{version}.yaml"
        if not path.is_file():
            raise RulePackNotFound(
                f"형식 정의를 찾을 수 없습니다: {fmt}_{version}",
                details={"format": fmt, "version": version},
            )
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error(f"[RulePack] YAML error in {path.name}: {e}")
            raise RulePackMalformed(
                f"형식 정의 파일을 읽을 수 없습니다: {fmt}_{version}",
                details={"format": fmt, "version": version},
            ) from e

        pack = self.validate(raw, source=path.name)
        unknown = pack.unknown_compliance_rules()
        if unknown:
            logger.debug(f"[RulePack] {pack.id}: unknown compliance rules {unknown} (shown verbatim)")
        logger.info(f"[RulePack] Loaded {pack.id} ({len(pack.required_sections)} sections)")
        return pack

    @staticmethod
    def validate(raw: object, source: str = "<memory>") -> RulePack:
        """Validate a parsed mapping against the rule-pack schema."""
        if not isinstance(raw, dict):
            raise RulePackMalformed(
                f"형식 정의 구조가 올바르지 않습니다: {source}",
                details={"source": source},
            )
        try:
            return RulePack.model_validate(raw)
        except SchemaError as e:
            fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            logger.error(f"[RulePack] Schema violation in {source}: {fields}")
            raise RulePackMalformed(
                f"형식 정의 구조가 올바르지 않습니다: {source}",
                details={"source": source, "fields": fields},
            ) from e

    def load_all(self, version: str = DEFAULT_VERSION) -> dict[OutputFormat, RulePack]:
        return {fmt: self.load(fmt, version) for fmt in OutputFormat}

    def preload(self, version: str = DEFAULT_VERSION) -> None:
        self.load_all(version)

    def effective_sections(
        self, fmt: OutputFormat | str, mode: str | None = None, version: str = DEFAULT_VERSION
    ) -> list[str]:
        return self.load(fmt, version).effective_sections(mode)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> dict:
        return self._cache.stats()
