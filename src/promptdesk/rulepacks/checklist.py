"""
Checklist store -- categorized review items per (format, level).

Checklists are Markdown files named `<format>_<level>_<version>.md`:

    # 보도자료 중급 검증 체크리스트        <- title, ignored
    ## 구조                               <- starts a category
    - [ ] 제목이 포함되어 있는가           <- item of the current category
    - [ ] 연락처 정보가 명시되어 있는가

Parsing rules:
  - `#` title lines and blank lines are ignored
  - `##` / `###` headers start a new category and reset the item accumulator
  - `- [ ]` lines append to the current category
  - a category with no items is dropped
  - duplicate category labels: the last one wins, keeping the first one's position
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from ..display import format_name, level_name
from ..errors import ChecklistNotFound
from ..validation.concepts import extract_concepts, text_contains_concept
from ..validation.models import ChecklistOutcome
from .cache import AssetCache
from .models import Level, OutputFormat, check_version

logger = logging.getLogger(__name__)

CATEGORY_HEADER = re.compile(r"^#{2,3}\s+")
UNCHECKED_ITEM = re.compile(r"^-\s+\[\s+\]\s+")

FORMATS = {f.value for f in OutputFormat}
LEVELS = {lv.value for lv in Level}


@dataclass(frozen=True)
class ChecklistCategory:
    category: str
    items: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {"category": self.category, "items": list(self.items)}


def parse_checklist(text: str) -> list[ChecklistCategory]:
    """Parse checklist Markdown into ordered categories."""
    categories: dict[str, ChecklistCategory] = {}
    current = ""
    items: list[str] = []

    def _flush() -> None:
        if current and items:
            categories[current] = ChecklistCategory(current, tuple(items))

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("# "):
            continue
        if CATEGORY_HEADER.match(stripped):
            _flush()
            current = CATEGORY_HEADER.sub("", stripped)
            items = []
            continue
        if stripped.startswith("- [ ]"):
            items.append(UNCHECKED_ITEM.sub("", stripped))

    _flush()
    return list(categories.values())


def flatten(checklist: list[ChecklistCategory]) -> list[str]:
    return [item for category in checklist for item in category.items]


def by_category(checklist: list[ChecklistCategory], category: str) -> list[str]:
    """Items of the first category whose label contains `category` (case-insensitive)."""
    needle = category.lower()
    for entry in checklist:
        if needle in entry.category.lower():
            return list(entry.items)
    return []


def score_content(content: str, items: list[str]) -> ChecklistOutcome:
    """Score content against flattened checklist items."""
    passed, failed = [], []
    for item in items:
        if text_contains_concept(content, extract_concepts(item)):
            passed.append(item)
        else:
            failed.append(item)
    total = len(items)
    score = round(len(passed) / total * 100) if total else 0
    return ChecklistOutcome(passed=passed, failed=failed, total=total, score=score)


class ChecklistLoader:
    """Loads, caches and queries checklists."""

    def __init__(self, directory: Path, cache: AssetCache | None = None):
        self._directory = Path(directory)
        self._cache = cache if cache is not None else AssetCache("checklists")

    def load(
        self, fmt: OutputFormat | str, level: Level | str, version: str = "v1"
    ) -> list[ChecklistCategory]:
        fmt_value = getattr(fmt, "value", fmt)
        level_value = getattr(level, "value", level)
        key = f"{fmt_value}_{level_value}_{version}"
        if fmt_value not in FORMATS or level_value not in LEVELS:
            raise ChecklistNotFound(
                f"체크리스트를 찾을 수 없습니다: {key}", details={"checklist": key}
            )
        check_version(version)
        return self._cache.get_or_load(key, lambda: self._read(key))

    def _read(self, key: str) -> list[ChecklistCategory]:
        path = self._directory / f"{key}.md"
        if not path.is_file():
            raise ChecklistNotFound(
                f"체크리스트를 찾을 수 없습니다: {key}", details={"checklist": key}
            )
        checklist = parse_checklist(path.read_text(encoding="utf-8"))
        logger.info(
            f"[Checklist] Loaded {key} "
            f"({len(checklist)} categories, {len(flatten(checklist))} items)"
        )
        return checklist

    def flat(self, fmt: OutputFormat | str, level: Level | str, version: str = "v1") -> list[str]:
        return flatten(self.load(fmt, level, version))

    def category(
        self, fmt: OutputFormat | str, level: Level | str, category: str, version: str = "v1"
    ) -> list[str]:
        return by_category(self.load(fmt, level, version), category)

    def metadata(self, fmt: OutputFormat | str, level: Level | str, version: str = "v1") -> dict:
        checklist = self.load(fmt, level, version)
        fmt_value = getattr(fmt, "value", fmt)
        level_value = getattr(level, "value", level)
        return {
            "title": f"{format_name(fmt_value)} {level_name(level_value)} 검증 체크리스트 {version}",
            "version": version,
            "format": fmt_value,
            "level": level_value,
            "categories": [c.category for c in checklist],
        }

    def evaluate(
        self, content: str, fmt: OutputFormat | str, level: Level | str, version: str = "v1"
    ) -> ChecklistOutcome:
        return score_content(content, self.flat(fmt, level, version))

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> dict:
        return self._cache.stats()
