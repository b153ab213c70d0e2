"""Rule-packs and checklists -- static, versioned format definitions."""
from .cache import AssetCache
from .checklist import (
    ChecklistCategory,
    ChecklistLoader,
    by_category,
    flatten,
    parse_checklist,
    score_content,
)
from .loader import RulePackLoader
from .models import Level, Mode, OutputFormat, RulePack
