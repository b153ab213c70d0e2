"""Validation -- quality gate for generated prompts, rule-pack checks for content."""
from .concepts import extract_concepts, text_contains_concept
from .models import (
    ChecklistOutcome,
    ContentValidation,
    PromptQualityReport,
    Scorecard,
    ValidationOutcome,
)
