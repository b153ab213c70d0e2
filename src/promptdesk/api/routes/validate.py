"""
Content validation API.

  POST /api/v1/validate  -- Rule-pack checks on arbitrary content, plus the checklist score
  GET  /api/v1/validate  -- Formats, levels and compliance rules the validator knows
"""

import logging

from fastapi import APIRouter, Request

from ...display import COMPLIANCE_RULE_DESCRIPTIONS, FORMAT_NAMES, LEVEL_NAMES
from ...errors import ChecklistNotFound
from ...validation.content import COMPLIANCE_CHECKS
from ..models.requests import ContentValidationRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/validate")
async def validate_content(body: ContentValidationRequest, request: Request) -> dict:
    context = request.app.state.context
    result = context.content_validator.validate(
        body.content, body.format, body.level, body.version, body.mode
    )

    checklist = None
    if body.include_checklist:
        try:
            checklist = context.checklists.evaluate(body.content, body.format, body.level, body.version)
        except ChecklistNotFound:
            logger.debug(f"[API] No checklist for {body.format.value}/{body.level.value}")

    return {
        "validation": result.to_dict(),
        "checklist": checklist.to_dict() if checklist else None,
    }


@router.get("/validate")
async def validation_options(request: Request) -> dict:
    return {
        "formats": dict(FORMAT_NAMES),
        "levels": dict(LEVEL_NAMES),
        "tokenLimits": request.app.state.context.governor.limits(),
        "complianceRules": {
            rule: {"description": description, "checked": rule in COMPLIANCE_CHECKS}
            for rule, description in COMPLIANCE_RULE_DESCRIPTIONS.items()
        },
    }
