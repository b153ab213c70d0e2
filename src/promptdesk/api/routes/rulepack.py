"""
Rule-pack API.

  GET  /api/v1/rulepack?format=&version=&mode=  -- One rule-pack, or the options when no format
  POST /api/v1/rulepack                         -- Several rule-packs by format list
"""

import logging

from fastapi import APIRouter, Request

from ...display import FORMAT_NAMES, LEVEL_NAMES
from ...errors import PromptDeskError
from ...rulepacks.models import OutputFormat
from ..models.requests import RulePackBulkRequest

logger = logging.getLogger(__name__)
router = APIRouter()


def _pack_body(pack, version: str, mode: str | None = None) -> dict:
    body = pack.model_dump(by_alias=True, exclude_none=True)
    body["version"] = version
    body["effectiveSections"] = pack.effective_sections(mode)
    return body


@router.get("/rulepack")
async def get_rulepack(
    request: Request,
    format: str | None = None,
    version: str = "v1",
    mode: str | None = None,
) -> dict:
    loader = request.app.state.context.rule_packs
    if not format:
        return {
            "availableFormats": [
                {"id": f.value, "name": FORMAT_NAMES.get(f.value, f.value)} for f in OutputFormat
            ],
            "levels": [{"id": k, "name": v} for k, v in LEVEL_NAMES.items()],
            "versions": [version],
            "cache": loader.cache_stats(),
        }
    pack = loader.load(format, version)
    return {"rulepack": _pack_body(pack, version, mode)}


@router.post("/rulepack")
async def get_rulepacks(body: RulePackBulkRequest, request: Request) -> dict:
    """Partial success: per-format errors are reported next to the loaded packs."""
    loader = request.app.state.context.rule_packs
    packs: dict[str, dict] = {}
    errors: dict[str, dict] = {}
    for fmt in body.formats:
        try:
            packs[fmt] = _pack_body(loader.load(fmt, body.version), body.version)
        except PromptDeskError as e:
            errors[fmt] = {"code": e.kind.value, "message": e.error.message}
    if errors:
        logger.info(f"[API] Bulk rule-pack request: {len(errors)} of {len(body.formats)} failed")
    return {"rulepacks": packs, "errors": errors}
