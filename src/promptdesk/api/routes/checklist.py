"""
Checklist API.

  GET  /api/v1/checklist?format=&level=&version=&category=&flat=
       -- structured categories, a flattened item list, or one category's items
  POST /api/v1/checklist
       -- score content against the checklist
"""

import logging

from fastapi import APIRouter, Request

from ...rulepacks.models import Level, OutputFormat
from ..models.requests import ChecklistScoreRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/checklist")
async def get_checklist(
    request: Request,
    format: OutputFormat,
    level: Level,
    version: str = "v1",
    category: str | None = None,
    flat: bool = False,
) -> dict:
    store = request.app.state.context.checklists
    checklist = store.load(format, level, version)
    metadata = store.metadata(format, level, version)

    if category:
        return {"category": category, "items": store.category(format, level, category, version), "metadata": metadata}
    if flat:
        items = store.flat(format, level, version)
        return {"items": items, "total": len(items), "metadata": metadata}
    return {"checklist": [c.to_dict() for c in checklist], "metadata": metadata}


@router.post("/checklist")
async def score_checklist(body: ChecklistScoreRequest, request: Request) -> dict:
    store = request.app.state.context.checklists
    outcome = store.evaluate(body.content, body.format, body.level, body.version)
    return {
        "result": outcome.to_dict(),
        "metadata": store.metadata(body.format, body.level, body.version),
    }
