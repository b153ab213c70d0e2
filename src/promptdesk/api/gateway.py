"""
API Gateway -- FastAPI application factory.

Creates the FastAPI app with all routes, error handlers and the application
context. This is the entrypoint for uvicorn:

    uvicorn src.promptdesk.api.gateway:create_app --factory --host 0.0.0.0 --port 8000

Security:
  - CORS restricted to configured origins (default: localhost only)
  - Rate limiting on the generation routes
  - All external input validated at boundary
  - Internal error detail only returned in development-like environments

Route logic lives in routes/.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import configure_logging
from ..context import AppContext, build_context
from ..pipeline import PromptPipeline
from .errors import install_error_handlers
from .routes import checklist, health, prompt, rulepack, validate

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        context: Pre-built application context (built from the environment if None).
    """
    if context is None:
        configure_logging()
        context = build_context()

    application = FastAPI(
        title="promptdesk API",
        description="Instruction-prompt generation for National Assembly staff documents",
        version=prompt.SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=context.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Session-ID", REQUEST_ID_HEADER],
        expose_headers=[
            REQUEST_ID_HEADER,
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    @application.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req_{uuid.uuid4().hex[:16]}"
        request.state.request_id = request_id[:64]
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response

    install_error_handlers(application)

    application.state.context = context
    application.state.pipeline = PromptPipeline(context)

    application.include_router(health.router, tags=["Health"])
    application.include_router(prompt.router, prefix="/api/v1", tags=["Prompt"])
    application.include_router(rulepack.router, prefix="/api/v1", tags=["Rule-packs"])
    application.include_router(checklist.router, prefix="/api/v1", tags=["Checklists"])
    application.include_router(validate.router, prefix="/api/v1", tags=["Validation"])

    logger.info("[Gateway] API gateway initialized")
    return application
