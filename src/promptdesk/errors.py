"""
Error taxonomy -- the closed set of failure kinds a request can end in.

Components raise PromptDeskError subclasses. The pipeline converts them into a
ServiceError value on its GenerationResult, and the API turns that value into
the structured error payload:

    {"error": {"code", "message", "details", "timestamp", "requestId"}}

Anything that is not a PromptDeskError is a programmer error and surfaces as
INTERNAL_ERROR with the detail kept in the logs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Stable error codes returned to callers."""

    INVALID_INPUT = "INVALID_INPUT"
    RULEPACK_NOT_FOUND = "RULEPACK_NOT_FOUND"
    RULEPACK_MALFORMED = "RULEPACK_MALFORMED"
    CHECKLIST_NOT_FOUND = "CHECKLIST_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TOKEN_LIMIT_EXCEEDED = "TOKEN_LIMIT_EXCEEDED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.RULEPACK_NOT_FOUND: 404,
    ErrorKind.RULEPACK_MALFORMED: 500,
    ErrorKind.CHECKLIST_NOT_FOUND: 404,
    ErrorKind.RATE_LIMIT_EXCEEDED: 429,
    ErrorKind.TOKEN_LIMIT_EXCEEDED: 400,
    ErrorKind.UPSTREAM_TIMEOUT: 504,
    ErrorKind.UPSTREAM_RATE_LIMITED: 503,
    ErrorKind.UPSTREAM_ERROR: 502,
    ErrorKind.INTERNAL_ERROR: 500,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "잘못된 요청 형식입니다.",
    ErrorKind.RULEPACK_NOT_FOUND: "지원하지 않는 형식입니다.",
    ErrorKind.RULEPACK_MALFORMED: "형식 정의 파일이 올바르지 않습니다.",
    ErrorKind.CHECKLIST_NOT_FOUND: "해당 체크리스트를 찾을 수 없습니다.",
    ErrorKind.RATE_LIMIT_EXCEEDED: "요청 한도를 초과했습니다. 잠시 후 다시 시도해주세요.",
    ErrorKind.TOKEN_LIMIT_EXCEEDED: "토큰 한도를 초과했습니다.",
    ErrorKind.UPSTREAM_TIMEOUT: "AI 응답 시간이 초과되었습니다. 잠시 후 다시 시도해주세요.",
    ErrorKind.UPSTREAM_RATE_LIMITED: "AI 서비스 요청 한도에 도달했습니다. 잠시 후 다시 시도해주세요.",
    ErrorKind.UPSTREAM_ERROR: "AI 서비스 호출 중 오류가 발생했습니다.",
    ErrorKind.INTERNAL_ERROR: "서버 오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
}


@dataclass
class ServiceError:
    """A failure outcome carried by value (never raised).

    Attributes:
        kind: One of the closed ErrorKind codes.
        message: User-facing message (Korean).
        details: Optional structured detail safe to return to the caller.
    """

    kind: ErrorKind
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.message:
            self.message = DEFAULT_MESSAGES[self.kind]

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]


# =============================================================================
# EXCEPTIONS (raised inside components, converted at the pipeline seam)
# =============================================================================


class PromptDeskError(Exception):
    """Base class for expected domain failures."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str = "", details: dict[str, Any] | None = None):
        self.error = ServiceError(
            kind=self.kind, message=message, details=dict(details or {})
        )
        super().__init__(self.error.message)

    @property
    def details(self) -> dict[str, Any]:
        return self.error.details


class InvalidInput(PromptDeskError):
    kind = ErrorKind.INVALID_INPUT


class RulePackNotFound(PromptDeskError):
    kind = ErrorKind.RULEPACK_NOT_FOUND


class RulePackMalformed(PromptDeskError):
    kind = ErrorKind.RULEPACK_MALFORMED


class ChecklistNotFound(PromptDeskError):
    kind = ErrorKind.CHECKLIST_NOT_FOUND


class RateLimitExceeded(PromptDeskError):
    kind = ErrorKind.RATE_LIMIT_EXCEEDED


class TokenLimitExceeded(PromptDeskError):
    """Payload estimate is over the allowance. Carries estimate, allowance, suggestions."""

    kind = ErrorKind.TOKEN_LIMIT_EXCEEDED

    def __init__(
        self,
        estimated: int,
        allowance: int,
        suggestions: list[str] | None = None,
        message: str = "",
    ):
        self.estimated = estimated
        self.allowance = allowance
        self.suggestions = list(suggestions or [])
        if not message:
            message = f"토큰 한도를 초과했습니다 ({estimated}/{allowance}). " + " ".join(
                self.suggestions
            )
        super().__init__(
            message.strip(),
            details={
                "tokenCount": estimated,
                "limit": allowance,
                "suggestions": self.suggestions,
            },
        )


class UpstreamTimeout(PromptDeskError):
    kind = ErrorKind.UPSTREAM_TIMEOUT


class UpstreamRateLimited(PromptDeskError):
    kind = ErrorKind.UPSTREAM_RATE_LIMITED


class UpstreamError(PromptDeskError):
    kind = ErrorKind.UPSTREAM_ERROR


def to_service_error(exc: BaseException) -> ServiceError:
    """Map any exception to a ServiceError. Unknown exceptions become INTERNAL_ERROR."""
    if isinstance(exc, PromptDeskError):
        return exc.error
    return ServiceError(
        kind=ErrorKind.INTERNAL_ERROR,
        details={"error": f"{type(exc).__name__}: {exc}"},
    )
