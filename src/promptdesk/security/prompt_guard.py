"""
Prompt Guard - injection screening for the user text that ends up in payloads.

Topic, context and requirement bullets are interpolated verbatim into the
instruction and task payloads. Nothing here rewrites them: findings are logged
and returned, and the caller decides.

    findings = detect_injection_attempt(topic, field="topic")
    # ["instruction_override", "prompt_exfiltration"]

Reference: OWASP LLM Top 10 (2025) - LLM01: Prompt Injection
"""

import logging
import re

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n[TRUNCATED]"

# Named pattern families, English and Korean. Matched case-insensitively.
INJECTION_PATTERNS: dict[str, list[re.Pattern]] = {
    "instruction_override": [
        re.compile(r"ignore\s+(all\s+)?(the\s+)?previous\s+instructions", re.IGNORECASE),
        re.compile(r"forget\s+(all\s+)?(your|previous)\s+instructions", re.IGNORECASE),
        re.compile(r"이전\s*(의\s*)?(모든\s*)?지시(를|사항을)?\s*무시"),
        re.compile(r"위\s*지시(를|사항을)?\s*무시"),
    ],
    "role_override": [
        re.compile(r"you\s+are\s+now\s+a", re.IGNORECASE),
        re.compile(r"^\s*system\s*:", re.IGNORECASE | re.MULTILINE),
        re.compile(r"override\s+safety|jailbreak|DAN\s+mode", re.IGNORECASE),
    ],
    "chat_template": [
        re.compile(r"<\|(im_start|im_end|system|user|assistant)\|>", re.IGNORECASE),
        re.compile(r"\[/?INST\]", re.IGNORECASE),
        re.compile(r"<<\s*/?SYS\s*>>", re.IGNORECASE),
    ],
    "prompt_exfiltration": [
        re.compile(r"(reveal|print|show)\s+(your\s+)?system\s+prompt", re.IGNORECASE),
        re.compile(r"시스템\s*프롬프트"),
    ],
}


def detect_injection_attempt(text: str, field: str = "input") -> list[str]:
    """
    Names of the pattern families found in `text` (empty = clean).

    Detection only: a finding is logged at WARNING without the text itself.
    """
    if not text:
        return []

    findings = [
        name
        for name, patterns in INJECTION_PATTERNS.items()
        if any(p.search(text) for p in patterns)
    ]
    if findings:
        logger.warning(
            f"[PromptGuard] {field}: possible injection ({', '.join(findings)}, {len(text)} chars)"
        )
    return findings


def scan_fields(fields: dict[str, str | None]) -> dict[str, list[str]]:
    """detect_injection_attempt() over several named fields; clean fields are omitted."""
    report = {}
    for name, value in fields.items():
        findings = detect_injection_attempt(value or "", field=name)
        if findings:
            report[name] = findings
    return report


def sanitize_for_prompt(content: str, max_length: int = 100_000) -> str:
    """
    Strip null bytes and cap the length of one payload before dispatch.

    The token gates reject oversized requests long before this cap; it only
    bounds what a misconfigured caller could send.
    """
    if not content:
        return ""

    content = content.replace("\x00", "")
    if len(content) > max_length:
        logger.info(f"[PromptGuard] Payload truncated from {len(content)} to {max_length} chars")
        content = content[:max_length] + TRUNCATION_MARKER
    return content
