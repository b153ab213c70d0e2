"""Security utilities -- prompt injection detection, input validation."""
from .prompt_guard import detect_injection_attempt, sanitize_for_prompt, scan_fields
from .validators import (
    ValidationError,
    validate_length,
    validate_list_size,
    validate_no_control_chars,
    validate_not_empty,
)
