"""
Input validators - bounds checks for user text at the request boundary.

The request models call these from pydantic field validators, so a
ValidationError raised here surfaces as INVALID_INPUT with the field name.
Messages are user-facing (Korean).
"""

import unicodedata

CONTROL_CATEGORY = "Cc"
ALLOWED_CONTROL = {"\n", "\r", "\t"}
# Bidirectional embeddings, overrides and isolates reorder displayed text
BIDI_CONTROLS = {chr(c) for c in (*range(0x202A, 0x202F), *range(0x2066, 0x206A))}


class ValidationError(ValueError):
    """A bounds violation on one named field."""

    def __init__(self, message: str, field: str = "input"):
        super().__init__(message)
        self.field = field


def validate_not_empty(value: str | None, field_name: str = "input") -> str:
    """The value trimmed; blank or missing is rejected."""
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValidationError(f"{field_name}은(는) 비어 있을 수 없습니다", field_name)
    return trimmed


def validate_length(
    value: str,
    field_name: str = "input",
    min_length: int = 0,
    max_length: int = 100_000,
) -> str:
    """Character length within [min_length, max_length]."""
    length = len(value)
    if length < min_length:
        raise ValidationError(f"{field_name}은(는) {min_length}자 이상이어야 합니다", field_name)
    if length > max_length:
        raise ValidationError(
            f"{field_name}은(는) {max_length}자를 초과할 수 없습니다 (현재 {length}자)", field_name
        )
    return value


def validate_no_control_chars(value: str, field_name: str = "input") -> str:
    """Reject C0/C1 controls other than line breaks and tab, and bidi overrides.

    Other format characters (zero-width joiners in emoji sequences) pass.
    """
    for char in value:
        if char in BIDI_CONTROLS or (
            char not in ALLOWED_CONTROL and unicodedata.category(char) == CONTROL_CATEGORY
        ):
            raise ValidationError(
                f"{field_name}에 허용되지 않는 제어 문자가 포함되어 있습니다 (U+{ord(char):04X})",
                field_name,
            )
    return value


def validate_list_size(items: list, field_name: str = "list", max_items: int = 100) -> list:
    if len(items) > max_items:
        raise ValidationError(
            f"{field_name}은(는) 최대 {max_items}개까지 가능합니다 (현재 {len(items)}개)", field_name
        )
    return items
