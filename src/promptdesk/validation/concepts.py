"""
Concept matching -- the approximate heuristic behind checklist scoring.

A checklist item such as `핵심 메시지가 명시되어 있는가 ("5W1H")` is reduced to
surface forms ("핵심 메시지", "5W1H", ...). A concept counts as present when any
surface form appears case-insensitively in the text.

text_contains_concept() is the single seam: swap it for a better matcher
without touching call sites.
"""

import re

SUFFIX_PATTERNS = [
    re.compile(r"(\w+)이\s+포함"),
    re.compile(r"(\w+)가\s+명시"),
    re.compile(r"(\w+)이\s+작성"),
    re.compile(r"(\w+)을\s+사용"),
    re.compile(r"(\w+)를\s+피함"),
    re.compile(r"(\w+)\s+요소"),
    re.compile(r"(\w+)\s+내용"),
    re.compile(r"(\w+)\s+정보"),
]
QUOTED = re.compile(r'"([^"]+)"')
PARENTHETICAL = re.compile(r"\(([^)]+)\)")


def extract_concepts(item: str) -> list[str]:
    """Surface forms of one checklist item, in discovery order."""
    item = item.lower()
    concepts = []
    for pattern in SUFFIX_PATTERNS:
        match = pattern.search(item)
        if match and match.group(1):
            concepts.append(match.group(1))
    concepts.extend(QUOTED.findall(item))
    concepts.extend(PARENTHETICAL.findall(item))
    return concepts


def text_contains_concept(text: str, surface_forms: list[str]) -> bool:
    """True if any surface form occurs in the text (case-insensitive)."""
    text_lower = text.lower()
    return any(form and form.lower() in text_lower for form in surface_forms)
