"""
Citation grammar: ``[lecture: <label>, start_time: <timestamp>]``.

All functions are pure (no I/O, no LLM).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from lectureqa.schemas.response import Citation

CITATION_PATTERN = re.compile(
    r"\[\s*lecture:\s*(?P<lecture>[^\]]+?)\s*,\s*start_time:\s*(?P<start_time>[^\]]+?)\s*\]",
    re.IGNORECASE,
)

_EMPTY_EMPHASIS = re.compile(r"(\*\*|__)[ \t]*(\*\*|__)")
_SPACE_BEFORE_PUNCT = re.compile(r"[ \t]+([.,;:!?])")
_DOUBLE_SPACE = re.compile(r"[ \t]{2,}")


def format_citation(lecture: str, start_time: str) -> str:
    return Citation(lecture=lecture, start_time=start_time).token


def extract_citations(text: str) -> list[Citation]:
    """Return every citation token in order of appearance (duplicates kept)."""
    return [
        Citation(lecture=m.group("lecture").strip(), start_time=m.group("start_time").strip())
        for m in CITATION_PATTERN.finditer(text or "")
    ]


def filter_citations(
    text: str,
    allowed: Iterable[tuple[str, str]],
) -> tuple[str, list[Citation], list[Citation]]:
    """
    Remove citation tokens whose (lecture, start_time) pair is not in
    ``allowed``.

    Returns:
        (cleaned_text, kept_citations, dropped_citations)
        kept_citations is de-duplicated, order of first appearance.
    """
    allowed_set = {(lecture.strip(), start.strip()) for lecture, start in allowed}
    kept: list[Citation] = []
    dropped: list[Citation] = []

    def _replace(match: re.Match) -> str:
        citation = Citation(
            lecture=match.group("lecture").strip(),
            start_time=match.group("start_time").strip(),
        )
        if (citation.lecture, citation.start_time) in allowed_set:
            if citation not in kept:
                kept.append(citation)
            return citation.token
        dropped.append(citation)
        return ""

    cleaned = CITATION_PATTERN.sub(_replace, text or "")
    if dropped:
        cleaned = _EMPTY_EMPHASIS.sub("", cleaned)
        cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", cleaned)
        cleaned = _DOUBLE_SPACE.sub(" ", cleaned)
    return cleaned.strip(), kept, dropped
