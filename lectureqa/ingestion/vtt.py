"""
WebVTT transcript parsing and passage windowing.

How it works:
1. PARSE:  split the file into blocks, keep cue blocks (timing line with
            "-->"), drop the WEBVTT header, NOTE / STYLE / REGION blocks and
            cue identifiers, strip inline tags like <v Speaker> or <c.x>
2. WINDOW: merge consecutive cues into passages of at most max_chars so
            each embedding covers one focused stretch of the lecture
3. TAG:    every passage keeps its lecture label and the start time of
            its first cue (HH:MM:SS); those are what answers cite

All functions are pure (no I/O).
"""

from __future__ import annotations

import html
import re

from pydantic import BaseModel

TIMESTAMP_PATTERN = re.compile(r"(?:(\d+):)?(\d{1,2}):(\d{2})[.,](\d{1,3})")
_TAG_PATTERN = re.compile(r"<[^>]+>")
_SKIPPED_BLOCKS = ("WEBVTT", "NOTE", "STYLE", "REGION")

DEFAULT_MAX_CHARS = 1000


class Cue(BaseModel):
    start: float  # seconds
    end: float
    text: str


class TranscriptPassage(BaseModel):
    lecture: str
    start_time: str  # HH:MM:SS
    end_time: str
    text: str


def parse_timestamp(value: str) -> float:
    """'01:02:03.500' or '02:03.500' -> seconds."""
    match = TIMESTAMP_PATTERN.fullmatch(value.strip())
    if not match:
        raise ValueError(f"Invalid WebVTT timestamp: {value!r}")
    hours, minutes, seconds, millis = match.groups()
    return (
        int(hours or 0) * 3600
        + int(minutes) * 60
        + int(seconds)
        + int(millis.ljust(3, "0")) / 1000
    )


def format_timestamp(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 3600:02d}:{(total % 3600) // 60:02d}:{total % 60:02d}"


def _clean_text(lines: list[str]) -> str:
    text = " ".join(line.strip() for line in lines if line.strip())
    text = html.unescape(_TAG_PATTERN.sub("", text))
    return " ".join(text.split())


def parse_vtt(content: str) -> list[Cue]:
    """Parse WebVTT text into cues, in file order.  Cues without text are dropped."""
    content = (content or "").replace("\r\n", "\n").replace("\r", "\n").lstrip("\ufeff")
    cues: list[Cue] = []

    for block in re.split(r"\n\s*\n", content):
        lines = [line for line in block.split("\n") if line.strip()]
        if not lines:
            continue
        if lines[0].strip().startswith(_SKIPPED_BLOCKS):
            continue

        timing_idx = next((i for i, line in enumerate(lines) if "-->" in line), None)
        if timing_idx is None:
            continue

        start_raw, _, rest = lines[timing_idx].partition("-->")
        end_raw = rest.strip().split()[0] if rest.strip() else ""
        try:
            start = parse_timestamp(start_raw)
            end = parse_timestamp(end_raw)
        except ValueError:
            continue

        text = _clean_text(lines[timing_idx + 1:])
        if text:
            cues.append(Cue(start=start, end=end, text=text))

    return cues


def build_passages(
    cues: list[Cue],
    lecture_label: str,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> list[TranscriptPassage]:
    """
    Merge consecutive cues into passages of at most max_chars.
    A single cue longer than max_chars becomes its own passage.
    """
    passages: list[TranscriptPassage] = []
    window: list[Cue] = []
    size = 0

    def _flush() -> None:
        if not window:
            return
        passages.append(TranscriptPassage(
            lecture=lecture_label,
            start_time=format_timestamp(window[0].start),
            end_time=format_timestamp(window[-1].end),
            text=" ".join(c.text for c in window),
        ))

    for cue in cues:
        added = len(cue.text) + (1 if window else 0)
        if window and size + added > max_chars:
            _flush()
            window, size = [], 0
            added = len(cue.text)
        window.append(cue)
        size += added

    _flush()
    return passages
