"""
Prompt templates for Stage 3: grounded answer generation.

The system prompt binds the model to the supplied transcript context
and fixes the citation format.  The not-found sentence is a constant
so the synthesizer can detect it verbatim.
"""

from __future__ import annotations

import json

from lectureqa.schemas.retrieval import RetrievedPassage

NOT_FOUND_MESSAGE = "I couldn't find this information in the available lecture content."

CITATION_FORMAT = "[lecture: <lecture>, start_time: <start_time>]"


def build_context_block(passages: list[RetrievedPassage]) -> str:
    """Serialize passages for the prompt; keys mirror the citation fields."""
    data = [
        {
            "rank": p.relevance_rank,
            "lecture": p.source_label,
            "start_time": p.start_timestamp,
            "text": p.text,
        }
        for p in passages
    ]
    return json.dumps(data, indent=2, ensure_ascii=False)


def build_system_prompt(passages: list[RetrievedPassage]) -> str:
    """System message with rules and the retrieved transcript context."""
    example = passages[0] if passages else None
    example_citation = (
        f"[lecture: {example.source_label}, start_time: {example.start_timestamp}]"
        if example
        else "[lecture: Getting-Started-with-NodeJS, start_time: 00:01:34]"
    )
    return (
        "You are a helpful AI tutor. The user is asking about video lectures.\n"
        "Answer ONLY from the transcript context below. Never use prior or outside knowledge.\n\n"
        "## RULES\n"
        "- Keep the exact wording used in the context where it helps; quote short phrases.\n"
        f"- Cite EVERY factual statement with {CITATION_FORMAT}, copying the lecture and "
        "start_time values exactly as they appear in the context.\n"
        f"  Example: \"Node.js is a JavaScript runtime {example_citation}.\"\n"
        "- Only cite entries that exist in the context. Never invent a lecture or timestamp.\n"
        "- If the context does not contain the answer, reply with exactly this sentence "
        f"and nothing else: \"{NOT_FOUND_MESSAGE}\"\n\n"
        "## CONTEXT\n"
        f"{build_context_block(passages)}"
    )


def build_answer_prompt(question: str) -> str:
    return f"## USER QUESTION\n{question}"
