"""
Prompt template for Stage 1: topic classification.

Responsibilities:
  1. Pick exactly one registered topic, or "none"

NOT in scope: answering the question, reasoning about its content,
writing any user-facing text (see prompts/decline.py).
"""

from __future__ import annotations

from lectureqa.schemas.routing import NONE_TOPIC_NAME, Topic


def build_topics_description(topics: list[Topic]) -> str:
    """Numbered topic list; the numbering is the tie-break precedence."""
    lines = []
    for position, topic in enumerate(topics, start=1):
        keywords = ", ".join(topic.keywords) or "N/A"
        lines.append(
            f"{position}. label: {topic.name} ({topic.label})\n"
            f"   Covers: {topic.description or 'No description available'}\n"
            f"   Typical keywords: {keywords}"
        )
    return "\n".join(lines)


def build_topic_classifier_prompt(question: str, topics: list[Topic]) -> tuple[str, str]:
    """
    Build the system and user prompts for topic classification.

    Returns:
        (system_prompt, user_prompt)
    """
    labels = ", ".join(f'"{t.name}"' for t in topics)
    system_prompt = (
        "You are a strict topic router for a lecture question-answering assistant. "
        "Your ONLY job is to decide which lecture topic a user question belongs to. "
        "Do not answer the question and do not explain your choice.\n\n"
        "Output ONLY valid JSON with exactly this schema:\n"
        '{"topic": "<label>"}\n\n'
        "Rules:\n"
        f"- <label> must be one of: {labels} or \"{NONE_TOPIC_NAME}\".\n"
        f"- Use \"{NONE_TOPIC_NAME}\" when the question is not about any listed topic "
        "(for example a different programming language or an unrelated subject).\n"
        "- If the question plausibly fits more than one topic, choose the one that "
        "appears FIRST in the numbered topic list.\n"
        "- Never add keys other than \"topic\".\n"
    )

    user_prompt = (
        f"## TOPICS\n{build_topics_description(topics)}\n\n"
        f"## USER QUESTION\n{question}"
    )
    return system_prompt, user_prompt
