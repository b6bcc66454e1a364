"""
Prompt template for the decline message shown when a question falls
outside every supported topic.  Generated separately from routing so
routing correctness never depends on prose quality.
"""

from __future__ import annotations

from lectureqa.schemas.routing import Topic

DEFAULT_DECLINE_MESSAGE = (
    "Sorry, I can only answer questions about the supported lecture topics."
)


def supported_topics_phrase(topics: list[Topic]) -> str:
    labels = [t.label for t in topics]
    if not labels:
        return "the supported lecture topics"
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + " or " + labels[-1]


def template_decline_message(topics: list[Topic]) -> str:
    """Static decline text naming the supported topics."""
    return (
        "Sorry, I can only answer questions about "
        f"{supported_topics_phrase(topics)} lectures. "
        "Please ask a question related to one of those topics."
    )


def build_decline_prompt(question: str, topics: list[Topic]) -> tuple[str, str]:
    """
    Returns:
        (system_prompt, user_prompt)
    """
    system_prompt = (
        "You are a friendly lecture assistant. The user asked a question outside "
        "the topics you support. Write ONE or TWO short, polite sentences that say "
        f"you can only help with {supported_topics_phrase(topics)} lectures and invite "
        "them to ask about those. Do not answer their question. Do not use markdown."
    )
    user_prompt = f"User question: {question}"
    return system_prompt, user_prompt
