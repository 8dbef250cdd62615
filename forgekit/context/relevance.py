"""Lexical relevance scoring and token estimation."""

import re

# ASCII whitespace only, so scores don't depend on Unicode tables
_WHITESPACE = re.compile(r"[ \t\n\r\v\f]+")

MIN_WORD_LENGTH = 4
CHARS_PER_TOKEN = 4


def tokenize(text: str) -> set[str]:
    """Distinct lower-cased words longer than three characters."""
    return {word for word in _WHITESPACE.split(text.lower()) if len(word) >= MIN_WORD_LENGTH}


def score_relevance(section_text: str, task: str) -> float:
    """Fraction of distinct task words that also occur in the section.

    Returns 0.0 when the task has no words longer than three characters.
    """
    task_words = tokenize(task)
    if not task_words:
        return 0.0

    section_words = tokenize(section_text)
    return len(task_words & section_words) / len(task_words)


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters, rounded up."""
    return -(-len(text) // CHARS_PER_TOKEN)
