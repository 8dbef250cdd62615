"""Context assembly: @-imports, relevance scoring and budgeted sections."""

from forgekit.context.builder import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_PRIORITY,
    ContextBuilder,
    ContextSection,
    ScoredSection,
)
from forgekit.context.imports import load_project_instructions, resolve_at_imports
from forgekit.context.relevance import estimate_tokens, score_relevance, tokenize

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_PRIORITY",
    "ContextBuilder",
    "ContextSection",
    "ScoredSection",
    "estimate_tokens",
    "load_project_instructions",
    "resolve_at_imports",
    "score_relevance",
    "tokenize",
]
