"""Context builder: ranks labeled sections and trims them to a token budget."""

import logging
from dataclasses import dataclass

from forgekit.context.relevance import estimate_tokens, score_relevance

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 50
DEFAULT_MAX_TOKENS = 12000
RELEVANCE_WEIGHT = 100


@dataclass(frozen=True)
class ContextSection:
    """A labeled block of text competing for a place in the prompt."""
    label: str
    content: str
    priority: int = DEFAULT_PRIORITY  # higher = more important


@dataclass(frozen=True)
class ScoredSection:
    """A section scored against one task."""
    section: ContextSection
    relevance: float
    tokens: int

    @property
    def rank(self) -> float:
        return self.section.priority + self.relevance * RELEVANCE_WEIGHT

    @property
    def label(self) -> str:
        return self.section.label

    @property
    def content(self) -> str:
        return self.section.content


class ContextBuilder:
    """Accumulates sections and assembles them into a budgeted context.

    Sections keep their insertion order; ranking works on a sorted copy, so
    a builder can be reused for several tasks.
    """

    def __init__(self, default_priority: int = DEFAULT_PRIORITY) -> None:
        self._sections: list[ContextSection] = []
        self.default_priority = default_priority

    def add_section(self, label: str, content: str, priority: int | None = None) -> None:
        """Add a section. Blank content is ignored."""
        if not content.strip():
            return
        if priority is None:
            priority = self.default_priority
        self._sections.append(ContextSection(label=label, content=content, priority=priority))

    @property
    def sections(self) -> tuple[ContextSection, ...]:
        return tuple(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def clear(self) -> None:
        self._sections.clear()

    def score(self, task: str) -> list[ScoredSection]:
        """Score every section against the task, in insertion order."""
        return [
            ScoredSection(
                section=section,
                relevance=score_relevance(section.content, task),
                tokens=estimate_tokens(section.content),
            )
            for section in self._sections
        ]

    def select(self, task: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> list[ScoredSection]:
        """Pick the sections that make it into the context, in rank order.

        The top-ranked section is always taken, even over budget. After that a
        section that does not fit is skipped and the walk continues, so a
        smaller lower-ranked section can still get in.
        """
        ranked = sorted(self.score(task), key=lambda s: s.rank, reverse=True)

        included: list[ScoredSection] = []
        total_tokens = 0
        for scored in ranked:
            if included and total_tokens + scored.tokens > max_tokens:
                logger.debug(
                    f"Skipping section '{scored.label}' ({scored.tokens} tokens, "
                    f"{total_tokens}/{max_tokens} used)"
                )
                continue
            included.append(scored)
            total_tokens += scored.tokens

        return included

    def build_context(self, task: str, max_tokens: int = DEFAULT_MAX_TOKENS) -> str:
        """Assemble the context for a task, trimmed to ``max_tokens``."""
        if not self._sections:
            return ""

        included = self.select(task, max_tokens)
        logger.debug(
            f"Built context with {len(included)}/{len(self._sections)} sections "
            f"({sum(s.tokens for s in included)} tokens)"
        )
        return "\n\n".join(s.content for s in included)
