"""Hook system types."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel


class HookEvent(str, Enum):
    """Lifecycle points where hooks can run."""
    PRE_GENERATE = "pre:generate"
    POST_GENERATE = "post:generate"
    PRE_FILE_WRITE = "pre:file-write"
    POST_FILE_WRITE = "post:file-write"
    PRE_PROMPT = "pre:prompt"
    POST_RESPONSE = "post:response"
    PRE_COMMAND = "pre:command"
    ON_ERROR = "on:error"
    PRE_TOOL_CALL = "pre:tool-call"
    POST_TOOL_CALL = "post:tool-call"


# Events whose hooks can cancel the operation
BLOCKING_EVENTS = frozenset({
    HookEvent.PRE_GENERATE,
    HookEvent.PRE_FILE_WRITE,
    HookEvent.PRE_PROMPT,
    HookEvent.POST_RESPONSE,
    HookEvent.PRE_COMMAND,
    HookEvent.PRE_TOOL_CALL,
})


class HookDefinition(BaseModel):
    """A configured hook.

    - command: shell command with ``{{variable}}`` interpolation
    - script: Python file exposing an async ``handler(payload)``
    - prompt: single-turn model prompt (needs a provider)
    """

    name: str
    type: Literal["command", "script", "prompt"]
    command: str | None = None
    script: str | None = None
    prompt: str | None = None
    model: str | None = None
    priority: int = 100  # lower runs first
    enabled: bool = True


@dataclass
class HookResult:
    """Outcome of running the hooks for one event."""
    blocked: bool = False
    message: str | None = None
    modified: dict[str, Any] | None = None  # e.g. {"fileContent": "..."}


HookHandler = Callable[[dict[str, Any]], Awaitable[HookResult | dict[str, Any] | None]]
