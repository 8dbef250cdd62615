"""Hooks around generation and file writes."""

from forgekit.hooks.loader import load_hooks
from forgekit.hooks.registry import HookRegistry, HookRunner
from forgekit.hooks.types import (
    BLOCKING_EVENTS,
    HookDefinition,
    HookEvent,
    HookHandler,
    HookResult,
)

__all__ = [
    "BLOCKING_EVENTS",
    "HookDefinition",
    "HookEvent",
    "HookHandler",
    "HookRegistry",
    "HookResult",
    "HookRunner",
    "load_hooks",
]
