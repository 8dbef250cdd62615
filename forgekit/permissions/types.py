"""Permission modes, decisions and config schema."""

from enum import Enum

from pydantic import BaseModel, Field


class PermissionMode(str, Enum):
    """How file writes are gated."""
    DEFAULT = "default"  # allow patterns, otherwise confirm
    ACCEPT_EDITS = "acceptEdits"
    PLAN = "plan"  # report writes, touch nothing
    YOLO = "yolo"


class PermissionAction(str, Enum):
    """Verdict for a single file write."""
    ALLOW = "allow"
    DENY = "deny"
    SKIP = "skip"


class PermissionConfig(BaseModel):
    """Permission settings, usually from the project config's permissions block."""

    mode: PermissionMode = PermissionMode.DEFAULT
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    confirm: list[str] = Field(default_factory=list)
