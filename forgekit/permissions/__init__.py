"""Write permissions for generated files."""

from forgekit.permissions.manager import (
    AllowAllPolicy,
    PermissionManager,
    PermissionPolicy,
    match_glob,
)
from forgekit.permissions.types import PermissionAction, PermissionConfig, PermissionMode

__all__ = [
    "AllowAllPolicy",
    "PermissionAction",
    "PermissionConfig",
    "PermissionManager",
    "PermissionMode",
    "PermissionPolicy",
    "match_glob",
]
