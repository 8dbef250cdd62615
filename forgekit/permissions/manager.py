"""Permission manager: decides whether a generated file may be written."""

import logging
import re
from collections.abc import Awaitable, Callable
from functools import lru_cache

from forgekit.permissions.types import PermissionAction, PermissionConfig, PermissionMode

logger = logging.getLogger(__name__)

# Answer from an interactive confirmation: a PermissionAction value or "all"
ConfirmCallback = Callable[[str], Awaitable[str]]

ALLOW_ALL_ANSWER = "all"


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern:
    parts = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(parts) + "$")


def match_glob(path: str, pattern: str) -> bool:
    """Match a relative path against a glob.

    ``**`` matches across directories, ``*`` and ``?`` stay within one path
    segment.
    """
    return _glob_to_regex(pattern).match(path) is not None


class PermissionPolicy:
    """Protocol for write permission policies."""

    async def check_file_write(self, relative_path: str) -> PermissionAction:
        """Decide whether a write to the given path may proceed."""
        raise NotImplementedError


class AllowAllPolicy(PermissionPolicy):
    """Policy that allows every write."""

    async def check_file_write(self, relative_path: str) -> PermissionAction:
        return PermissionAction.ALLOW


class PermissionManager(PermissionPolicy):
    """Mode and pattern based write permissions.

    - Deny patterns always win.
    - ``yolo`` and ``acceptEdits`` allow, ``plan`` answers skip.
    - ``default`` allows matching allow patterns and asks the confirm
      callback for everything else. Without a callback the write is denied.
    """

    def __init__(
        self,
        config: PermissionConfig | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        config = config or PermissionConfig()
        self.mode = config.mode
        self.allow_patterns = list(config.allow)
        self.deny_patterns = list(config.deny)
        self.confirm_patterns = list(config.confirm)
        self._confirm = confirm
        self._allow_all = False  # set when the user answers "all"

    def set_mode(self, mode: PermissionMode | str) -> None:
        """Switch mode. Resets any "allow all" answer."""
        self.mode = PermissionMode(mode)
        self._allow_all = False
        logger.debug(f"Permission mode set to {self.mode.value}")

    async def check_file_write(self, relative_path: str) -> PermissionAction:
        """Decide whether a write to ``relative_path`` may proceed."""
        logger.debug(f"Checking write: {relative_path} (mode: {self.mode.value})")

        if self._matches_any(relative_path, self.deny_patterns):
            logger.info(f"Write denied by pattern: {relative_path}", extra={"file": relative_path})
            return PermissionAction.DENY

        if self.mode in (PermissionMode.YOLO, PermissionMode.ACCEPT_EDITS):
            return PermissionAction.ALLOW
        if self.mode == PermissionMode.PLAN:
            return PermissionAction.SKIP

        if self._allow_all:
            return PermissionAction.ALLOW

        if self._matches_any(relative_path, self.allow_patterns):
            return PermissionAction.ALLOW

        # Paths matching a confirm pattern, and paths matching nothing, are asked about
        if self._matches_any(relative_path, self.confirm_patterns):
            logger.debug(f"Confirmation required by pattern: {relative_path}")
        return await self._ask(relative_path)

    async def check_command(self, command: str) -> PermissionAction:
        """Decide whether a shell command may run."""
        if self.mode == PermissionMode.PLAN:
            return PermissionAction.DENY
        return PermissionAction.ALLOW

    def _matches_any(self, path: str, patterns: list[str]) -> bool:
        return any(match_glob(path, p) for p in patterns)

    async def _ask(self, relative_path: str) -> PermissionAction:
        if self._confirm is None:
            logger.warning(
                f"No confirmation available for {relative_path}, denying write",
                extra={"file": relative_path},
            )
            return PermissionAction.DENY

        answer = await self._confirm(relative_path)
        if answer == ALLOW_ALL_ANSWER:
            self._allow_all = True
            return PermissionAction.ALLOW

        try:
            return PermissionAction(answer)
        except ValueError:
            return PermissionAction.DENY
