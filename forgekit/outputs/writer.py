"""Mediated file writes for generated output.

Every generated file goes through the same sequence:

1. resolve the target path (cwd + output dir + file path)
2. ``pre:file-write`` hooks: may block the write or rewrite the content
3. permission check: allow, deny, or skip (plan mode, reported as written)
4. existing file without overwrite: skipped
5. dry run: reported as written, nothing touches disk
6. create parent directories and write
7. ``post:file-write`` hooks, best effort

Files are processed one at a time. A failure on one file is recorded in
``errors`` and the batch moves on.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from forgekit.hooks.registry import HookRunner
from forgekit.hooks.types import HookEvent
from forgekit.outputs.types import GeneratedFile
from forgekit.permissions.manager import AllowAllPolicy, PermissionPolicy
from forgekit.permissions.types import PermissionAction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteOptions:
    """Options for one batch of writes."""
    cwd: str
    overwrite: bool = False
    dry_run: bool = False
    output_dir: str | None = None


@dataclass
class WriteResult:
    """Per-batch outcome. Each processed file lands in exactly one list."""
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.written) + len(self.skipped) + len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "written": list(self.written),
            "skipped": list(self.skipped),
            "errors": list(self.errors),
        }


def resolve_target_path(file_path: str, options: WriteOptions) -> str:
    """Absolute target for a generated file. Absolute paths pass through."""
    if os.path.isabs(file_path):
        return file_path
    return os.path.abspath(os.path.join(options.cwd, options.output_dir or "", file_path))


def _write_file(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


class FileWriter:
    """Commits generated files to disk under hook and permission control.

    Hooks and permissions are injected; without them no hooks run and every
    write is allowed.
    """

    def __init__(
        self,
        hooks: HookRunner | None = None,
        permissions: PermissionPolicy | None = None,
    ) -> None:
        self.hooks = hooks
        self.permissions = permissions or AllowAllPolicy()

    async def write_generated_files(
        self,
        files: list[GeneratedFile],
        options: WriteOptions,
    ) -> WriteResult:
        """Write a batch of files and report what happened to each."""
        result = WriteResult()

        for file in files:
            target = file.path
            try:
                target = resolve_target_path(file.path, options)
                await self._write_one(file, target, options, result)
            except Exception as e:
                logger.error(f"Failed to write {target}: {e}", extra={"file": target, "action": "error"})
                result.errors.append(f"{target}: {e}")

        logger.info(
            f"Write batch done: {len(result.written)} written, "
            f"{len(result.skipped)} skipped, {len(result.errors)} errors"
            f"{' (dry run)' if options.dry_run else ''}"
        )
        return result

    async def _write_one(
        self,
        file: GeneratedFile,
        target: str,
        options: WriteOptions,
        result: WriteResult,
    ) -> None:
        content = file.content

        if self.hooks is not None and self.hooks.has(HookEvent.PRE_FILE_WRITE):
            hook_result = await self.hooks.execute(
                HookEvent.PRE_FILE_WRITE,
                self._payload(HookEvent.PRE_FILE_WRITE, target, content, options),
            )
            if hook_result.blocked:
                self._record(result.skipped, target, "blocked", hook_result.message)
                return
            modified = (hook_result.modified or {}).get("fileContent")
            if modified:
                content = str(modified)

        relative_path = os.path.relpath(target, options.cwd)
        permission = PermissionAction(await self.permissions.check_file_write(relative_path))
        if permission == PermissionAction.DENY:
            self._record(result.skipped, target, "denied")
            return
        if permission == PermissionAction.SKIP:
            # Plan mode: report what would be written
            self._record(result.written, target, "planned")
            return

        path = Path(target)
        if path.exists() and not options.overwrite:
            self._record(result.skipped, target, "exists")
            return

        if options.dry_run:
            self._record(result.written, target, "dry-run")
            return

        await asyncio.to_thread(_write_file, path, content)
        self._record(result.written, target, "written", f"{len(content)} chars")

        await self._run_post_hook(target, content, options)

    async def _run_post_hook(self, target: str, content: str, options: WriteOptions) -> None:
        """Fire post-write hooks. Failures are logged, never propagated."""
        if self.hooks is None or not self.hooks.has(HookEvent.POST_FILE_WRITE):
            return
        try:
            await self.hooks.execute(
                HookEvent.POST_FILE_WRITE,
                self._payload(HookEvent.POST_FILE_WRITE, target, content, options),
            )
        except Exception as e:
            logger.warning(f"post:file-write hook failed for {target}: {e}", extra={"file": target})

    @staticmethod
    def _payload(event: HookEvent, target: str, content: str, options: WriteOptions) -> dict[str, Any]:
        return {
            "event": event.value,
            "file": target,
            "fileContent": content,
            "cwd": options.cwd,
        }

    @staticmethod
    def _record(bucket: list[str], target: str, action: str, detail: str | None = None) -> None:
        bucket.append(target)
        logger.debug(
            f"{action}: {target}{f' ({detail})' if detail else ''}",
            extra={"file": target, "action": action},
        )


async def write_generated_files(
    files: list[GeneratedFile],
    options: WriteOptions,
    hooks: HookRunner | None = None,
    permissions: PermissionPolicy | None = None,
) -> WriteResult:
    """Write a batch with the given collaborators."""
    return await FileWriter(hooks=hooks, permissions=permissions).write_generated_files(files, options)
