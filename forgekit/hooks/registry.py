"""Hook registry: registration, priority ordering, execution."""

import asyncio
import importlib.util
import inspect
import logging
import os
import re
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from forgekit.hooks.types import (
    BLOCKING_EVENTS,
    HookDefinition,
    HookEvent,
    HookHandler,
    HookResult,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
DEFAULT_COMMAND_TIMEOUT = 60.0


class HookRunner:
    """Protocol for anything that can run hooks for an event."""

    def has(self, event: HookEvent | str) -> bool:
        """Whether any hook is registered for the event."""
        raise NotImplementedError

    async def execute(self, event: HookEvent | str, payload: dict[str, Any]) -> HookResult:
        """Run the hooks for an event and return the combined result."""
        raise NotImplementedError


@dataclass
class RegisteredHook:
    """A hook bound to an event."""
    event: HookEvent
    name: str
    priority: int
    handler: HookHandler


def interpolate(template: str, payload: dict[str, Any]) -> str:
    """Fill ``{{key}}`` placeholders from the payload. Missing keys become ""."""
    def replace(match: re.Match) -> str:
        value = payload.get(match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def _to_result(value: Any) -> HookResult:
    """Normalize what a handler returned into a HookResult."""
    if value is None:
        return HookResult()
    if isinstance(value, dict):
        value = HookResult(
            blocked=bool(value.get("blocked", False)),
            message=value.get("message"),
            modified=value.get("modified"),
        )
    if isinstance(value, HookResult):
        if value.modified is not None and not isinstance(value.modified, dict):
            raise TypeError(
                f"Hook returned 'modified' of type {type(value.modified).__name__}, expected a mapping"
            )
        return value
    raise TypeError(f"Hook returned unsupported value of type {type(value).__name__}")


class HookRegistry(HookRunner):
    """Holds hooks per event and runs them in priority order."""

    def __init__(self, command_timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._hooks: dict[HookEvent, list[RegisteredHook]] = {}
        self.command_timeout = command_timeout

    def register(self, event: HookEvent | str, definition: HookDefinition) -> None:
        """Register a configured hook. Disabled definitions are ignored."""
        if not definition.enabled:
            return
        handler = self._create_handler(definition)
        self._add(RegisteredHook(
            event=HookEvent(event),
            name=definition.name,
            priority=definition.priority,
            handler=handler,
        ))

    def register_handler(
        self,
        event: HookEvent | str,
        name: str,
        handler: HookHandler,
        priority: int = 100,
    ) -> None:
        """Register an in-process handler."""
        self._add(RegisteredHook(event=HookEvent(event), name=name, priority=priority, handler=handler))

    def _add(self, hook: RegisteredHook) -> None:
        hooks = self._hooks.setdefault(hook.event, [])
        hooks.append(hook)
        # Stable: equal priorities keep registration order
        hooks.sort(key=lambda h: h.priority)

    def has(self, event: HookEvent | str) -> bool:
        return bool(self._hooks.get(HookEvent(event)))

    def list_hooks(self, event: HookEvent | str) -> list[str]:
        """Names of the hooks registered for an event, in run order."""
        return [h.name for h in self._hooks.get(HookEvent(event), [])]

    def clear(self) -> None:
        self._hooks.clear()

    async def execute(self, event: HookEvent | str, payload: dict[str, Any]) -> HookResult:
        """Run every hook for the event.

        Each hook sees the payload merged with the modifications made by the
        hooks before it. On a blocking event the first block ends the chain,
        and a failing hook counts as a block. On other events failures are
        logged and the chain continues.
        """
        event = HookEvent(event)
        hooks = self._hooks.get(event)
        if not hooks:
            return HookResult()

        can_block = event in BLOCKING_EVENTS
        combined: dict[str, Any] = {}

        for hook in hooks:
            start = time.monotonic()
            try:
                result = _to_result(await hook.handler({**payload, **combined}))
            except Exception as e:
                duration_ms = (time.monotonic() - start) * 1000
                logger.warning(
                    f"Hook '{hook.name}' failed: {e}",
                    extra={"event": event.value, "duration_ms": duration_ms},
                )
                if can_block:
                    return HookResult(blocked=True, message=f"Hook '{hook.name}' errored: {e}")
                continue

            duration_ms = (time.monotonic() - start) * 1000
            if result.modified:
                combined.update(result.modified)

            if can_block and result.blocked:
                logger.info(
                    f"Hook '{hook.name}' blocked {event.value}",
                    extra={"event": event.value, "duration_ms": duration_ms},
                )
                return HookResult(
                    blocked=True,
                    message=result.message or f"Blocked by hook: {hook.name}",
                    modified=combined or None,
                )

            logger.debug(
                f"Hook '{hook.name}' ok",
                extra={"event": event.value, "duration_ms": duration_ms},
            )

        return HookResult(modified=combined or None)

    # =========================================================================
    # Handler factories
    # =========================================================================

    def _create_handler(self, definition: HookDefinition) -> HookHandler:
        if definition.type == "command":
            return self._command_handler(definition)
        if definition.type == "script":
            return self._script_handler(definition)
        if definition.type == "prompt":
            return self._prompt_handler(definition)
        raise ValueError(f"Unknown hook type: {definition.type}")

    def _command_handler(self, definition: HookDefinition) -> HookHandler:
        """Shell command hook. Non-zero exit blocks (for blocking events)."""
        timeout = self.command_timeout

        async def handler(payload: dict[str, Any]) -> HookResult:
            if not definition.command:
                return HookResult()

            cmd = interpolate(definition.command, payload)
            process = await asyncio.create_subprocess_exec(
                "sh", "-c", cmd,
                cwd=payload.get("cwd") or os.getcwd(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
            except asyncio.TimeoutError:
                _kill_process_group(process)
                await process.wait()
                return HookResult(
                    blocked=True,
                    message=f"Command hook '{definition.name}' timed out after {timeout}s",
                )

            if process.returncode != 0:
                message = (
                    stderr.decode(errors="replace").strip()
                    or stdout.decode(errors="replace").strip()
                    or f"Command hook '{definition.name}' failed"
                )
                return HookResult(blocked=True, message=message)
            return HookResult()

        return handler

    def _script_handler(self, definition: HookDefinition) -> HookHandler:
        """Python script hook exposing ``handler`` (or ``main``)."""
        loaded: dict[str, Any] = {}

        async def handler(payload: dict[str, Any]) -> HookResult:
            if not definition.script:
                return HookResult()

            script = Path(definition.script)
            if not script.is_absolute():
                script = Path(payload.get("cwd") or os.getcwd()) / script

            fn = loaded.get(str(script))
            if fn is None:
                fn = _load_script_callable(script, definition.name)
                loaded[str(script)] = fn

            value = fn(payload)
            if inspect.isawaitable(value):
                value = await value
            return _to_result(value)

        return handler

    def _prompt_handler(self, definition: HookDefinition) -> HookHandler:
        async def handler(payload: dict[str, Any]) -> HookResult:
            logger.warning(
                f"Prompt hook '{definition.name}' needs a model provider, skipping"
            )
            return HookResult()

        return handler


def _load_script_callable(script: Path, name: str) -> Any:
    """Import a hook script and return its handler callable."""
    module_name = "forgekit_hook_" + re.sub(r"\W", "_", name)
    spec = importlib.util.spec_from_file_location(module_name, script)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load hook script: {script}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    fn = getattr(module, "handler", None) or getattr(module, "main", None)
    if not callable(fn):
        raise AttributeError(f"Hook script {script} defines no handler() function")
    return fn


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """Kill a hook's shell and everything it started.

    Children of ``sh`` hold the output pipes open, so killing only the shell
    would leave ``process.wait()`` blocked until they exit.
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        logger.debug(f"Hook process group {process.pid} already gone")
