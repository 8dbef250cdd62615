"""Tests for the hook registry."""

import asyncio
import sys
import time
from pathlib import Path

import pytest

from forgekit.hooks import HookDefinition, HookEvent, HookRegistry, HookResult
from forgekit.hooks.registry import interpolate

shell_only = pytest.mark.skipif(sys.platform == "win32", reason="command hooks run through sh")


class TestInterpolate:
    """Tests for {{placeholder}} interpolation."""

    def test_fills_known_keys(self):
        assert interpolate("fmt {{file}} in {{cwd}}", {"file": "a.ts", "cwd": "/p"}) == "fmt a.ts in /p"

    def test_missing_keys_become_empty(self):
        assert interpolate("x{{nope}}y", {}) == "xy"


class TestRegistration:
    """Tests for registering hooks."""

    def test_priority_order_and_stability(self):
        registry = HookRegistry()

        async def noop(payload):
            return None

        registry.register_handler(HookEvent.PRE_GENERATE, "late", noop, priority=200)
        registry.register_handler(HookEvent.PRE_GENERATE, "first-default", noop)
        registry.register_handler(HookEvent.PRE_GENERATE, "early", noop, priority=10)
        registry.register_handler(HookEvent.PRE_GENERATE, "second-default", noop)

        assert registry.list_hooks(HookEvent.PRE_GENERATE) == [
            "early", "first-default", "second-default", "late",
        ]

    def test_disabled_definition_ignored(self):
        registry = HookRegistry()
        registry.register(
            "pre:file-write",
            HookDefinition(name="off", type="command", command="false", enabled=False),
        )
        assert not registry.has(HookEvent.PRE_FILE_WRITE)

    def test_has_and_clear(self):
        registry = HookRegistry()

        async def noop(payload):
            return None

        registry.register_handler("post:generate", "n", noop)
        assert registry.has(HookEvent.POST_GENERATE)
        assert not registry.has(HookEvent.PRE_GENERATE)

        registry.clear()
        assert not registry.has(HookEvent.POST_GENERATE)

    def test_unknown_event_rejected(self):
        registry = HookRegistry()

        async def noop(payload):
            return None

        with pytest.raises(ValueError):
            registry.register_handler("pre:lunch", "n", noop)


class TestExecute:
    """Tests for HookRegistry.execute."""

    @pytest.mark.asyncio
    async def test_no_hooks(self):
        result = await HookRegistry().execute(HookEvent.PRE_GENERATE, {"task": "x"})
        assert result == HookResult()

    @pytest.mark.asyncio
    async def test_first_block_stops_chain(self):
        registry = HookRegistry()
        calls = []

        async def blocker(payload):
            calls.append("blocker")
            return HookResult(blocked=True, message="not today")

        async def after(payload):
            calls.append("after")

        registry.register_handler(HookEvent.PRE_FILE_WRITE, "blocker", blocker, priority=1)
        registry.register_handler(HookEvent.PRE_FILE_WRITE, "after", after, priority=2)

        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {})

        assert result.blocked
        assert result.message == "not today"
        assert calls == ["blocker"]

    @pytest.mark.asyncio
    async def test_default_block_message(self):
        registry = HookRegistry()

        async def blocker(payload):
            return {"blocked": True}

        registry.register_handler(HookEvent.PRE_GENERATE, "guard", blocker)
        result = await registry.execute(HookEvent.PRE_GENERATE, {})
        assert result.message == "Blocked by hook: guard"

    @pytest.mark.asyncio
    async def test_block_ignored_on_non_blocking_event(self):
        registry = HookRegistry()

        async def blocker(payload):
            return HookResult(blocked=True)

        registry.register_handler(HookEvent.POST_FILE_WRITE, "b", blocker)
        result = await registry.execute(HookEvent.POST_FILE_WRITE, {})
        assert not result.blocked

    @pytest.mark.asyncio
    async def test_error_blocks_on_blocking_event(self):
        registry = HookRegistry()

        async def broken(payload):
            raise RuntimeError("boom")

        registry.register_handler(HookEvent.PRE_FILE_WRITE, "broken", broken)
        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {})

        assert result.blocked
        assert result.message == "Hook 'broken' errored: boom"

    @pytest.mark.asyncio
    async def test_error_continues_on_non_blocking_event(self):
        registry = HookRegistry()
        calls = []

        async def broken(payload):
            raise RuntimeError("boom")

        async def after(payload):
            calls.append("after")
            return {"modified": {"note": "ran"}}

        registry.register_handler(HookEvent.POST_GENERATE, "broken", broken, priority=1)
        registry.register_handler(HookEvent.POST_GENERATE, "after", after, priority=2)

        result = await registry.execute(HookEvent.POST_GENERATE, {})

        assert calls == ["after"]
        assert result.modified == {"note": "ran"}

    @pytest.mark.asyncio
    async def test_modifications_chain(self):
        registry = HookRegistry()

        async def add_header(payload):
            return {"modified": {"fileContent": "// header\n" + payload["fileContent"]}}

        async def add_footer(payload):
            return {"modified": {"fileContent": payload["fileContent"] + "\n// footer"}}

        registry.register_handler(HookEvent.PRE_FILE_WRITE, "header", add_header, priority=1)
        registry.register_handler(HookEvent.PRE_FILE_WRITE, "footer", add_footer, priority=2)

        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {"fileContent": "body"})

        assert result.modified == {"fileContent": "// header\nbody\n// footer"}

    @pytest.mark.asyncio
    async def test_unsupported_return_value_is_an_error(self):
        registry = HookRegistry()

        async def weird(payload):
            return 42

        registry.register_handler(HookEvent.PRE_GENERATE, "weird", weird)
        result = await registry.execute(HookEvent.PRE_GENERATE, {})

        assert result.blocked
        assert "unsupported value" in result.message

    @pytest.mark.asyncio
    async def test_non_mapping_modified_blocks_on_blocking_event(self):
        registry = HookRegistry()

        async def sloppy(payload):
            return {"modified": "just text"}

        registry.register_handler(HookEvent.PRE_FILE_WRITE, "sloppy", sloppy)
        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {"fileContent": "x"})

        assert result.blocked
        assert result.message.startswith("Hook 'sloppy' errored: ")
        assert "expected a mapping" in result.message

    @pytest.mark.asyncio
    async def test_non_mapping_modified_skipped_on_non_blocking_event(self):
        registry = HookRegistry()

        async def sloppy(payload):
            return HookResult(modified=["not", "a", "dict"])

        async def tidy(payload):
            return {"modified": {"note": "kept"}}

        registry.register_handler(HookEvent.POST_GENERATE, "sloppy", sloppy, priority=1)
        registry.register_handler(HookEvent.POST_GENERATE, "tidy", tidy, priority=2)

        result = await registry.execute(HookEvent.POST_GENERATE, {})

        assert not result.blocked
        assert result.modified == {"note": "kept"}


@shell_only
class TestCommandHooks:
    """Tests for shell command hooks."""

    @pytest.mark.asyncio
    async def test_zero_exit_passes(self, tmp_path: Path):
        registry = HookRegistry()
        registry.register(HookEvent.PRE_FILE_WRITE, HookDefinition(name="ok", type="command", command="true"))

        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {"cwd": str(tmp_path)})
        assert not result.blocked

    @pytest.mark.asyncio
    async def test_non_zero_exit_blocks_with_stderr(self, tmp_path: Path):
        registry = HookRegistry()
        registry.register(
            HookEvent.PRE_FILE_WRITE,
            HookDefinition(name="lint", type="command", command="echo 'lint failed' >&2; exit 1"),
        )

        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {"cwd": str(tmp_path)})

        assert result.blocked
        assert result.message == "lint failed"

    @pytest.mark.asyncio
    async def test_payload_interpolated_and_cwd_used(self, tmp_path: Path):
        registry = HookRegistry()
        registry.register(
            HookEvent.POST_FILE_WRITE,
            HookDefinition(name="record", type="command", command="echo {{file}} > seen.txt"),
        )

        await registry.execute(HookEvent.POST_FILE_WRITE, {"file": "out.ts", "cwd": str(tmp_path)})

        assert (tmp_path / "seen.txt").read_text().strip() == "out.ts"

    @pytest.mark.asyncio
    async def test_timeout_blocks(self, tmp_path: Path):
        registry = HookRegistry(command_timeout=0.2)
        registry.register(HookEvent.PRE_GENERATE, HookDefinition(name="slow", type="command", command="sleep 5"))

        result = await asyncio.wait_for(
            registry.execute(HookEvent.PRE_GENERATE, {"cwd": str(tmp_path)}),
            timeout=3,
        )

        assert result.blocked
        assert "timed out" in result.message

    @pytest.mark.asyncio
    async def test_timeout_kills_child_processes(self, tmp_path: Path):
        """A child of the shell holding the output pipes must not outlive the timeout."""
        registry = HookRegistry(command_timeout=0.2)
        registry.register(
            HookEvent.PRE_FILE_WRITE,
            HookDefinition(name="slow", type="command", command="sleep 5; true"),
        )

        start = time.monotonic()
        result = await asyncio.wait_for(
            registry.execute(HookEvent.PRE_FILE_WRITE, {"cwd": str(tmp_path)}),
            timeout=3,
        )
        elapsed = time.monotonic() - start

        assert result.blocked
        assert result.message == "Command hook 'slow' timed out after 0.2s"
        assert elapsed < 2


class TestScriptHooks:
    """Tests for Python script hooks."""

    @pytest.mark.asyncio
    async def test_async_handler(self, tmp_path: Path):
        script = tmp_path / "shout.py"
        script.write_text(
            "async def handler(payload):\n"
            "    return {'modified': {'fileContent': payload['fileContent'].upper()}}\n"
        )
        registry = HookRegistry()
        registry.register(HookEvent.PRE_FILE_WRITE, HookDefinition(name="shout", type="script", script=str(script)))

        result = await registry.execute(HookEvent.PRE_FILE_WRITE, {"fileContent": "hi"})
        assert result.modified == {"fileContent": "HI"}

    @pytest.mark.asyncio
    async def test_sync_main_relative_to_cwd(self, tmp_path: Path):
        (tmp_path / "guard.py").write_text(
            "def main(payload):\n"
            "    return {'blocked': payload['file'].endswith('.env'), 'message': 'no env files'}\n"
        )
        registry = HookRegistry()
        registry.register(HookEvent.PRE_FILE_WRITE, HookDefinition(name="guard", type="script", script="guard.py"))

        blocked = await registry.execute(HookEvent.PRE_FILE_WRITE, {"file": ".env", "cwd": str(tmp_path)})
        allowed = await registry.execute(HookEvent.PRE_FILE_WRITE, {"file": "a.ts", "cwd": str(tmp_path)})

        assert blocked.blocked and blocked.message == "no env files"
        assert not allowed.blocked

    @pytest.mark.asyncio
    async def test_script_without_handler_errors(self, tmp_path: Path):
        script = tmp_path / "empty.py"
        script.write_text("VALUE = 1\n")
        registry = HookRegistry()
        registry.register(HookEvent.PRE_GENERATE, HookDefinition(name="empty", type="script", script=str(script)))

        result = await registry.execute(HookEvent.PRE_GENERATE, {})

        assert result.blocked
        assert "defines no handler()" in result.message


class TestPromptHooks:
    """Prompt hooks are accepted but do nothing without a provider."""

    @pytest.mark.asyncio
    async def test_prompt_hook_is_noop(self):
        registry = HookRegistry()
        registry.register(HookEvent.PRE_GENERATE, HookDefinition(name="review", type="prompt", prompt="Is this safe?"))

        result = await registry.execute(HookEvent.PRE_GENERATE, {})
        assert result == HookResult()
