"""Generation pipeline: context in, provider call, mediated writes out."""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from forgekit.config import (
    Settings,
    load_project_config,
    permission_config_from,
    settings as default_settings,
)
from forgekit.context.builder import ContextBuilder, ContextSection
from forgekit.context.imports import load_project_instructions
from forgekit.hooks.loader import load_hooks
from forgekit.hooks.registry import HookRegistry, HookRunner
from forgekit.hooks.types import HookEvent, HookResult
from forgekit.outputs.directories import resolve_output_dir
from forgekit.outputs.types import GeneratedFile, resolve_output_type
from forgekit.outputs.writer import FileWriter, WriteOptions, WriteResult
from forgekit.permissions.manager import ConfirmCallback, PermissionManager, PermissionPolicy
from forgekit.stack.detection import TechStack, detect_tech_stack

logger = logging.getLogger(__name__)

INSTRUCTIONS_PRIORITY = 90
STACK_PRIORITY = 70

SYSTEM_PROMPT = """You are a code generation assistant. Produce complete, working files
that follow the project's existing conventions and detected tech stack.
File paths must be relative to the output directory."""


# =============================================================================
# Provider interface
# =============================================================================


@dataclass
class GenerationResult:
    """What a provider returns for one call."""
    content: str
    files: list[GeneratedFile] = field(default_factory=list)
    follow_up: str | None = None  # clarifying question from the model
    tokens_used: int = 0


class GenerationProvider:
    """Protocol for model providers."""

    async def generate(
        self,
        messages: list[dict[str, str]],
        options: dict[str, Any] | None = None,
    ) -> GenerationResult:
        """Generate a response for role-tagged messages."""
        raise NotImplementedError


# =============================================================================
# Pipeline
# =============================================================================


@dataclass
class GenerationRequest:
    """One generation task."""
    task: str
    cwd: str
    output_type: str | None = None  # None or "auto" = infer from task
    output_dir: str | None = None
    overwrite: bool = False
    dry_run: bool = False
    max_context_tokens: int | None = None
    sections: list[ContextSection] = field(default_factory=list)
    context: dict[str, str] = field(default_factory=dict)  # label -> text, default priority
    provider_options: dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationOutcome:
    """Result of running a request through the pipeline."""
    output_type: str
    task: str = ""  # after any pre:prompt rewrite
    files: WriteResult = field(default_factory=WriteResult)
    content: str = ""
    follow_up: str | None = None
    blocked: bool = False
    message: str | None = None
    tokens_used: int = 0


def dedupe_files(files: list[GeneratedFile]) -> list[GeneratedFile]:
    """Drop earlier versions of the same path. First-seen order is kept."""
    latest: dict[str, GeneratedFile] = {}
    for file in files:
        latest[file.path] = file
    return list(latest.values())


class GenerationPipeline:
    """Runs a generation request end to end.

    The provider, hooks and permissions are injected, so the pipeline holds
    no process-wide state.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        hooks: HookRunner | None = None,
        permissions: PermissionPolicy | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.provider = provider
        self.hooks = hooks
        self.settings = settings or default_settings
        self.writer = FileWriter(hooks=hooks, permissions=permissions)

    def build_context(self, request: GenerationRequest, stack: TechStack) -> str:
        """Assemble the budgeted project context for a request."""
        builder = ContextBuilder(default_priority=self.settings.default_section_priority)
        builder.add_section(
            "instructions",
            load_project_instructions(request.cwd, self.settings.instruction_files),
            INSTRUCTIONS_PRIORITY,
        )
        builder.add_section("stack", stack.to_summary(), STACK_PRIORITY)
        for section in request.sections:
            builder.add_section(section.label, section.content, section.priority)
        for label, content in request.context.items():
            builder.add_section(label, content)

        max_tokens = request.max_context_tokens or self.settings.max_context_tokens
        return builder.build_context(request.task, max_tokens)

    def build_messages(self, request: GenerationRequest, context: str, output_type: str) -> list[dict[str, str]]:
        system = SYSTEM_PROMPT
        if context:
            system += f"\n\n# Project Context\n\n{context}"
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": f"Output type: {output_type}\n\nTask: {request.task}"},
        ]

    async def run(self, request: GenerationRequest) -> GenerationOutcome:
        """Generate files for a request and commit them.

        ``pre:prompt`` hooks may block or rewrite the task; the rewritten task
        drives output type, context scoring and the prompt. Provider and write
        failures fire ``on:error`` and are re-raised.
        """
        prompt_result = await self._run_hook(HookEvent.PRE_PROMPT, {"task": request.task, "cwd": request.cwd})
        if prompt_result is not None and prompt_result.blocked:
            return self._blocked(request, resolve_output_type(request.output_type, request.task), prompt_result)

        rewritten = (prompt_result.modified or {}).get("task") if prompt_result is not None else None
        if rewritten:
            logger.debug(f"Task rewritten by pre:prompt hook: {rewritten}", extra={"task": request.task})
            request = replace(request, task=str(rewritten))

        stack = detect_tech_stack(Path(request.cwd))
        output_type = resolve_output_type(request.output_type, request.task)
        outcome = GenerationOutcome(output_type=output_type, task=request.task)

        generate_result = await self._run_hook(HookEvent.PRE_GENERATE, {"task": request.task, "cwd": request.cwd})
        if generate_result is not None and generate_result.blocked:
            return self._blocked(request, output_type, generate_result)

        try:
            context = self.build_context(request, stack)
            messages = self.build_messages(request, context, output_type)

            result = await self.provider.generate(messages, request.provider_options)
            outcome.content = result.content
            outcome.tokens_used = result.tokens_used

            if result.follow_up:
                outcome.follow_up = result.follow_up
                return outcome

            files = dedupe_files(result.files)
            output_dir = resolve_output_dir(output_type, stack, request.output_dir)
            outcome.files = await self.writer.write_generated_files(files, WriteOptions(
                cwd=request.cwd,
                overwrite=request.overwrite,
                dry_run=request.dry_run,
                output_dir=output_dir,
            ))
        except Exception as e:
            logger.error(f"Generation failed: {e}", extra={"task": request.task})
            await self._on_error(request, e)
            raise

        await self._post_generate(request, outcome)
        return outcome

    @classmethod
    def for_project(
        cls,
        provider: GenerationProvider,
        cwd: str | Path,
        confirm: ConfirmCallback | None = None,
        settings: Settings | None = None,
    ) -> "GenerationPipeline":
        """Build a pipeline with hooks and permissions from the project's config."""
        settings = settings or default_settings
        project_config = load_project_config(Path(cwd), settings)

        hooks = HookRegistry(command_timeout=settings.hook_timeout_seconds)
        load_hooks(cwd, hooks, project_config=project_config, hooks_dir=settings.hooks_dir)

        permissions = PermissionManager(permission_config_from(project_config, settings), confirm=confirm)
        return cls(provider, hooks=hooks, permissions=permissions, settings=settings)

    async def _run_hook(self, event: HookEvent, payload: dict[str, Any]) -> HookResult | None:
        """Run a blocking lifecycle hook. None when nothing is registered."""
        if self.hooks is None or not self.hooks.has(event):
            return None
        return await self.hooks.execute(event, {"event": event.value, **payload})

    @staticmethod
    def _blocked(request: GenerationRequest, output_type: str, hook_result: HookResult) -> GenerationOutcome:
        logger.info(f"Generation blocked: {hook_result.message}", extra={"task": request.task})
        return GenerationOutcome(
            output_type=output_type,
            task=request.task,
            blocked=True,
            message=hook_result.message,
        )

    async def _on_error(self, request: GenerationRequest, error: Exception) -> None:
        if self.hooks is None or not self.hooks.has(HookEvent.ON_ERROR):
            return
        try:
            await self.hooks.execute(HookEvent.ON_ERROR, {
                "event": HookEvent.ON_ERROR.value,
                "error": str(error),
                "errorType": type(error).__name__,
                "task": request.task,
                "cwd": request.cwd,
            })
        except Exception as e:
            logger.warning(f"on:error hook failed: {e}")

    async def _post_generate(self, request: GenerationRequest, outcome: GenerationOutcome) -> None:
        if self.hooks is None or not self.hooks.has(HookEvent.POST_GENERATE):
            return
        try:
            await self.hooks.execute(HookEvent.POST_GENERATE, {
                "event": HookEvent.POST_GENERATE.value,
                "task": request.task,
                "cwd": request.cwd,
                "written": list(outcome.files.written),
            })
        except Exception as e:
            logger.warning(f"post:generate hook failed: {e}")
