"""Hook loader: hooks from the project config file and the hooks directory."""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from forgekit.hooks.registry import HookRegistry
from forgekit.hooks.types import HookDefinition, HookEvent

logger = logging.getLogger(__name__)

DIRECTORY_HOOK_PRIORITY = 100


def load_hooks(
    cwd: str | Path,
    registry: HookRegistry,
    project_config: dict[str, Any] | None = None,
    hooks_dir: str | None = None,
) -> int:
    """Load hooks for a project into the registry.

    Returns the number of hooks registered.
    """
    from forgekit.config import load_project_config, settings

    cwd = Path(cwd)
    if project_config is None:
        project_config = load_project_config(cwd)

    count = load_hooks_from_config(project_config, registry)
    count += load_hooks_from_directory(cwd / (hooks_dir or settings.hooks_dir), registry)
    if count:
        logger.info(f"Loaded {count} hook(s) for {cwd}")
    return count


def load_hooks_from_config(project_config: dict[str, Any], registry: HookRegistry) -> int:
    """Register the definitions under the config's ``hooks`` mapping.

    Unknown events and invalid definitions are logged and skipped.
    """
    hooks = project_config.get("hooks")
    if not hooks:
        return 0
    if not isinstance(hooks, dict):
        logger.warning("Ignoring 'hooks' in project config: expected a mapping of event -> list")
        return 0

    count = 0
    for event_name, definitions in hooks.items():
        try:
            event = HookEvent(event_name)
        except ValueError:
            logger.warning(f"Unknown hook event in config: {event_name}")
            continue

        if not isinstance(definitions, list):
            logger.warning(f"Hooks for {event_name} must be a list")
            continue

        for raw in definitions:
            try:
                definition = HookDefinition.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Invalid hook definition for {event_name}: {e}")
                continue
            registry.register(event, definition)
            if definition.enabled:
                count += 1

    return count


def event_from_slug(slug: str) -> HookEvent | None:
    """Map a filename slug to an event: ``pre-file-write`` -> ``pre:file-write``."""
    try:
        return HookEvent(slug.replace("-", ":", 1))
    except ValueError:
        return None


def load_hooks_from_directory(hooks_dir: Path, registry: HookRegistry) -> int:
    """Register Python hook scripts named ``<event-slug>.<name>.py``."""
    if not hooks_dir.is_dir():
        return 0

    count = 0
    for path in sorted(hooks_dir.glob("*.py")):
        parts = path.stem.split(".")
        if len(parts) < 2:
            logger.warning(f"Hook file '{path.name}' should be named <event>.<name>.py")
            continue

        event = event_from_slug(parts[0])
        if event is None:
            logger.warning(f"Unknown hook event in filename: {path.name}")
            continue

        registry.register(event, HookDefinition(
            name=".".join(parts[1:]),
            type="script",
            script=str(path),
            priority=DIRECTORY_HOOK_PRIORITY,
        ))
        count += 1

    return count
