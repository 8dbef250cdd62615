"""Output directory policy: where each output category lands in a project."""

from collections.abc import Callable

from forgekit.outputs.types import CI_WORKFLOW_DIR, FALLBACK_OUTPUT_DIR, OUTPUT_CONFIGS
from forgekit.stack.detection import TechStack

TEST_RUNNERS = ("vitest", "jest", "pytest")

# An override returns a directory, or None to keep the category default
DirOverride = Callable[[TechStack], str | None]


def _component_dir(stack: TechStack) -> str | None:
    return f"{stack.src_dir}/components" if stack.src_dir else "components"


def _page_dir(stack: TechStack) -> str | None:
    if stack.has_framework("nextjs") and stack.src_dir:
        return f"{stack.src_dir}/app"
    return None


def _api_dir(stack: TechStack) -> str | None:
    if stack.has_framework("nextjs"):
        return f"{stack.src_dir}/app/api" if stack.src_dir else "app/api"
    return None


def _test_dir(stack: TechStack) -> str | None:
    if any(runner in stack.testing for runner in TEST_RUNNERS):
        return stack.src_dir or "src"
    return None


def _workflow_dir(stack: TechStack) -> str | None:
    return CI_WORKFLOW_DIR


def _schema_dir(stack: TechStack) -> str | None:
    if "prisma" in stack.databases:
        return "prisma"
    if stack.src_dir:
        return f"{stack.src_dir}/schemas"
    return None


def _email_dir(stack: TechStack) -> str | None:
    return f"{stack.src_dir}/emails" if stack.src_dir else "emails"


DIRECTORY_OVERRIDES: dict[str, DirOverride] = {
    "component": _component_dir,
    "page": _page_dir,
    "api": _api_dir,
    "test": _test_dir,
    "workflow": _workflow_dir,
    "schema": _schema_dir,
    "email": _email_dir,
}


def resolve_output_dir(output_type: str, stack: TechStack, custom_dir: str | None = None) -> str:
    """Base directory (relative to the project root) for an output category.

    A custom directory always wins. Unknown categories go to the fallback
    directory.
    """
    if custom_dir:
        return custom_dir

    config = OUTPUT_CONFIGS.get(output_type)
    if config is None:
        return FALLBACK_OUTPUT_DIR

    override = DIRECTORY_OVERRIDES.get(output_type)
    if override is not None:
        resolved = override(stack)
        if resolved is not None:
            return resolved

    return config.base_dir
