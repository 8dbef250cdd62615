"""Output categories and generated file model."""

import re
from dataclasses import dataclass, field


@dataclass
class GeneratedFile:
    """A file produced by the model. ``path`` may be relative or absolute."""
    path: str
    content: str
    language: str = ""
    description: str = ""


@dataclass(frozen=True)
class OutputConfig:
    """Defaults for one output category."""
    type: str
    base_dir: str
    file_patterns: list[str] = field(default_factory=list)
    description: str = ""


FALLBACK_OUTPUT_DIR = "generated"
CI_WORKFLOW_DIR = ".github/workflows"
DEFAULT_OUTPUT_TYPE = "component"

OUTPUT_CONFIGS: dict[str, OutputConfig] = {
    "component": OutputConfig("component", "src/components", ["*.tsx", "*.vue", "*.svelte", "*.jsx", "*.ts"], "UI component"),
    "page": OutputConfig("page", "src/app", ["*.tsx", "*.vue", "*.svelte", "*.jsx", "*.astro"], "Page or screen"),
    "api": OutputConfig("api", "src/api", ["*.ts", "*.js", "*.py", "*.go", "*.rs"], "API route or endpoint"),
    "website": OutputConfig("website", ".", ["*"], "Multi-file website"),
    "document": OutputConfig("document", "docs", ["*.md", "*.mdx", "*.txt", "*.rst"], "Documentation"),
    "script": OutputConfig("script", "scripts", ["*.ts", "*.js", "*.py", "*.sh", "*.go"], "Standalone script"),
    "config": OutputConfig("config", ".", ["*.json", "*.yaml", "*.yml", "*.toml", "*.env"], "Configuration file"),
    "skill": OutputConfig("skill", ".skills", ["SKILL.md"], "Agent skill (SKILL.md)"),
    "media": OutputConfig("media", "media", ["*.md", "*.json", "*.txt"], "Media generation prompt/description"),
    "report": OutputConfig("report", "reports", ["*.md", "*.html", "*.json"], "Analysis report"),
    "test": OutputConfig("test", "tests", ["*.test.ts", "*.spec.ts", "test_*.py"], "Test suite"),
    "workflow": OutputConfig("workflow", CI_WORKFLOW_DIR, ["*.yml", "*.yaml"], "CI workflow"),
    "schema": OutputConfig("schema", "schemas", ["*.prisma", "*.sql", "*.ts", "*.py"], "Data schema"),
    "email": OutputConfig("email", "emails", ["*.tsx", "*.html", "*.mjml"], "Email template"),
}

# First match wins
OUTPUT_TYPE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\b(component|button|card|modal|dialog|form|input|dropdown|nav|sidebar|header|footer|widget|ui)\b", re.I), "component"),
    (re.compile(r"\b(page|screen|view|route|layout|dashboard|landing)\b", re.I), "page"),
    (re.compile(r"\b(api|endpoint|route handler|rest|graphql|webhook|middleware|server)\b", re.I), "api"),
    (re.compile(r"\b(website|site|web app|landing page|portfolio|blog)\b", re.I), "website"),
    (re.compile(r"\b(document|doc|readme|guide|tutorial|specification|spec|changelog)\b", re.I), "document"),
    (re.compile(r"\b(script|cli|command|tool|utility|migration|seed|cron)\b", re.I), "script"),
    (re.compile(r"\b(config|configuration|setup|env|settings)\b", re.I), "config"),
    (re.compile(r"\b(skill|agent skill|skill\.md)\b", re.I), "skill"),
    (re.compile(r"\b(video|audio|image|media|animation|thumbnail|podcast)\b", re.I), "media"),
    (re.compile(r"\b(report|audit|analysis|review|assessment|benchmark)\b", re.I), "report"),
]


def resolve_output_type(user_hint: str | None, task: str) -> str:
    """Pick the output category for a task.

    An explicit hint (anything but "auto") wins; otherwise the first keyword
    pattern that matches the task; otherwise "component".
    """
    if user_hint and user_hint != "auto":
        return user_hint

    for pattern, output_type in OUTPUT_TYPE_PATTERNS:
        if pattern.search(task):
            return output_type

    return DEFAULT_OUTPUT_TYPE
