"""Tech stack detection from project files.

Walks the project tree (a few levels deep) and matches file names against
signature tables for languages, frameworks, databases/ORMs, styling, test
runners and deployment targets.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MAX_DEPTH = 3

IGNORED_DIRS = {
    "node_modules", "dist", "build", ".next", ".nuxt", "target",
    "__pycache__", "vendor", ".git", ".venv", "venv",
}


# =============================================================================
# Signature tables
# =============================================================================

CONFIG_SIGNATURES: dict[str, str] = {
    "package.json": "javascript",
    "tsconfig.json": "typescript",
    "requirements.txt": "python",
    "pyproject.toml": "python",
    "setup.py": "python",
    "Pipfile": "python",
    "Cargo.toml": "rust",
    "go.mod": "go",
    "Gemfile": "ruby",
    "composer.json": "php",
    "build.gradle": "java",
    "build.gradle.kts": "kotlin",
    "pom.xml": "java",
    "pubspec.yaml": "dart",
    "Package.swift": "swift",
    "mix.exs": "elixir",
    "deno.json": "typescript",
}

EXTENSION_LANGUAGES: dict[str, str] = {
    ".ts": "typescript", ".tsx": "typescript",
    ".js": "javascript", ".jsx": "javascript",
    ".py": "python", ".rs": "rust", ".go": "go", ".rb": "ruby",
    ".php": "php", ".java": "java", ".kt": "kotlin", ".swift": "swift",
    ".dart": "dart", ".ex": "elixir", ".exs": "elixir",
    ".c": "c", ".cpp": "cpp", ".cs": "csharp", ".lua": "lua", ".zig": "zig",
}

FRAMEWORK_SIGNATURES: dict[str, tuple[str, str]] = {
    "next.config.js": ("nextjs", "fullstack"),
    "next.config.ts": ("nextjs", "fullstack"),
    "next.config.mjs": ("nextjs", "fullstack"),
    "nuxt.config.ts": ("nuxt", "fullstack"),
    "nuxt.config.js": ("nuxt", "fullstack"),
    "svelte.config.js": ("sveltekit", "fullstack"),
    "astro.config.mjs": ("astro", "frontend"),
    "astro.config.ts": ("astro", "frontend"),
    "remix.config.js": ("remix", "fullstack"),
    "angular.json": ("angular", "frontend"),
    "vite.config.ts": ("vite", "frontend"),
    "vite.config.js": ("vite", "frontend"),
    "gatsby-config.js": ("gatsby", "frontend"),
    "docusaurus.config.js": ("docusaurus", "frontend"),
    "manage.py": ("django", "fullstack"),
    "config/routes.rb": ("rails", "fullstack"),
    "artisan": ("laravel", "fullstack"),
    "main.go": ("go-app", "backend"),
}

DEPENDENCY_FRAMEWORKS: dict[str, tuple[str, str]] = {
    "next": ("nextjs", "fullstack"),
    "react": ("react", "frontend"),
    "vue": ("vue", "frontend"),
    "svelte": ("svelte", "frontend"),
    "@angular/core": ("angular", "frontend"),
    "express": ("express", "backend"),
    "fastify": ("fastify", "backend"),
    "hono": ("hono", "backend"),
    "electron": ("electron", "frontend"),
    "react-native": ("react-native", "mobile"),
}

DB_SIGNATURES: dict[str, str] = {
    "prisma/schema.prisma": "prisma",
    "drizzle.config.ts": "drizzle",
    "drizzle.config.js": "drizzle",
    "knexfile.js": "knex",
    "knexfile.ts": "knex",
    "ormconfig.json": "typeorm",
    "alembic.ini": "sqlalchemy",
    "supabase/config.toml": "supabase",
    "firebase.json": "firebase",
}

STYLING_SIGNATURES: dict[str, str] = {
    "tailwind.config.js": "tailwindcss",
    "tailwind.config.ts": "tailwindcss",
    "postcss.config.js": "postcss",
    "postcss.config.mjs": "postcss",
}

TESTING_SIGNATURES: dict[str, str] = {
    "jest.config.js": "jest",
    "jest.config.ts": "jest",
    "vitest.config.ts": "vitest",
    "vitest.config.js": "vitest",
    "cypress.config.ts": "cypress",
    "playwright.config.ts": "playwright",
    ".mocharc.yml": "mocha",
    "pytest.ini": "pytest",
    "conftest.py": "pytest",
}

DEPLOYMENT_SIGNATURES: dict[str, str] = {
    "vercel.json": "vercel",
    "netlify.toml": "netlify",
    "fly.toml": "fly.io",
    "render.yaml": "render",
    "Dockerfile": "docker",
    "docker-compose.yml": "docker-compose",
    "docker-compose.yaml": "docker-compose",
    ".github/workflows": "github-actions",
    "serverless.yml": "serverless",
}

MONOREPO_SIGNATURES = ("pnpm-workspace.yaml", "lerna.json", "nx.json", "turbo.json")

PACKAGE_MANAGER_LOCKS: dict[str, str] = {
    "pnpm-lock.yaml": "pnpm",
    "yarn.lock": "yarn",
    "package-lock.json": "npm",
    "bun.lockb": "bun",
    "poetry.lock": "poetry",
    "uv.lock": "uv",
}

CONFIG_SUFFIXES = (".json", ".yaml", ".yml", ".toml", ".config.js", ".config.ts", ".config.mjs")


# =============================================================================
# Models
# =============================================================================


@dataclass
class Framework:
    """A detected framework."""
    name: str
    type: str  # frontend, backend, fullstack, mobile, cli, library
    version: str = ""


@dataclass
class TechStack:
    """Detected shape of a project."""
    project_root: str
    languages: list[str] = field(default_factory=list)
    frameworks: list[Framework] = field(default_factory=list)
    package_manager: str | None = None
    databases: list[str] = field(default_factory=list)
    styling: list[str] = field(default_factory=list)
    testing: list[str] = field(default_factory=list)
    deployment: list[str] = field(default_factory=list)
    monorepo: bool = False
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)
    src_dir: str | None = None
    config_files: list[str] = field(default_factory=list)

    def has_framework(self, name: str) -> bool:
        return any(f.name == name for f in self.frameworks)

    def to_summary(self) -> str:
        """Compact description for prompt context."""
        lines = ["## Tech Stack"]
        if self.languages:
            lines.append(f"**Languages:** {', '.join(self.languages)}")
        if self.frameworks:
            lines.append(f"**Frameworks:** {', '.join(f.name for f in self.frameworks)}")
        if self.package_manager:
            lines.append(f"**Package manager:** {self.package_manager}")
        if self.databases:
            lines.append(f"**Databases:** {', '.join(self.databases)}")
        if self.styling:
            lines.append(f"**Styling:** {', '.join(self.styling)}")
        if self.testing:
            lines.append(f"**Testing:** {', '.join(self.testing)}")
        if self.deployment:
            lines.append(f"**Deployment:** {', '.join(self.deployment)}")
        if self.src_dir:
            lines.append(f"**Source dir:** {self.src_dir}")
        if self.monorepo:
            lines.append("**Monorepo:** yes")
        return "\n".join(lines) if len(lines) > 1 else ""


# =============================================================================
# Detection
# =============================================================================


def list_project_files(root: Path, max_depth: int = MAX_DEPTH) -> list[str]:
    """Relative POSIX paths of files up to ``max_depth`` levels deep."""
    files: list[str] = []
    root = Path(root)

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root)
        depth = len(rel_dir.parts)
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        if depth >= max_depth - 1:
            dirnames[:] = []
        for name in sorted(filenames):
            files.append((rel_dir / name).as_posix())

    return files


def _read_package_json(root: Path) -> dict[str, Any]:
    path = root / "package.json"
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not parse {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _matches(files: list[str], signature: str) -> bool:
    if "/" in signature:
        return any(f == signature or f.startswith(signature + "/") for f in files)
    return signature in files


def detect_languages(files: list[str]) -> list[str]:
    languages: list[str] = []
    for config_file, language in CONFIG_SIGNATURES.items():
        if config_file in files and language not in languages:
            languages.append(language)
    for f in files:
        language = EXTENSION_LANGUAGES.get(Path(f).suffix)
        if language and language not in languages:
            languages.append(language)
    return languages


def detect_frameworks(files: list[str], dependencies: dict[str, str]) -> list[Framework]:
    frameworks: list[Framework] = []
    seen: set[str] = set()

    for signature, (name, kind) in FRAMEWORK_SIGNATURES.items():
        if name not in seen and _matches(files, signature):
            frameworks.append(Framework(name=name, type=kind))
            seen.add(name)

    for dep, (name, kind) in DEPENDENCY_FRAMEWORKS.items():
        if dep in dependencies and name not in seen:
            frameworks.append(Framework(name=name, type=kind, version=str(dependencies[dep])))
            seen.add(name)

    return frameworks


def _detect_from_table(files: list[str], table: dict[str, str]) -> list[str]:
    found: list[str] = []
    for signature, name in table.items():
        if name not in found and _matches(files, signature):
            found.append(name)
    return found


def detect_tech_stack(cwd: str | Path) -> TechStack:
    """Detect the tech stack of the project rooted at cwd."""
    root = Path(cwd)
    files = list_project_files(root)
    package = _read_package_json(root)

    dependencies = package.get("dependencies") or {}
    dev_dependencies = package.get("devDependencies") or {}
    all_deps = {**dependencies, **dev_dependencies}

    testing = _detect_from_table(files, TESTING_SIGNATURES)
    for runner in ("vitest", "jest"):
        if runner in all_deps and runner not in testing:
            testing.append(runner)

    databases = _detect_from_table(files, DB_SIGNATURES)
    for orm in ("prisma", "drizzle-orm"):
        name = orm.removesuffix("-orm")
        if orm in all_deps and name not in databases:
            databases.append(name)

    package_manager = next(
        (pm for lock, pm in PACKAGE_MANAGER_LOCKS.items() if lock in files),
        None,
    )

    stack = TechStack(
        project_root=str(root),
        languages=detect_languages(files),
        frameworks=detect_frameworks(files, all_deps),
        package_manager=package_manager,
        databases=databases,
        styling=_detect_from_table(files, STYLING_SIGNATURES),
        testing=testing,
        deployment=_detect_from_table(files, DEPLOYMENT_SIGNATURES),
        monorepo=any(sig in files for sig in MONOREPO_SIGNATURES),
        dependencies=dict(dependencies),
        dev_dependencies=dict(dev_dependencies),
        scripts=dict(package.get("scripts") or {}),
        src_dir="src" if (root / "src").is_dir() else None,
        config_files=[f for f in files if f.endswith(CONFIG_SUFFIXES)],
    )

    logger.debug(
        f"Detected stack for {root}: languages={stack.languages}, "
        f"frameworks={[f.name for f in stack.frameworks]}, src_dir={stack.src_dir}"
    )
    return stack
