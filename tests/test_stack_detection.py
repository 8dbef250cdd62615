"""Tests for project tech stack detection."""

import json
from pathlib import Path

from forgekit.stack import detect_tech_stack
from forgekit.stack.detection import list_project_files


def touch(root: Path, relative: str, content: str = "") -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class TestListProjectFiles:
    """Tests for the project file walk."""

    def test_depth_limited(self, tmp_path: Path):
        touch(tmp_path, "top.txt")
        touch(tmp_path, "a/one.txt")
        touch(tmp_path, "a/b/two.txt")
        touch(tmp_path, "a/b/c/three.txt")

        files = list_project_files(tmp_path)
        assert "top.txt" in files
        assert "a/one.txt" in files
        assert "a/b/two.txt" in files
        assert "a/b/c/three.txt" not in files

    def test_ignored_dirs(self, tmp_path: Path):
        touch(tmp_path, "node_modules/react/package.json")
        touch(tmp_path, ".git/config")
        touch(tmp_path, "src/index.ts")

        assert list_project_files(tmp_path) == ["src/index.ts"]


class TestDetectTechStack:
    """Tests for detect_tech_stack."""

    def test_empty_project(self, tmp_path: Path):
        stack = detect_tech_stack(tmp_path)

        assert stack.languages == []
        assert stack.frameworks == []
        assert stack.src_dir is None
        assert stack.to_summary() == ""

    def test_nextjs_project(self, tmp_path: Path):
        touch(tmp_path, "package.json", json.dumps({
            "dependencies": {"next": "14.1.0", "react": "18.2.0", "@prisma/client": "5.0.0"},
            "devDependencies": {"vitest": "1.0.0", "prisma": "5.0.0"},
            "scripts": {"dev": "next dev"},
        }))
        touch(tmp_path, "tsconfig.json", "{}")
        touch(tmp_path, "next.config.mjs")
        touch(tmp_path, "tailwind.config.ts")
        touch(tmp_path, "pnpm-lock.yaml")
        touch(tmp_path, "src/app/page.tsx")

        stack = detect_tech_stack(tmp_path)

        assert stack.languages[:2] == ["javascript", "typescript"]
        assert stack.has_framework("nextjs")
        assert stack.has_framework("react")
        assert [f.name for f in stack.frameworks].count("nextjs") == 1
        assert stack.package_manager == "pnpm"
        assert stack.styling == ["tailwindcss"]
        assert stack.testing == ["vitest"]
        assert stack.databases == ["prisma"]
        assert stack.src_dir == "src"
        assert stack.scripts == {"dev": "next dev"}
        assert "package.json" in stack.config_files

    def test_framework_version_from_dependencies(self, tmp_path: Path):
        touch(tmp_path, "package.json", json.dumps({"dependencies": {"express": "^4.18.0"}}))

        stack = detect_tech_stack(tmp_path)
        assert stack.frameworks[0].name == "express"
        assert stack.frameworks[0].version == "^4.18.0"
        assert stack.frameworks[0].type == "backend"

    def test_python_project(self, tmp_path: Path):
        touch(tmp_path, "pyproject.toml")
        touch(tmp_path, "manage.py")
        touch(tmp_path, "alembic.ini")
        touch(tmp_path, "tests/conftest.py")
        touch(tmp_path, "conftest.py")
        touch(tmp_path, "uv.lock")

        stack = detect_tech_stack(tmp_path)

        assert stack.languages == ["python"]
        assert stack.has_framework("django")
        assert stack.databases == ["sqlalchemy"]
        assert stack.testing == ["pytest"]
        assert stack.package_manager == "uv"

    def test_directory_signatures(self, tmp_path: Path):
        touch(tmp_path, ".github/workflows/ci.yml")
        touch(tmp_path, "prisma/schema.prisma")
        touch(tmp_path, "Dockerfile")

        stack = detect_tech_stack(tmp_path)

        assert stack.deployment == ["docker", "github-actions"]
        assert stack.databases == ["prisma"]

    def test_monorepo(self, tmp_path: Path):
        touch(tmp_path, "turbo.json", "{}")
        assert detect_tech_stack(tmp_path).monorepo is True

    def test_invalid_package_json(self, tmp_path: Path):
        touch(tmp_path, "package.json", "{not json")

        stack = detect_tech_stack(tmp_path)
        assert stack.dependencies == {}
        assert stack.languages == ["javascript"]

    def test_summary(self, tmp_path: Path):
        touch(tmp_path, "package.json", json.dumps({"dependencies": {"vue": "3.4.0"}}))
        touch(tmp_path, "src/main.ts")

        summary = detect_tech_stack(tmp_path).to_summary()

        assert summary.startswith("## Tech Stack")
        assert "**Frameworks:** vue" in summary
        assert "**Source dir:** src" in summary
