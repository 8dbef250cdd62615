"""@-import resolution for instruction files.

An ``@path/to/file`` token in a text blob is replaced by the contents of the
referenced file. Unresolvable tokens are left as they are.
"""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

AT_IMPORT_PATTERN = re.compile(r"@([\w./-]+)")


def _read_import(path: Path) -> str | None:
    """Read an import target, or None when it cannot be used."""
    if not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Leaving @-import unexpanded, could not read {path}: {e}")
        return None


def resolve_at_imports(content: str, base_dir: str | Path, max_depth: int = 0) -> str:
    """Replace ``@path`` tokens with the contents of the referenced files.

    Paths resolve against ``base_dir``. Missing or unreadable targets keep
    the original token. By default this is a single pass: text pulled in
    from a file is not scanned again. ``max_depth`` enables nested expansion
    up to that many further levels, relative to each imported file's
    directory; a file already being expanded is left as its token.
    """
    return _resolve(content, Path(base_dir), max_depth, chain=())


def _resolve(content: str, base_dir: Path, depth: int, chain: tuple[Path, ...]) -> str:
    def replace(match: re.Match) -> str:
        target = (base_dir / match.group(1)).resolve()
        if target in chain:
            return match.group(0)

        text = _read_import(target)
        if text is None:
            return match.group(0)

        if depth > 0:
            return _resolve(text, target.parent, depth - 1, chain + (target,))
        return text

    return AT_IMPORT_PATTERN.sub(replace, content)


def load_project_instructions(cwd: str | Path, file_names: list[str] | None = None) -> str:
    """Load project instructions from the first instruction file found in cwd.

    @-imports inside the file are resolved against cwd. Returns "" when no
    candidate is readable.
    """
    if file_names is None:
        from forgekit.config import settings
        file_names = settings.instruction_files

    cwd = Path(cwd)
    for name in file_names:
        path = cwd / name
        if not path.is_file():
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable instructions file {path}: {e}")
            continue
        logger.debug(f"Loaded project instructions from {path}")
        return resolve_at_imports(content, cwd)

    return ""
