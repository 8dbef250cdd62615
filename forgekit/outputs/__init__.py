"""Generated output: categories, directory policy and mediated writes."""

from forgekit.outputs.directories import resolve_output_dir
from forgekit.outputs.types import (
    CI_WORKFLOW_DIR,
    FALLBACK_OUTPUT_DIR,
    OUTPUT_CONFIGS,
    GeneratedFile,
    OutputConfig,
    resolve_output_type,
)
from forgekit.outputs.writer import (
    FileWriter,
    WriteOptions,
    WriteResult,
    resolve_target_path,
    write_generated_files,
)

__all__ = [
    "CI_WORKFLOW_DIR",
    "FALLBACK_OUTPUT_DIR",
    "OUTPUT_CONFIGS",
    "FileWriter",
    "GeneratedFile",
    "OutputConfig",
    "WriteOptions",
    "WriteResult",
    "resolve_output_dir",
    "resolve_output_type",
    "resolve_target_path",
    "write_generated_files",
]
