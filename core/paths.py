"""
Path Resolver Module
Derives reference, candidate and diff image paths from a task name.
"""

from pathlib import Path
from typing import NamedTuple

from .config import RunOptions
from .tasks import Task

IMAGE_EXTENSION = '.png'


class FilePaths(NamedTuple):
    reference: Path
    fail: Path
    diff: Path


def build_image_path(directory: str | Path, prefix: str, name: str, suffix: str) -> Path:
    """Return ``directory/<prefix><name><suffix>.png``."""
    return Path(directory) / f"{prefix}{name}{suffix}{IMAGE_EXTENSION}"


def resolve_paths(task: Task, options: RunOptions) -> FilePaths:
    """Resolve the three image paths for a task. Pure, no filesystem access."""
    base_suffix = options.file_suffix
    return FilePaths(
        reference=build_image_path(options.dir, options.file_prefix, task.name, base_suffix),
        fail=build_image_path(options.dir, options.file_prefix, task.name,
                              base_suffix + options.fail_file_suffix),
        diff=build_image_path(options.dir, options.file_prefix, task.name,
                              base_suffix + options.diff_file_suffix),
    )
