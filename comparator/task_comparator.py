"""
Task Comparator Module
Compares one task's candidate screenshot against its reference image.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from core.config import RunOptions
from core.errors import ErrorEntry, ImageDecodeError
from core.paths import FilePaths, resolve_paths
from core.tasks import Task
from utils.file_utils import read_image_bytes, remove_file, write_png

logger = logging.getLogger(__name__)


class Outcome(Enum):
    PASSED = 'passed'
    FAILED = 'failed'
    # Images could not be read or decoded, no comparison was made
    SKIPPED = 'skipped'


@dataclass
class Evaluation:
    """Comparison service output for one task, before any file is touched."""
    paths: FilePaths
    result: Any = None
    error: Optional[str] = None


@dataclass
class TaskResult:
    outcome: Outcome
    errors: List[ErrorEntry] = field(default_factory=list)


def format_percentage(value: float) -> str:
    return f"{value:g}"


class TaskComparator:
    def __init__(self, options: RunOptions, image_comparator):
        self.options = options
        self.image_comparator = image_comparator

    def evaluate(self, task: Task) -> Evaluation:
        """Read both images and run the comparison service. No side effects."""
        paths = resolve_paths(task, self.options)

        try:
            reference = read_image_bytes(paths.reference)
            candidate = read_image_bytes(paths.fail)
        except OSError as e:
            logger.warning(f"Skipping {task.name}: {e}")
            return Evaluation(paths, error=str(e))

        try:
            result = self.image_comparator.compare(candidate, reference, ignore_antialiasing=True)
        except ImageDecodeError as e:
            logger.warning(f"Skipping {task.name}: {e}")
            return Evaluation(paths, error=str(e))
        return Evaluation(paths, result=result)

    def apply(self, task: Task, evaluation: Evaluation) -> TaskResult:
        """
        Decide pass or fail and handle the image files.

        A mismatch at or above the tolerance fails the task and writes the
        diff image. Below it the candidate file is removed.
        """
        paths = evaluation.paths
        if evaluation.error is not None:
            return TaskResult(Outcome.SKIPPED, [ErrorEntry(evaluation.error, task.name)])

        result = evaluation.result
        mismatch = float(result.mismatch_percentage)
        if mismatch >= self.options.tolerance:
            message = f"Mismatch of {format_percentage(mismatch)} for {task.name}, see {paths.diff}"
            logger.info(message)
            errors = [ErrorEntry(message, task.name)]
            try:
                write_png(result.get_diff_image(), paths.diff)
            except OSError as e:
                logger.error(f"Could not write diff image {paths.diff}: {e}", exc_info=True)
                errors.append(ErrorEntry(f"Could not write diff image {paths.diff}: {e}", task.name))
            return TaskResult(Outcome.FAILED, errors)

        if remove_file(paths.fail):
            logger.info(f"no error occured - removing {paths.fail}")
        return TaskResult(Outcome.PASSED)

    def compare(self, task: Task) -> TaskResult:
        return self.apply(task, self.evaluate(task))
