"""
Run Orchestrator Module
Drives a visual diff batch: bulk capture, concurrent comparisons, report.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, TextIO, Union

from comparator.report_builder import ReportBuilder
from comparator.task_comparator import Outcome, TaskComparator, TaskResult
from visual.compare_images import ImageComparator
from visual.generate_screenshots import CaptureOptions, ScreenshotGenerator

from .config import RunOptions
from .errors import ErrorEntry, ErrorLog
from .tasks import Task, ensure_unique_names, flatten

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    total: int
    outcomes: Dict[str, Outcome] = field(default_factory=dict)
    errors: List[ErrorEntry] = field(default_factory=list)
    capture_failed: bool = False

    @property
    def passed(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome is Outcome.PASSED)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def success(self) -> bool:
        return not self.errors


class VisualDiffRunner:
    """
    Runs one batch of visual comparisons.

    The capture and comparison services can be replaced, which is how tests
    run without a browser. Errors from every step are collected in
    ``self.errors`` and only surface through the report.
    """

    def __init__(self,
                 tasks: Any,
                 options: Union[RunOptions, Mapping[str, Any], None] = None,
                 screenshot_generator: Optional[ScreenshotGenerator] = None,
                 image_comparator: Optional[ImageComparator] = None):
        if not isinstance(options, RunOptions):
            options = RunOptions.from_dict(options)
        self.options = options
        self.tasks: List[Task] = flatten(tasks)
        ensure_unique_names(self.tasks)

        self.errors = ErrorLog()
        self.screenshot_generator = screenshot_generator or ScreenshotGenerator()
        self.image_comparator = image_comparator or ImageComparator()
        self.comparator = TaskComparator(options, self.image_comparator)
        self.report_builder = ReportBuilder(options.reporter)
        self.summary: Optional[RunSummary] = None

    def capture_options(self) -> CaptureOptions:
        return CaptureOptions(
            dir=self.options.dir,
            file_prefix=self.options.file_prefix,
            file_suffix=self.options.file_suffix + self.options.fail_file_suffix,
            browser=self.options.browser,
            launch_options=dict(self.options.launch_options),
            page_options=dict(self.options.page_options),
        )

    async def capture(self) -> bool:
        """Capture every candidate image in one call. Returns False on failure."""
        try:
            await self.screenshot_generator.capture_all(self.tasks, self.capture_options())
        except Exception as e:
            logger.error(f"Capture failed: {e}", exc_info=True)
            self.errors.record(str(e) or e.__class__.__name__)
            return False
        return True

    async def _compare_task(self, task: Task) -> Outcome:
        """
        Compare one task in a worker thread.

        Only the side-effect free evaluation is bounded by the timeout. Files
        are written or removed, and errors recorded, only once it finished in
        time, so a timed-out comparison leaves no trace besides its error.
        """
        timeout = self.options.compare_timeout
        try:
            pending = asyncio.to_thread(self.comparator.evaluate, task)
            if timeout is not None:
                evaluation = await asyncio.wait_for(pending, timeout)
            else:
                evaluation = await pending
            result = await asyncio.to_thread(self.comparator.apply, task, evaluation)
        except asyncio.TimeoutError:
            logger.error(f"Comparison of {task.name} timed out after {timeout}s")
            result = TaskResult(Outcome.SKIPPED, [
                ErrorEntry(f"Comparison of {task.name} timed out after {timeout}s", task.name),
            ])
        except Exception as e:
            logger.error(f"Comparison of {task.name} failed: {e}", exc_info=True)
            result = TaskResult(Outcome.SKIPPED, [ErrorEntry(f"Comparison of {task.name} failed: {e}", task.name)])

        for entry in result.errors:
            self.errors.add(entry)
        return result.outcome

    async def run(self) -> RunSummary:
        logger.info(f"Running visual diff for {len(self.tasks)} tasks in {self.options.dir}")
        captured = await self.capture()

        outcomes: Dict[str, Outcome] = {}
        if captured or self.options.capture_failure_policy == 'continue':
            results = await asyncio.gather(*(self._compare_task(task) for task in self.tasks))
            outcomes = {task.name: outcome for task, outcome in zip(self.tasks, results)}
        else:
            logger.warning("Capture failed, skipping all comparisons")

        self.summary = RunSummary(
            total=len(self.tasks),
            outcomes=outcomes,
            errors=self.errors.entries(),
            capture_failed=not captured,
        )
        logger.info(f"{self.summary.passed} of {self.summary.total} tasks passed")
        return self.summary

    def render_report(self) -> str:
        return self.report_builder.render(self.tasks, self.errors.entries())

    def report(self, stream: Optional[TextIO] = None) -> None:
        self.report_builder.report(self.tasks, self.errors.entries(), stream)


async def run_visual_diff(tasks: Any,
                          options: Union[RunOptions, Mapping[str, Any], None] = None,
                          stream: Optional[TextIO] = None,
                          **services) -> RunSummary:
    """Run a batch and print its report."""
    runner = VisualDiffRunner(tasks, options, **services)
    summary = await runner.run()
    runner.report(stream)
    return summary
