"""
Screenshot Generator Module
Captures candidate screenshots for a batch of tasks using Playwright.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from playwright.async_api import Browser, Error as PlaywrightError, async_playwright

from core.errors import CaptureError
from core.paths import build_image_path
from core.tasks import Task
from utils.file_utils import ensure_directory

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {'width': 1280, 'height': 800}


@dataclass(frozen=True)
class CaptureOptions:
    dir: str
    file_prefix: str = ''
    # Already includes the fail suffix
    file_suffix: str = ''
    browser: str = 'chromium'
    launch_options: Dict[str, Any] = field(default_factory=dict)
    page_options: Dict[str, Any] = field(default_factory=dict)

    def output_path(self, task: Task) -> Path:
        return build_image_path(self.dir, self.file_prefix, task.name, self.file_suffix)


class ScreenshotGenerator:
    """
    Bulk screenshot capture.

    One browser is launched for the whole batch and every task gets a fresh
    page. Tasks read ``url`` (required), ``selector``, ``viewport``,
    ``wait_for`` and ``delay`` from their metadata.
    """

    async def capture_all(self, tasks: Sequence[Task], options: CaptureOptions) -> List[Path]:
        """
        Capture one PNG per task.

        Raises:
            CaptureError: If the browser can't start or any capture fails.
        """
        ensure_directory(options.dir)
        written = []
        try:
            async with async_playwright() as pw:
                browser_type = getattr(pw, options.browser)
                browser = await browser_type.launch(**options.launch_options)
                try:
                    for task in tasks:
                        path = options.output_path(task)
                        await self.capture_screenshot(browser, task, path, options.page_options)
                        written.append(path)
                finally:
                    await browser.close()
        except CaptureError:
            raise
        except (PlaywrightError, OSError) as e:
            raise CaptureError(f"Screenshot capture failed: {e}") from e

        logger.info(f"Captured {len(written)} screenshots into {options.dir}")
        return written

    async def capture_screenshot(self, browser: Browser, task: Task, output_path: Path,
                                 page_options: Dict[str, Any]) -> None:
        """Capture a full page, or a single component when the task has a selector."""
        url = task.get('url')
        if not url:
            raise CaptureError(f"Task {task.name} has no url to capture")

        page = await browser.new_page(viewport=task.get('viewport') or DEFAULT_VIEWPORT)
        try:
            logger.debug(f"Capturing {task.name} from {url}")
            await page.goto(url)
            if task.get('wait_for'):
                await page.wait_for_selector(task.get('wait_for'))
            if task.get('delay'):
                await page.wait_for_timeout(float(task.get('delay')))

            screenshot_options = {'full_page': True, **page_options, 'path': str(output_path)}
            if task.get('selector'):
                await self.capture_component(page, task.get('selector'), screenshot_options)
            else:
                await page.screenshot(**screenshot_options)
        finally:
            await page.close()

    async def capture_component(self, page, selector: str, screenshot_options: Dict[str, Any]) -> None:
        """Capture specific component screenshot."""
        options = {k: v for k, v in screenshot_options.items() if k != 'full_page'}
        await page.locator(selector).first.screenshot(**options)
