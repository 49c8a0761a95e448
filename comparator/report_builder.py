"""
Report Builder Module
Renders run results as a console summary, an xunit document or JSON,
using Jinja2 templates.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence, TextIO

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.errors import ErrorEntry, errors_for_task, run_level_errors
from core.tasks import Task

TEMPLATE_DIR = Path(__file__).parent / 'templates'
SUITE_NAME = 'Diff-Suite'
TESTCASE_CLASSNAME = 'visual-diff'
TEMPLATES = {
    'console': 'console.txt',
    'xunit': 'xunit.xml',
}


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Format a time as an RFC 1123 UTC string, e.g. 'Mon, 19 Oct 2026 12:00:00 GMT'."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime('%a, %d %b %Y %H:%M:%S GMT')


class ReportBuilder:
    def __init__(self, reporter: str = 'console'):
        if reporter not in TEMPLATES and reporter != 'json':
            raise ValueError(f"Unknown reporter: {reporter}")
        self.reporter = reporter
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(['xml']),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def collect_metrics(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry]) -> Dict:
        """Group errors by task name. Run-level errors are kept apart."""
        return {
            'tests': len(tasks),
            'failures': len(errors),
            'testcases': [
                {'name': task.name, 'failures': errors_for_task(errors, task.name)}
                for task in tasks
            ],
            'run_errors': run_level_errors(errors),
        }

    def render(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry],
               timestamp: Optional[datetime] = None) -> str:
        stamp = utc_timestamp(timestamp)
        if self.reporter == 'xunit':
            return self.generate_xunit_report(tasks, errors, stamp)
        if self.reporter == 'json':
            return self.generate_json_report(tasks, errors, stamp)
        return self.generate_console_report(tasks, errors, stamp)

    def generate_console_report(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry],
                                timestamp: str) -> str:
        template = self.env.get_template(TEMPLATES['console'])
        return template.render(timestamp=timestamp, tests=tasks, errors=errors)

    def generate_xunit_report(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry],
                              timestamp: str) -> str:
        metrics = self.collect_metrics(tasks, errors)
        # errors/skipped/time are not tracked and always report zero
        suite = [
            ('name', SUITE_NAME),
            ('tests', metrics['tests']),
            ('failures', metrics['failures']),
            ('timestamp', timestamp),
            ('errors', 0),
            ('skipped', 0),
            ('time', 0),
        ]
        template = self.env.get_template(TEMPLATES['xunit'])
        return template.render(
            suite=suite,
            classname=TESTCASE_CLASSNAME,
            testcases=metrics['testcases'],
            run_errors=metrics['run_errors'],
        )

    def generate_json_report(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry],
                             timestamp: str) -> str:
        metrics = self.collect_metrics(tasks, errors)
        data = {
            'suite': SUITE_NAME,
            'timestamp': timestamp,
            'tests': metrics['tests'],
            'failures': metrics['failures'],
            'testcases': [
                {'name': case['name'], 'failures': [e.message for e in case['failures']]}
                for case in metrics['testcases']
            ],
            'run_errors': [e.message for e in metrics['run_errors']],
        }
        return json.dumps(data, indent=2) + '\n'

    def report(self, tasks: Sequence[Task], errors: Sequence[ErrorEntry],
               stream: Optional[TextIO] = None) -> None:
        """Write the rendered report to stdout or the given stream."""
        stream = stream or sys.stdout
        stream.write(self.render(tasks, errors))
        stream.flush()
