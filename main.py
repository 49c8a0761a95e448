#!/usr/bin/env python3
"""
Visual Diff Runner
Main entry point for the application.
"""

import argparse
import asyncio
import logging
import os
import sys

from core.config import REPORTERS, load_job
from core.errors import VisualDiffError
from core.runner import run_visual_diff

logger = logging.getLogger(__name__)


def configure_logging():
    """Log to stderr so stdout carries only the report."""
    level = os.getenv('VISUAL_DIFF_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    """Main execution function."""
    parser = argparse.ArgumentParser(description='Compare page screenshots against reference images.')
    parser.add_argument('job', help='JSON job file with "tasks" and "options"')
    parser.add_argument('--reporter', choices=REPORTERS, help='Override the reporter from the job file')
    args = parser.parse_args(argv)

    configure_logging()

    try:
        tasks, options = load_job(args.job)
        if args.reporter:
            options = options.replace(reporter=args.reporter)
        summary = asyncio.run(run_visual_diff(tasks, options))
    except VisualDiffError as e:
        logger.error(str(e))
        return 2

    return 0 if summary.success else 1


if __name__ == "__main__":
    sys.exit(main())
