"""
Configuration Module
Resolves run options and loads JSON job files.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ConfigError

logger = logging.getLogger(__name__)

REPORTERS = ('console', 'xunit', 'json')
CAPTURE_FAILURE_POLICIES = ('continue', 'abort')
BROWSERS = ('chromium', 'firefox', 'webkit')

DEFAULT_TOLERANCE = 0.01
DEFAULT_FAIL_FILE_SUFFIX = '_fail'
DEFAULT_DIFF_FILE_SUFFIX = '_diff'

# Option name -> accepted keys, first match wins
OPTION_KEYS = {
    'dir': ('dir',),
    'tolerance': ('tolerance',),
    'file_prefix': ('file_prefix', 'filePrefix'),
    'file_suffix': ('file_suffix', 'fileSuffix'),
    'fail_file_suffix': ('fail_file_suffix', 'failFileSuffix'),
    'diff_file_suffix': ('diff_file_suffix', 'diffFileSuffix'),
    'reporter': ('reporter',),
    'capture_failure_policy': ('capture_failure_policy', 'captureFailurePolicy'),
    'compare_timeout': ('compare_timeout', 'compareTimeout'),
    'browser': ('browser',),
    'launch_options': ('launch_options', 'launchOptions', 'puppeteerOptions'),
    'page_options': ('page_options', 'pageOptions'),
}


@dataclass(frozen=True)
class RunOptions:
    dir: str = '.'
    tolerance: float = DEFAULT_TOLERANCE
    file_prefix: str = ''
    file_suffix: str = ''
    fail_file_suffix: str = DEFAULT_FAIL_FILE_SUFFIX
    diff_file_suffix: str = DEFAULT_DIFF_FILE_SUFFIX
    reporter: str = 'console'
    capture_failure_policy: str = 'continue'
    compare_timeout: Optional[float] = None
    browser: str = 'chromium'
    launch_options: Dict[str, Any] = field(default_factory=dict)
    page_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, (int, float)):
            raise ConfigError(f"tolerance must be a number, got {self.tolerance!r}")
        if self.tolerance < 0:
            raise ConfigError(f"tolerance must not be negative, got {self.tolerance}")
        if self.reporter not in REPORTERS:
            raise ConfigError(f"Unknown reporter {self.reporter!r}, expected one of {', '.join(REPORTERS)}")
        if self.capture_failure_policy not in CAPTURE_FAILURE_POLICIES:
            raise ConfigError(
                f"Unknown capture failure policy {self.capture_failure_policy!r}, "
                f"expected one of {', '.join(CAPTURE_FAILURE_POLICIES)}"
            )
        if self.compare_timeout is not None and self.compare_timeout <= 0:
            raise ConfigError(f"compare_timeout must be positive, got {self.compare_timeout}")
        if self.browser not in BROWSERS:
            raise ConfigError(f"Unknown browser {self.browser!r}, expected one of {', '.join(BROWSERS)}")
        # Keep the tolerance a float so the >= check compares floats
        object.__setattr__(self, 'tolerance', float(self.tolerance))

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]] = None) -> 'RunOptions':
        """Build options from a mapping, accepting snake_case and camelCase keys."""
        options = options or {}
        values = {}
        for attr, keys in OPTION_KEYS.items():
            for key in keys:
                if key in options and options[key] is not None:
                    values[attr] = options[key]
                    break
        unknown = set(options) - {k for keys in OPTION_KEYS.values() for k in keys}
        if unknown:
            logger.debug(f"Ignoring unknown options: {sorted(unknown)}")
        for attr in ('launch_options', 'page_options'):
            if attr in values:
                if not isinstance(values[attr], Mapping):
                    raise ConfigError(f"{attr} must be a mapping")
                values[attr] = dict(values[attr])
        if 'compare_timeout' in values:
            try:
                values['compare_timeout'] = float(values['compare_timeout'])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"compare_timeout must be a number: {e}") from e
        if 'dir' in values:
            values['dir'] = str(values['dir'])
        return cls(**values)

    def replace(self, **changes) -> 'RunOptions':
        data = {attr: getattr(self, attr) for attr in OPTION_KEYS}
        data.update(changes)
        return RunOptions(**data)


def load_job(job_path: str | Path) -> Tuple[List[Any], RunOptions]:
    """
    Load a JSON job file.

    The file holds either ``{"tasks": [...], "options": {...}}`` or a bare
    list of tasks, in which case default options are used.

    Returns:
        Tuple of (raw task structure, resolved options)

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    path = Path(job_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read job file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in job file {path}: {e}") from e

    if isinstance(data, list):
        return data, RunOptions()
    if not isinstance(data, dict) or 'tasks' not in data:
        raise ConfigError(f"Job file {path} must contain a 'tasks' list")

    options = RunOptions.from_dict(data.get('options') or {})
    logger.info(f"Loaded job file {path}")
    return data['tasks'], options
