import sys
import os
import io
import json
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from comparator.report_builder import ReportBuilder, utc_timestamp
from core.errors import ErrorEntry
from core.tasks import flatten

NOW = datetime(2026, 10, 19, 12, 30, 5, tzinfo=timezone.utc)
TASKS = flatten([[{'name': 'home'}, {'name': 'about'}], [{'name': 'contact'}]])

def test_utc_timestamp_format():
    assert utc_timestamp(NOW) == 'Mon, 19 Oct 2026 12:30:05 GMT'

def test_console_report_without_errors():
    report = ReportBuilder('console').render(TASKS, [], NOW)
    assert report.splitlines() == [
        'Result Mon, 19 Oct 2026 12:30:05 GMT',
        '3 tests run',
        '0 errors occured',
    ]

def test_console_report_with_errors():
    errors = [ErrorEntry('Mismatch of 5 for home, see d/home_diff.png', 'home'),
              ErrorEntry('browser crashed')]
    report = ReportBuilder('console').render(TASKS, errors, NOW)
    assert report.splitlines()[2:] == [
        '2 errors occured',
        'Error-log',
        '--> home: Mismatch of 5 for home, see d/home_diff.png',
        '--> browser crashed',
    ]

def test_xunit_one_testcase_per_task():
    errors = [ErrorEntry(f'failed {i}', 'about') for i in range(3)]
    suite = ET.fromstring(ReportBuilder('xunit').render(TASKS, errors, NOW).encode())
    cases = suite.findall('testcase')
    assert [c.get('name') for c in cases] == ['home', 'about', 'contact']
    assert [len(c.findall('failure')) for c in cases] == [0, 3, 0]
    assert all(c.get('classname') == 'visual-diff' and c.get('time') == '0' for c in cases)

def test_xunit_suite_attributes():
    errors = [ErrorEntry('x', 'home')]
    suite = ET.fromstring(ReportBuilder('xunit').render(TASKS, errors, NOW).encode())
    assert suite.tag == 'testsuite'
    assert suite.get('name') == 'Diff-Suite'
    assert suite.get('tests') == '3'
    assert suite.get('failures') == '1'
    assert suite.get('timestamp') == 'Mon, 19 Oct 2026 12:30:05 GMT'
    assert (suite.get('errors'), suite.get('skipped'), suite.get('time')) == ('0', '0', '0')

def test_xunit_run_level_errors_only_at_suite_level():
    errors = [ErrorEntry('browser crashed'), ErrorEntry('Mismatch', 'home')]
    suite = ET.fromstring(ReportBuilder('xunit').render(TASKS, errors, NOW).encode())
    suite_failures = suite.findall('failure')
    assert [f.get('message') for f in suite_failures] == ['browser crashed']
    nested = [f.get('message') for c in suite.findall('testcase') for f in c.findall('failure')]
    assert nested == ['Mismatch']
    assert suite.get('failures') == '2'

def test_xunit_matches_names_exactly():
    errors = [ErrorEntry('x', 'hom'), ErrorEntry('y', 'HOME')]
    suite = ET.fromstring(ReportBuilder('xunit').render(TASKS, errors, NOW).encode())
    assert all(len(c.findall('failure')) == 0 for c in suite.findall('testcase'))

def test_xunit_escapes_attributes():
    errors = [ErrorEntry('expected "a" & <b>', 'home')]
    suite = ET.fromstring(ReportBuilder('xunit').render(TASKS, errors, NOW).encode())
    failure = suite.find('testcase').find('failure')
    assert failure.get('message') == 'expected "a" & <b>'

def test_json_report():
    errors = [ErrorEntry('browser crashed'), ErrorEntry('Mismatch', 'home')]
    data = json.loads(ReportBuilder('json').render(TASKS, errors, NOW))
    assert data['tests'] == 3
    assert data['failures'] == 2
    assert data['run_errors'] == ['browser crashed']
    assert data['testcases'][0] == {'name': 'home', 'failures': ['Mismatch']}
    assert data['timestamp'] == 'Mon, 19 Oct 2026 12:30:05 GMT'

def test_report_writes_to_stream():
    stream = io.StringIO()
    ReportBuilder('console').report(TASKS, [], stream)
    assert '3 tests run' in stream.getvalue()

def test_render_does_not_mutate_errors():
    errors = [ErrorEntry('x', 'home')]
    ReportBuilder('xunit').render(TASKS, errors, NOW)
    assert errors == [ErrorEntry('x', 'home')]

def test_unknown_reporter():
    with pytest.raises(ValueError):
        ReportBuilder('html')
