import sys
import os
import threading
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from core.errors import ErrorEntry, ErrorLog, errors_for_task, run_level_errors

def test_record_keeps_order():
    log = ErrorLog()
    log.record('first', name='a')
    log.record('second')
    assert log.entries() == [ErrorEntry('first', 'a'), ErrorEntry('second', None)]
    assert run_level_errors(log.entries()) == [ErrorEntry('second')]
    assert errors_for_task(log.entries(), 'a') == [ErrorEntry('first', 'a')]

def test_entries_is_a_snapshot():
    log = ErrorLog()
    snapshot = log.entries()
    log.record('later')
    assert snapshot == []
    assert len(log) == 1

def test_concurrent_records_are_not_lost():
    log = ErrorLog()

    def worker(index):
        for i in range(200):
            log.record(f'{index}-{i}', name=str(index))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(log) == 1600
    assert len(errors_for_task(log.entries(), '3')) == 200
