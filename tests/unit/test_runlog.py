"""
Unit tests for the plain-text run log.
"""

import logging
import re

import pytest

from tasksoak.runlog import DEFAULT_HEADER, RunLog, RunLogFormatter


pytestmark = pytest.mark.unit

LINE_PATTERN = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\] \[(ACTION|ERROR)\] (.*)$")


def test_header_and_tagged_lines(tmp_path):
    path = tmp_path / "soak_log.txt"

    with RunLog(path) as run_log:
        run_log.action("Inserted task: a (ID: 1) priority: low")
        run_log.error("total_count mismatch. Expected: 1, Found: 0")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == DEFAULT_HEADER
    first, second = (LINE_PATTERN.match(line) for line in lines[1:3])
    assert first.groups() == ("ACTION", "Inserted task: a (ID: 1) priority: low")
    assert second.groups() == ("ERROR", "total_count mismatch. Expected: 1, Found: 0")


def test_reset_truncates_previous_content(tmp_path):
    path = tmp_path / "soak_log.txt"
    run_log = RunLog(path, header="Header")
    run_log.action("first round")

    run_log.reset()
    run_log.action("second round")
    run_log.close()

    content = path.read_text(encoding="utf-8")
    assert "first round" not in content
    assert content.startswith("Header\n")
    assert "second round" in content


def test_section_marker_has_no_timestamp(tmp_path):
    path = tmp_path / "nested" / "run.log"

    with RunLog(path) as run_log:
        run_log.section("Round 2")

    assert "\n=== Round 2 ===\n" in path.read_text(encoding="utf-8")


def test_run_log_does_not_propagate(tmp_path, caplog):
    with caplog.at_level(logging.INFO):
        with RunLog(tmp_path / "run.log") as run_log:
            run_log.action("kept out of the root logger")

    assert "kept out of the root logger" not in caplog.text


def test_null_run_log_writes_nothing(tmp_path):
    with RunLog(None) as run_log:
        run_log.action("discarded")

    assert run_log.path is None
    assert list(tmp_path.iterdir()) == []


def test_formatter_passes_raw_records_through():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "Insertion Probability: 0.5", None, None)
    record.raw = True

    assert RunLogFormatter().format(record) == "Insertion Probability: 0.5"
