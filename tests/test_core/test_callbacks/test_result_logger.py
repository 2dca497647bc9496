"""Tests for ResultLogger and FileResultLogger.

These tests verify that every benchmark result measured during a run becomes one
JSONL record tagged with its suite and test, that metadata is written alongside,
and that runs without measurements leave no files behind.
"""

import json
import logging
from typing import Any, Dict, List

import pytest

from yunit import FileResultLogger, FixedCountRequest, ParameterSweep, ResultLogger, TestRunner

from conftest import EmptySuite


class ListLogger(ResultLogger):
    """In-memory result logger."""

    def __init__(self, fail: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.records: List[Dict[str, Any]] = []
        self.finalized = False
        self.fail = fail

    def log_result(self, record):
        if self.fail:
            raise IOError("disk full")
        self.records.append(record)

    def finalize(self):
        self.finalized = True

    def validate(self):
        return len(self.records) == self.n_results


def bench_suite(name="Bench"):
    suite = EmptySuite(name=name)
    suite.add_test("single", lambda: suite.measure(FixedCountRequest(fn=lambda i: None, operations=10, label="one")))
    suite.add_test(
        "sweep",
        lambda: suite.measure(
            FixedCountRequest(fn=lambda i: None, operations=10),
            ParameterSweep(parameters=[1, 2], before=lambda p, i: None),
        ),
    )
    return suite


@pytest.mark.core
class TestResultLogger:
    """Tests for the ResultLogger base class."""

    def test_records_carry_suite_and_test(self):
        logger = ListLogger()

        TestRunner(reporters=[logger]).run([bench_suite()])

        assert logger.finalized
        assert logger.n_results == 3
        assert [(r["suite"], r["test"], r["label"]) for r in logger.records] == [
            ("Bench", "single", "one"),
            ("Bench", "sweep", "1"),
            ("Bench", "sweep", "2"),
        ]
        record = logger.records[0]
        assert record["n"] == 10
        assert {"warmups", "total_nanos", "average_nanos", "ops_per_second", "logged_at"} <= set(record)

    def test_measurement_errors_are_counted(self):
        def fn(i):
            raise ValueError("boom")

        suite = EmptySuite(name="Broken")
        suite.add_test("fails", lambda: suite.measure(FixedCountRequest(fn=fn, operations=10)))
        logger = ListLogger()

        TestRunner(reporters=[logger]).run([suite])

        assert logger.n_errors == 1
        assert logger.records == []

    def test_logging_failure_does_not_fail_the_test(self, caplog):
        logger = ListLogger(fail=True)

        with caplog.at_level(logging.ERROR):
            results = TestRunner(reporters=[logger]).run([bench_suite()])

        assert results["Bench"].failed == []
        assert "Error logging benchmark result: disk full" in caplog.text

    def test_validation_failure_is_warned(self, caplog):
        class LossyLogger(ListLogger):
            def validate(self):
                return False

        with caplog.at_level(logging.WARNING):
            TestRunner(reporters=[LossyLogger()]).run([bench_suite()])

        assert "Result log validation failed: 3 results measured" in caplog.text


@pytest.mark.core
class TestFileResultLogger:
    """Tests for JSONL output."""

    def test_writes_jsonl_and_metadata(self, tmp_path):
        out_dir = tmp_path / "results"
        logger = FileResultLogger(output_dir=out_dir, filename_pattern="bench.jsonl")

        TestRunner(reporters=[logger]).run([bench_suite()])

        out_file = out_dir / "bench.jsonl"
        assert logger.output_path == out_file
        lines = out_file.read_text().splitlines()
        assert len(lines) == 3
        first = json.loads(lines[0])
        assert first["suite"] == "Bench"
        assert first["test"] == "single"
        assert first["n"] == 10

        metadata = json.loads((out_dir / "bench.meta.json").read_text())
        assert metadata["output_file"] == "bench.jsonl"
        assert metadata["results_written"] == 3
        assert metadata["measurement_errors"] == 0
        assert logger.validate()
        assert logger.read_results() == [json.loads(line) for line in lines]

    def test_accepts_string_dir_and_timestamp_pattern(self, tmp_path):
        logger = FileResultLogger(output_dir=str(tmp_path), atomic_writes=False, write_metadata=False)

        TestRunner(reporters=[logger]).run([bench_suite()])

        files = list(tmp_path.iterdir())
        assert len(files) == 1
        assert files[0].name.startswith("benchmark_")
        assert files[0].suffix == ".jsonl"
        assert len(logger.read_results()) == 3

    def test_no_file_without_measurements(self, tmp_path):
        suite = EmptySuite(name="Plain")
        suite.add_test("plain", lambda: None)
        logger = FileResultLogger(output_dir=tmp_path / "results")

        TestRunner(reporters=[logger]).run([suite])

        assert logger.output_path is None
        assert not (tmp_path / "results").exists()
        assert logger.validate()
        assert logger.read_results() == []

    def test_validate_detects_missing_lines(self, tmp_path):
        logger = FileResultLogger(output_dir=tmp_path, filename_pattern="bench.jsonl", validate_on_completion=False)
        TestRunner(reporters=[logger]).run([bench_suite()])

        lines = (tmp_path / "bench.jsonl").read_text().splitlines()
        (tmp_path / "bench.jsonl").write_text(lines[0] + "\n")

        assert logger.validate() is False
