"""Reporters that log benchmark results to various backends.

This module provides a common interface for result logging implementations that write
each measurement result as soon as it completes and validate completeness at the end
of the run.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from ..reporter import Reporter

if TYPE_CHECKING:
    from ..benchmark import BenchmarkResult
    from ..runner import SuiteResult, TestRunner
    from ..suite import TestSuite

logger = logging.getLogger(__name__)


class ResultLogger(Reporter, ABC):
    """Abstract base class for logging benchmark results.

    Every `BenchmarkResult` is turned into a record carrying the suite and test that
    produced it, then handed to `log_result`. At the end of the run `finalize` is
    called, followed by `validate` if enabled.

    Example:
        ```python
        class ListLogger(ResultLogger):
            def __init__(self):
                super().__init__()
                self.records = []

            def log_result(self, record):
                self.records.append(record)

            def finalize(self):
                pass

            def validate(self):
                return len(self.records) == self.n_results

        runner = TestRunner(reporters=[ListLogger()])
        ```
    """

    def __init__(self, validate_on_completion: bool = True):
        """Initialize the result logger.

        Args:
            validate_on_completion: If True, validate all results were logged at end of run.
        """
        super().__init__()
        self.validate_on_completion = validate_on_completion
        self._suite: Optional[str] = None
        self._test: Optional[str] = None
        self.n_results = 0
        self.n_errors = 0

    def on_run_start(self, runner: "TestRunner", suites: Mapping[str, "TestSuite"]) -> None:
        self.n_results = 0
        self.n_errors = 0

    def on_test_start(self, suite: "TestSuite", name: str) -> None:
        self._suite = suite.name
        self._test = name

    def on_measurement_error(self, iteration: int, during_warmup: bool) -> None:
        self.n_errors += 1

    def on_measurement_end(self, result: "BenchmarkResult") -> None:
        """Build a record for the result and log it."""
        record: Dict[str, Any] = {
            "suite": self._suite,
            "test": self._test,
            **result.to_dict(),
            "logged_at": datetime.now().isoformat(),
        }
        self.n_results += 1
        try:
            self.log_result(record)
        except Exception as e:
            logger.error("Error logging benchmark result: %s", e)
            raise

    def on_run_end(self, runner: "TestRunner", results: Dict[str, "SuiteResult"]) -> None:
        """Finalize logging and optionally validate completeness."""
        try:
            self.finalize()
        except Exception as e:
            logger.error("Error finalizing result log: %s", e)
            raise

        if self.validate_on_completion and not self.validate():
            logger.warning("Result log validation failed: %d results measured", self.n_results)

    @abstractmethod
    def log_result(self, record: Dict[str, Any]) -> None:
        """Log a single benchmark result record.

        Args:
            record: Dict with `suite`, `test`, the `BenchmarkResult` fields and `logged_at`.
        """
        pass

    @abstractmethod
    def finalize(self) -> None:
        """Close files, flush buffers and write metadata. Called at end of run."""
        pass

    @abstractmethod
    def validate(self) -> bool:
        """Check that every measured result was logged.

        Returns:
            True if validation passes, False otherwise
        """
        pass


class FileResultLogger(ResultLogger):
    """Logger that writes benchmark results incrementally to a JSONL file.

    Each result is one JSON object per line, written as soon as the measurement ends.
    No file is created for a run without measurements.

    Attributes:
        output_dir: Directory where result files will be written
        filename_pattern: Pattern for result filename (supports {timestamp})
        write_metadata: Whether to write a `.meta.json` file with run information
        atomic_writes: Whether to use atomic writes (recommended)

    Example:
        ```python
        from yunit.core.callbacks import FileResultLogger

        logger = FileResultLogger(output_dir="./results")
        runner = TestRunner(reporters=[ConsoleReporter(name="perf"), logger])
        runner.run(suites)

        # Results are written to: ./results/benchmark_20251028_143022.jsonl
        ```
    """

    def __init__(
        self,
        output_dir: Union[str, Path] = "./results",
        filename_pattern: str = "benchmark_{timestamp}.jsonl",
        write_metadata: bool = True,
        atomic_writes: bool = True,
        validate_on_completion: bool = True,
    ):
        """Initialize the file logger.

        Args:
            output_dir: Directory where result files will be written (created if needed)
            filename_pattern: Pattern for result filename. Use {timestamp} for
                automatic timestamp insertion (format: YYYYMMDD_HHMMSS)
            write_metadata: If True, write a metadata file alongside results
            atomic_writes: If True, write each line through a synced temp file
            validate_on_completion: If True, validate all results were written
        """
        super().__init__(validate_on_completion=validate_on_completion)

        self.output_dir = Path(output_dir)
        self.filename_pattern = filename_pattern
        self.write_metadata = write_metadata
        self.atomic_writes = atomic_writes

        self._output_path: Optional[Path] = None
        self._file_handle = None  # type: ignore[assignment]
        self._timestamp: Optional[str] = None
        self._lines_written: int = 0

    @property
    def output_path(self) -> Optional[Path]:
        return self._output_path

    def on_run_start(self, runner: "TestRunner", suites: Mapping[str, "TestSuite"]) -> None:
        super().on_run_start(runner, suites)
        self._output_path = None
        self._lines_written = 0

    def log_result(self, record: Dict[str, Any]) -> None:
        """Append one record to the JSONL file."""
        # Lazy initialization of file on first write
        if self._file_handle is None:
            self._initialize_output_file()

        json_line = json.dumps(record, default=str) + "\n"

        if self.atomic_writes:
            self._write_atomic(json_line)
        else:
            self._file_handle.write(json_line)  # type: ignore[union-attr]
            self._file_handle.flush()  # type: ignore[union-attr]

        self._lines_written += 1

    def finalize(self) -> None:
        """Close the file and write metadata."""
        if self._file_handle is not None:
            self._file_handle.close()
            self._file_handle = None

        if self.write_metadata and self._output_path is not None:
            self._write_metadata()

    def validate(self) -> bool:
        """Check that the file holds one valid JSON line per measured result."""
        if self.n_results == 0:
            return self._output_path is None

        if self._output_path is None or not self._output_path.exists():
            logger.warning("Validation failed: output file not found")
            return False

        lines = self._output_path.read_text().splitlines()
        if len(lines) != self.n_results:
            logger.warning("Validation failed: expected %d lines, found %d", self.n_results, len(lines))
            return False

        for line_num, line in enumerate(lines, 1):
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Validation failed: invalid JSON at line %d: %s", line_num, e)
                return False
            if "n" not in data or "total_nanos" not in data:
                logger.warning("Validation failed: line %d is not a benchmark result", line_num)
                return False

        return True

    def read_results(self) -> List[Dict[str, Any]]:
        """Records written during the current run."""
        if self._output_path is None or not self._output_path.exists():
            return []
        return [json.loads(line) for line in self._output_path.read_text().splitlines()]

    def _initialize_output_file(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = self.filename_pattern.replace("{timestamp}", self._timestamp)
        self._output_path = self.output_dir / filename
        self._file_handle = open(self._output_path, "w")

    def _write_atomic(self, content: str) -> None:
        """Write content through a synced temp file, then append it to the main file."""
        # The main file never holds a partial line
        with tempfile.NamedTemporaryFile(mode="w", dir=self.output_dir, delete=False) as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = tmp.name

        try:
            with open(tmp_path, "r") as tmp_read:
                self._file_handle.write(tmp_read.read())  # type: ignore[union-attr]
                self._file_handle.flush()  # type: ignore[union-attr]
                os.fsync(self._file_handle.fileno())  # type: ignore[union-attr]
        finally:
            os.unlink(tmp_path)

    def _write_metadata(self) -> None:
        if self._output_path is None:
            return

        metadata = {
            "output_file": str(self._output_path.name),
            "timestamp": self._timestamp,
            "results_written": self._lines_written,
            "measurement_errors": self.n_errors,
            "validation_enabled": self.validate_on_completion,
        }

        meta_path = self._output_path.with_suffix(".meta.json")
        with open(meta_path, "w") as f:
            json.dump(metadata, f, indent=2)
