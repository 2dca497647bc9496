"""Reporter (result sink) base class.

Reporters observe test runs and benchmark measurements. Every hook has a no-op
default, so a reporter only overrides the events it cares about.
"""

from abc import ABC
from typing import TYPE_CHECKING, Dict, List, Mapping

if TYPE_CHECKING:
    from .benchmark import BenchmarkRequest, BenchmarkResult
    from .runner import SuiteResult, TestOutcome, TestRunner
    from .suite import TestSuite


class Reporter(ABC):
    """Base class for reporters.

    Run events are emitted by `TestRunner`, measurement events by the `BenchmarkEngine`
    of the suite that is currently running. Measurement events always happen between
    `on_test_start` and `on_test_end` of the test that called `measure`.

    Example:
        ```python
        class CountingReporter(Reporter):
            def __init__(self):
                self.measurements = 0

            def on_measurement_end(self, result):
                self.measurements += 1

        runner = TestRunner(reporters=[CountingReporter()])
        ```
    """

    def on_run_start(self, runner: "TestRunner", suites: Mapping[str, "TestSuite"]) -> None:
        pass

    def on_suite_start(self, suite: "TestSuite", tests: List[str]) -> None:
        pass

    def on_test_start(self, suite: "TestSuite", name: str) -> None:
        pass

    def on_test_end(self, suite: "TestSuite", outcome: "TestOutcome") -> None:
        pass

    def on_suite_end(self, suite: "TestSuite", result: "SuiteResult") -> None:
        pass

    def on_run_end(self, runner: "TestRunner", results: Dict[str, "SuiteResult"]) -> None:
        pass

    def on_measurement_start(self, request: "BenchmarkRequest") -> None:
        """Called once a request passed validation. `request.warmups` is resolved."""
        pass

    def on_measurement_error(self, iteration: int, during_warmup: bool) -> None:
        """Called when the measured function raised on absolute iteration `iteration`."""
        pass

    def on_measurement_end(self, result: "BenchmarkResult") -> None:
        pass
