"""Console reporter rendering test runs and measurements with rich."""

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..benchmark import FixedCountRequest
from ..reporter import Reporter

if TYPE_CHECKING:
    from ..benchmark import BenchmarkRequest, BenchmarkResult
    from ..runner import SuiteResult, TestOutcome, TestRunner
    from ..suite import TestSuite


def format_ns(ns: float) -> str:
    return format_us(ns / 1e3) if ns > 1e4 else f"{round(ns)} ns"


def format_us(us: float) -> str:
    return format_ms(us / 1e3) if us > 1e4 else f"{round(us)} us"


def format_ms(ms: float) -> str:
    return f"{round(ms)} ms"


def format_mops(ops_per_second: float) -> str:
    return f"{round(ops_per_second / 1000) / 1000} MOp/s"


def plural(word: str, n: int) -> str:
    return word if n == 1 else word + "s"


@dataclass
class MeasurementRow:
    suite: str
    test: str
    result: "BenchmarkResult"


class ConsoleReporter(Reporter):
    """Prints a gtest-style log of the run and a table of all measurements.

    Example:
        ```python
        reporter = ConsoleReporter(name="perf suite", path="tests/perf", filters=["Cache"])
        TestRunner(reporters=[reporter]).run(suites)
        ```

    Args:
        name: Name of the run, shown in the header.
        path: Directory the suites were loaded from, shown in the header.
        filters: Test filters of the run, shown in the header.
        console: Console to print to. Defaults to a new stdout console.
    """

    def __init__(
        self,
        name: str = "yunit",
        path: str = "",
        filters: Iterable[str] = (),
        console: Optional[Console] = None,
    ):
        super().__init__()
        self.name = name
        self.path = path
        self.filters = list(filters)
        self.console = console or Console(highlight=False)
        self.failed_tests: List[str] = []
        self.rows: List[MeasurementRow] = []
        self._indent = 0
        self._suite = ""
        self._test = ""

    # --- Output helpers ---

    def _out(self, tag: str = "", style: str = "", *rest: str) -> None:
        if not tag and not rest:
            self.console.print()
            return
        line = Text("    " * self._indent)
        line.append(tag, style=style)
        for part in rest:
            line.append(" ")
            line.append(part)
        self.console.print(line)

    def _field(self, name: str, value: str, style: str = "green") -> None:
        line = Text("    " * self._indent)
        line.append(f"{name:>11} ")
        line.append(value, style=style)
        self.console.print(line)

    def _dedent(self) -> None:
        self._indent = max(0, self._indent - 1)

    # --- Run events ---

    def on_run_start(self, runner: "TestRunner", suites: Mapping[str, "TestSuite"]) -> None:
        self.failed_tests = []
        self.rows = []
        self._indent = 0
        self._out("[==========]", "green", f"Running {self.name}")
        self._out("[----------]", "green", f"Path: {os.path.abspath(self.path) if self.path else ''}")
        self._out("[----------]", "green", f"Filters: [{', '.join(repr(f) for f in self.filters)}]")
        self._out("[----------]", "green", "Global test environment set-up.")

    def on_suite_start(self, suite: "TestSuite", tests: List[str]) -> None:
        self._out()
        self._out("[----------]", "green", f"{len(tests)} {plural('test', len(tests))} from {suite.name}")

    def on_test_start(self, suite: "TestSuite", name: str) -> None:
        self._suite = suite.name
        self._test = name
        self._out("[ RUN      ]", "green", f"{suite.name}.{name}")
        self._indent += 1

    def on_test_end(self, suite: "TestSuite", outcome: "TestOutcome") -> None:
        duration = f"({format_ms(outcome.duration_ms)})"
        if outcome.status.value == "passed":
            self._dedent()
            self._out("[       OK ]", "green", outcome.qualified_name, duration)
            return

        self.failed_tests.append(outcome.qualified_name)
        if outcome.error:
            for line in outcome.error["traceback"].rstrip().splitlines():
                self._out(line)
        self._dedent()
        self._out("[  FAILED  ]", "red", outcome.qualified_name, duration)

    def on_suite_end(self, suite: "TestSuite", result: "SuiteResult") -> None:
        self._out(
            "[----------]",
            "green",
            f"{result.total} {plural('test', result.total)} from {suite.name} ({format_ms(result.duration_ms)} total)",
        )

    def on_run_end(self, runner: "TestRunner", results: Dict[str, "SuiteResult"]) -> None:
        n_suites = len(results)
        n_total = sum(r.total for r in results.values())
        n_passed = n_total - sum(len(r.failed) for r in results.values())
        n_failed = len(self.failed_tests)
        t_total = sum(r.duration_ms for r in results.values())

        self._out()
        self._out("[----------]", "green", "Global test environment tear-down")
        self._out(
            "[==========]",
            "green",
            f"{n_total} {plural('test', n_total)} from {n_suites} test {plural('suite', n_suites)} ran. "
            f"({format_ms(t_total)} total)",
        )
        self._out("[  PASSED  ]", "green", f"{n_passed} {plural('test', n_passed)}.")
        if n_failed:
            self._out("[  FAILED  ]", "red", f"{n_failed} {plural('test', n_failed)}, listed below:")
            for name in self.failed_tests:
                self._out("[  FAILED  ]", "red", name)
        self._out()

        if self.rows:
            self.console.print(self.results_table())
            self._out()

    def results_table(self) -> Table:
        """Table of every measurement of the run."""
        table = Table()
        for header in ("Suite", "Test", "Label", "N", "Total", "Mean", "MOp/s"):
            table.add_column(header, justify="right")
        for row in self.rows:
            r = row.result
            table.add_row(
                row.suite,
                row.test,
                r.label or "",
                str(r.n),
                format_ns(r.total_nanos),
                format_ns(r.average_nanos),
                format_mops(r.ops_per_second).split(" ")[0],
            )
        return table

    # --- Measurement events ---

    def on_measurement_start(self, request: "BenchmarkRequest") -> None:
        self._out("[ MEASURE  ]", "yellow")
        self._indent += 1
        if request.label:
            self._field("Label:", request.label)
        if isinstance(request, FixedCountRequest):
            self._field("Operations:", str(request.operations))
        else:
            self._field("Target:", f"{request.target_time} s")
        self._field("Warmups:", str(request.warmups))

    def on_measurement_error(self, iteration: int, during_warmup: bool) -> None:
        phase = "warmup" if during_warmup else "measurement"
        self._out(f"Failed on operation {iteration} ({phase})", "red")
        self._dedent()
        self._out("[  FAILED  ]", "red")

    def on_measurement_end(self, result: "BenchmarkResult") -> None:
        self.rows.append(MeasurementRow(suite=self._suite, test=self._test, result=result))
        self._field("N:", str(result.n))
        self._field("Total time:", format_ns(result.total_nanos))
        self._field("Average:", format_ns(result.average_nanos))
        self._field("Rate:", format_mops(result.ops_per_second))
        self._dedent()
        self._out("[     DONE ]", "yellow")
