import asyncio
import inspect
import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Pattern, Union

from .reporter import Reporter
from .reporter_handler import ReporterHandler
from .suite import TestSuite
from .callbacks.progress_bar import ProgressReporter, RichProgressReporter, TqdmProgressReporter

logger = logging.getLogger(__name__)


class TestStatus(Enum):
    """Outcome of a single test.

    Attributes:
        PASSED: The test body and its hooks completed.
        FAILED: The test body raised an `AssertionError`.
        ERRORED: The test body or a hook raised any other exception.
    """

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"


@dataclass
class TestOutcome:
    """Result of running one test."""

    __test__ = False

    suite: str
    test: str
    status: TestStatus
    duration_ms: float
    error: Optional[Dict[str, Any]] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.suite}.{self.test}"


@dataclass
class SuiteResult:
    """Outcomes of all tests that ran in one suite, in execution order."""

    suite: str
    outcomes: List[TestOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def count(self, status: TestStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def duration_ms(self) -> float:
        """Sum of the individual test durations."""
        return sum(o.duration_ms for o in self.outcomes)

    @property
    def failed(self) -> List[TestOutcome]:
        return [o for o in self.outcomes if o.status != TestStatus.PASSED]


def _describe_error(error: BaseException) -> Dict[str, Any]:
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    }


def _call(fn: Callable[..., Any], *args: Any) -> None:
    """Call a sync or async function to completion."""
    result = fn(*args)
    if inspect.isawaitable(result):
        asyncio.run(_await(result))


async def _await(awaitable: Any) -> None:
    await awaitable


class TestRunner:
    """Runs test suites sequentially and reports to a list of reporters.

    The runner hands its reporters to each suite before running it, so measurements
    made inside tests reach the same reporters as the run events.

    How to use:
        ```python
        runner = TestRunner(reporters=[ConsoleReporter(name="unit tests")], progress_bar=False)
        results = runner.run({"cache": CacheSuite()}, filters=["lookup"])

        failed = [o for r in results.values() for o in r.failed]
        ```
    """

    __test__ = False

    def __init__(
        self,
        reporters: Optional[List[Reporter]] = None,
        progress_bar: Union[bool, str] = False,
        fail_fast: bool = False,
    ):
        """Initialize the runner.

        Args:
            reporters: Reporters notified of run, suite, test and measurement events.
            progress_bar: Adds a progress reporter unless one is already in `reporters`:
                - True or "tqdm": a `TqdmProgressReporter`
                - "rich": a `RichProgressReporter`
                - False (default): none
            fail_fast: If True, stop after the first test that does not pass.

        Raises:
            ValueError: If `progress_bar` is not one of the accepted values.
        """
        self.reporter_handler = ReporterHandler(reporters)
        self.fail_fast = fail_fast

        if progress_bar is not False:
            has_progress_bar = any(isinstance(r, ProgressReporter) for r in self.reporters)
            if not has_progress_bar:
                if progress_bar is True or progress_bar == "tqdm":
                    self.reporter_handler.register(TqdmProgressReporter())
                elif progress_bar == "rich":
                    self.reporter_handler.register(RichProgressReporter())
                else:
                    raise ValueError(f"Invalid progress_bar value: {progress_bar!r}. Must be True, False, 'tqdm', or 'rich'.")

        self.results: Dict[str, SuiteResult] = {}
        self.total_tests = 0

    @property
    def reporters(self) -> List[Reporter]:
        return self.reporter_handler.reporters

    def run(
        self,
        suites: Union[Mapping[str, TestSuite], Iterable[TestSuite]],
        filters: Iterable[Union[str, Pattern[str]]] = (),
    ) -> Dict[str, SuiteResult]:
        """Run every selected test of every suite.

        Args:
            suites: Suites keyed by name (for example their source file), or an iterable
                of suites keyed by `suite.name`.
            filters: Regular expressions matched against `"<suite>.<test>"`. No filters
                selects every test.

        Returns:
            Mapping from suite key to its `SuiteResult`. Suites without selected tests
            are skipped.
        """
        if not isinstance(suites, Mapping):
            suites = {suite.name: suite for suite in suites}
        filters = list(filters)

        self.results = {}
        selected = {key: suite.get_tests(filters) for key, suite in suites.items()}
        self.total_tests = sum(len(tests) for tests in selected.values())

        self.reporter_handler.invoke("on_run_start", self, suites)

        for key, suite in suites.items():
            tests = selected[key]
            if not tests:
                continue
            result = self.run_suite(suite, tests)
            self.results[key] = result
            if self.fail_fast and result.failed:
                break

        self.reporter_handler.invoke("on_run_end", self, self.results)
        return self.results

    def run_suite(self, suite: TestSuite, tests: Mapping[str, Callable[..., Any]]) -> SuiteResult:
        """Run the given tests of one suite."""
        suite.reporters = self.reporters
        result = SuiteResult(suite=suite.name)

        self.reporter_handler.invoke("on_suite_start", suite, list(tests))
        for name, fn in tests.items():
            outcome = self.run_test(suite, name, fn)
            result.outcomes.append(outcome)
            if self.fail_fast and outcome.status != TestStatus.PASSED:
                break
        self.reporter_handler.invoke("on_suite_end", suite, result)
        return result

    def run_test(self, suite: TestSuite, name: str, fn: Callable[..., Any]) -> TestOutcome:
        """Run one test with the suite's before/after hooks."""
        status = TestStatus.PASSED
        error_info: Optional[Dict[str, Any]] = None

        self.reporter_handler.invoke("on_test_start", suite, name)
        start = time.perf_counter()
        try:
            _call(suite.before_each)
            _call(fn)
        except AssertionError as e:
            status = TestStatus.FAILED
            error_info = _describe_error(e)
        except Exception as e:
            status = TestStatus.ERRORED
            error_info = _describe_error(e)
        duration_ms = (time.perf_counter() - start) * 1e3

        outcome = TestOutcome(suite=suite.name, test=name, status=status, duration_ms=duration_ms, error=error_info)
        try:
            _call(suite.after_each, outcome)
        except Exception as e:
            logger.debug("after_each of %s failed", outcome.qualified_name, exc_info=True)
            outcome.status = TestStatus.ERRORED
            if outcome.error is None:
                outcome.error = _describe_error(e)

        self.reporter_handler.invoke("on_test_end", suite, outcome)
        return outcome
