"""Shared fixtures for yunit tests."""

import pytest
from typing import Any, List, Tuple

from yunit import BenchmarkEngine, Reporter, ResourceManager, TestSuite


# ==================== Dummy Components ====================


class FakeClock:
    """Deterministic nanosecond clock advanced by the code under test."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, nanos: int) -> None:
        self.now += nanos


class CountingFunction:
    """Measured function that costs a fixed number of fake nanoseconds per call."""

    def __init__(self, clock: FakeClock, cost: int = 1_000_000, fail_on: int = -1):
        self.clock = clock
        self.cost = cost
        self.fail_on = fail_on
        self.calls: List[int] = []

    def __call__(self, i: int) -> None:
        if i == self.fail_on:
            raise RuntimeError(f"Intentional failure on iteration {i}")
        self.calls.append(i)
        self.clock.advance(self.cost)


class RecordingReporter(Reporter):
    """Reporter that records every event it receives as `(event, payload)`."""

    def __init__(self):
        self.events: List[Tuple[str, Any]] = []

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def on_run_start(self, runner, suites):
        self.events.append(("run_start", list(suites)))

    def on_suite_start(self, suite, tests):
        self.events.append(("suite_start", (suite.name, tests)))

    def on_test_start(self, suite, name):
        self.events.append(("test_start", f"{suite.name}.{name}"))

    def on_test_end(self, suite, outcome):
        self.events.append(("test_end", (outcome.qualified_name, outcome.status)))

    def on_suite_end(self, suite, result):
        self.events.append(("suite_end", suite.name))

    def on_run_end(self, runner, results):
        self.events.append(("run_end", list(results)))

    def on_measurement_start(self, request):
        self.events.append(("measurement_start", request))

    def on_measurement_error(self, iteration, during_warmup):
        self.events.append(("measurement_error", (iteration, during_warmup)))

    def on_measurement_end(self, result):
        self.events.append(("measurement_end", result))


class EmptySuite(TestSuite):
    """Suite without tests, used as a resource and benchmark host."""


# ==================== Fixtures ====================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def engine(clock, reporter):
    return BenchmarkEngine(reporters=[reporter], clock=clock)


@pytest.fixture
def manager():
    return ResourceManager()


@pytest.fixture
def suite():
    return EmptySuite()
