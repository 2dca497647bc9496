"""Throughput measurement with warmup and optional target-time calibration.

A measurement runs the function under test repeatedly and moves through these phases:

    WarmupWarmup -> Warmup -> (Calibrate) -> Measuring -> Completed | Errored

- WarmupWarmup: the first `warmups // 5` iterations run untimed, absorbing first-call
  overhead (lazy initialization, cold caches).
- Warmup: the remaining warmup iterations run under one timer.
- Calibrate: only for `TargetTimeRequest`. The timed warmup duration is averaged over
  all `warmups` and the measured count is `round(target_time * 1.5e9 / average)`, so
  the measured phase usually overshoots the target.
- Measuring: exactly `n` iterations under a single timer start/stop pair.

The measured function receives the absolute iteration index, counted from the very
first warmup-warmup iteration.
"""

import math
import time
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union, cast, overload

from .exceptions import DuplicateParameterError, InvalidBenchmarkRequestError
from .reporter import Reporter
from .reporter_handler import ReporterHandler

P = TypeVar("P")

CALIBRATION_BIAS = 1.5
WARMUP_WARMUP_DIVISOR = 5
DEFAULT_WARMUP_DIVISOR = 100


@dataclass(frozen=True)
class FixedCountRequest:
    """Run exactly `operations` iterations, of which `warmups` are not timed.

    Attributes:
        fn: Function under test, called with the absolute iteration index.
        operations: Total iterations including warmups. Must be positive.
        warmups: Warmup iterations. Defaults to `operations // 100`.
        label: Optional label shown by reporters.
    """

    fn: Callable[[int], Any]
    operations: int
    warmups: Optional[int] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class TargetTimeRequest:
    """Run for approximately `target_time` seconds of measured iterations.

    Attributes:
        fn: Function under test, called with the absolute iteration index.
        target_time: Target duration of the measured phase, in seconds. Must be positive.
        warmups: Warmup iterations used for calibration. Must be positive.
        label: Optional label shown by reporters.
    """

    fn: Callable[[int], Any]
    target_time: float
    warmups: int
    label: Optional[str] = None


BenchmarkRequest = Union[FixedCountRequest, TargetTimeRequest]


@dataclass(frozen=True)
class BenchmarkResult:
    """Outcome of one successful measurement.

    Attributes:
        label: Label of the request, if any.
        warmups: Number of warmup iterations (timed and untimed).
        n: Number of measured iterations.
        total_nanos: Duration of the measured phase in nanoseconds.
        average_nanos: `total_nanos / n`.
        ops_per_second: `floor(1e9 / average_nanos)`, or 0 when no time elapsed.
    """

    label: Optional[str]
    warmups: int
    n: int
    total_nanos: int
    average_nanos: float
    ops_per_second: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParameterSweep(Generic[P]):
    """Runs one request once per parameter.

    Each parameter's textual form (`str(param)`) is both the result key and part of the
    measurement label, so textual forms must be unique within a sweep.

    Attributes:
        parameters: Parameters, measured in order.
        before: Called with `(param, index)` before each measurement.
        after: Called with `(param, index)` after each successful measurement.
        before_all: Called once before the first parameter.
        after_all: Called once after the last parameter.
    """

    parameters: Sequence[P]
    before: Callable[[P, int], Any]
    after: Optional[Callable[[P, int], Any]] = None
    before_all: Optional[Callable[[], Any]] = None
    after_all: Optional[Callable[[], Any]] = None


def resolve_request(request: BenchmarkRequest) -> BenchmarkRequest:
    """Validate a request and return it with `warmups` resolved.

    Raises:
        InvalidBenchmarkRequestError: If the request is not measurable.
    """
    if isinstance(request, TargetTimeRequest):
        if not request.target_time > 0:
            raise InvalidBenchmarkRequestError(
                "target_time must be positive", details={"target_time": request.target_time}
            )
        if not request.warmups > 0:
            raise InvalidBenchmarkRequestError(
                "warmups must be positive for a target time request", details={"warmups": request.warmups}
            )
        return request

    if isinstance(request, FixedCountRequest):
        if not request.operations > 0:
            raise InvalidBenchmarkRequestError(
                "operations must be positive", details={"operations": request.operations}
            )
        warmups = request.warmups if request.warmups is not None else request.operations // DEFAULT_WARMUP_DIVISOR
        if warmups < 0:
            raise InvalidBenchmarkRequestError("warmups must not be negative", details={"warmups": warmups})
        if not request.operations > warmups:
            raise InvalidBenchmarkRequestError(
                "operations must be greater than warmups",
                details={"operations": request.operations, "warmups": warmups},
            )
        return replace(request, warmups=warmups)

    raise InvalidBenchmarkRequestError(f"Unsupported request type {type(request).__name__}")


def calibrate(target_time: float, warmup_nanos: int, warmups: int) -> int:
    """Number of measured iterations expected to take `target_time * 1.5` seconds.

    `warmup_nanos` is divided by all `warmups`, untimed ones included. The resulting
    average is taken as at least 1 ns. The result is rounded
    half up and never less than 1.
    """
    average = max(warmup_nanos / warmups, 1.0)
    return max(1, math.floor(target_time * CALIBRATION_BIAS * 1e9 / average + 0.5))


class BenchmarkEngine:
    """Runs benchmark requests and notifies reporters.

    The engine is synchronous and not reentrant. The measured function must not
    suspend or block on other work of the same suite while the timer runs.

    Usage:
        ```python
        engine = BenchmarkEngine(reporters=[MyReporter()])

        result = engine.measure(FixedCountRequest(fn=lambda i: sorted(data), operations=1000))
        print(result.n, result.ops_per_second)  # 990 ...

        results = engine.measure(
            FixedCountRequest(fn=lambda i: lookup(table), operations=1000, label="lookup"),
            ParameterSweep(parameters=[10, 100, 1000], before=lambda size, i: fill(table, size)),
        )
        print(results["100"].average_nanos)
        ```
    """

    def __init__(
        self,
        reporters: Optional[List[Reporter]] = None,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        """Initialize the engine.

        Args:
            reporters: Reporters notified of every measurement.
            clock: Monotonic clock returning nanoseconds.
        """
        self.reporter_handler = ReporterHandler(reporters)
        self.clock = clock

    @property
    def reporters(self) -> List[Reporter]:
        return self.reporter_handler.reporters

    @reporters.setter
    def reporters(self, reporters: List[Reporter]) -> None:
        self.reporter_handler.reporters = list(reporters)

    @overload
    def measure(self, request: BenchmarkRequest) -> BenchmarkResult: ...

    @overload
    def measure(self, request: BenchmarkRequest, sweep: ParameterSweep[P]) -> Dict[str, BenchmarkResult]: ...

    def measure(
        self, request: BenchmarkRequest, sweep: Optional[ParameterSweep[Any]] = None
    ) -> Union[BenchmarkResult, Dict[str, BenchmarkResult]]:
        """Measure a function once, or once per parameter of `sweep`.

        Raises:
            InvalidBenchmarkRequestError: If the request is invalid. Nothing runs.
            DuplicateParameterError: If two sweep parameters share a textual form. Nothing runs.
            Exception: Whatever the measured function or a sweep hook raised.
        """
        if sweep is None:
            return self._run_measurement(request)

        resolve_request(request)
        keys = [str(param) for param in sweep.parameters]
        seen = set()
        for key in keys:
            if key in seen:
                raise DuplicateParameterError(key)
            seen.add(key)

        if sweep.before_all is not None:
            sweep.before_all()

        results: Dict[str, BenchmarkResult] = {}
        for index, (param, key) in enumerate(zip(sweep.parameters, keys)):
            label = ", ".join(s for s in (request.label, key) if s)
            sweep.before(param, index)
            results[key] = self._run_measurement(replace(request, label=label))
            if sweep.after is not None:
                sweep.after(param, index)

        if sweep.after_all is not None:
            sweep.after_all()
        return results

    def _run_measurement(self, request: BenchmarkRequest) -> BenchmarkResult:
        request = resolve_request(request)
        warmups = cast(int, request.warmups)

        self.reporter_handler.invoke("on_measurement_start", request)

        fn = request.fn
        clock = self.clock
        i = 0
        try:
            warmup_warmups = warmups // WARMUP_WARMUP_DIVISOR
            while i < warmup_warmups:
                fn(i)
                i += 1

            warmup_start = clock()
            while i < warmups:
                fn(i)
                i += 1
            warmup_nanos = clock() - warmup_start

            if isinstance(request, TargetTimeRequest):
                n = calibrate(request.target_time, warmup_nanos, warmups)
            else:
                n = request.operations - warmups

            end = warmups + n
            start = clock()
            while i < end:
                fn(i)
                i += 1
            total = clock() - start
        except Exception as error:
            during_warmup = i < warmups
            error.add_note(f"Benchmark failed on iteration {i} ({'warmup' if during_warmup else 'measurement'})")
            self.reporter_handler.invoke("on_measurement_error", i, during_warmup)
            raise

        average = total / n
        result = BenchmarkResult(
            label=request.label,
            warmups=warmups,
            n=n,
            total_nanos=total,
            average_nanos=average,
            ops_per_second=math.floor(1e9 / average) if average > 0 else 0,
        )
        self.reporter_handler.invoke("on_measurement_end", result)
        return result
