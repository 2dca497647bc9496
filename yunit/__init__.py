"""Top-level package exports for convenience.

Expose a small, stable surface area for users to import core abstractions directly from `yunit`,
for example: `from yunit import TestSuite, ResourceSpec, FixedCountRequest`.

Reporters sit in the `yunit.core.callbacks` submodule and are re-exported here.
"""

from .core.resources import ResourceSpec, ResourceManager, NO_DEFAULT
from .core.benchmark import (
    BenchmarkEngine,
    BenchmarkRequest,
    BenchmarkResult,
    FixedCountRequest,
    TargetTimeRequest,
    ParameterSweep,
)
from .core.reporter import Reporter
from .core.reporter_handler import ReporterHandler
from .core.suite import TestSuite
from .core.runner import TestRunner, TestStatus, TestOutcome, SuiteResult
from .core.loader import load_suites
from .core.callbacks import (
    ConsoleReporter,
    ResultLogger,
    FileResultLogger,
    ProgressReporter,
    TqdmProgressReporter,
    RichProgressReporter,
)
from .core.exceptions import (
    YunitError,
    ResourceError,
    DuplicateResourceError,
    UnknownResourceError,
    ResourceInUseError,
    ResourceNotCreatedError,
    AlreadyCreatedError,
    DependencyCycleError,
    InvalidBenchmarkRequestError,
    DuplicateParameterError,
    DuplicateTestError,
)

__all__ = [
    "ResourceSpec",
    "ResourceManager",
    "NO_DEFAULT",
    "BenchmarkEngine",
    "BenchmarkRequest",
    "BenchmarkResult",
    "FixedCountRequest",
    "TargetTimeRequest",
    "ParameterSweep",
    "Reporter",
    "ReporterHandler",
    "TestSuite",
    "TestRunner",
    "TestStatus",
    "TestOutcome",
    "SuiteResult",
    "load_suites",
    "ConsoleReporter",
    "ResultLogger",
    "FileResultLogger",
    "ProgressReporter",
    "TqdmProgressReporter",
    "RichProgressReporter",
    "YunitError",
    "ResourceError",
    "DuplicateResourceError",
    "UnknownResourceError",
    "ResourceInUseError",
    "ResourceNotCreatedError",
    "AlreadyCreatedError",
    "DependencyCycleError",
    "InvalidBenchmarkRequestError",
    "DuplicateParameterError",
    "DuplicateTestError",
]
