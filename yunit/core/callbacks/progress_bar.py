"""Progress bar reporters for test runs.

This module provides progress tracking for test runs using different progress bar libraries.
Implementations for both tqdm and rich are provided, with tqdm as the default.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Mapping, Optional

from ..reporter import Reporter

if TYPE_CHECKING:
    from ..runner import SuiteResult, TestOutcome, TestRunner
    from ..suite import TestSuite


class ProgressReporter(Reporter, ABC):
    """Abstract base class for progress bar reporters.

    Displays run progress over the selected tests, with a passed counter and the rate of
    the latest measurement.

    Use `TqdmProgressReporter` or `RichProgressReporter` directly, or pass
    `progress_bar="tqdm"` / `progress_bar="rich"` to `TestRunner`.

    Args:
        desc: Custom description. Defaults to "Running tests"
        show_status: Whether to display the passed counter (X/Y Passed)
    """

    def __init__(self, desc: Optional[str] = None, show_status: bool = True):
        super().__init__()
        self.desc = desc
        self.show_status = show_status
        self._reset_state()

    def _reset_state(self) -> None:
        """Reset progress tracking state."""
        self.total = 0
        self.current = 0
        self.passed = 0
        self._last_rate: Optional[str] = None

    def on_run_start(self, runner: "TestRunner", suites: Mapping[str, "TestSuite"]) -> None:
        """Called by the runner when a run starts."""
        # Supports calling run() multiple times
        self._reset_state()
        self.total = runner.total_tests
        if self.desc is None:
            self.desc = "Running tests"
        self._initialize_progress_bar()

    def on_test_end(self, suite: "TestSuite", outcome: "TestOutcome") -> None:
        """Called by the runner when a test completes."""
        self.current += 1
        if outcome.status.value == "passed":
            self.passed += 1
        self._update_progress(self.current, outcome.status.value if self.show_status else None)

    def on_measurement_end(self, result) -> None:
        self._last_rate = f"{result.ops_per_second / 1e6:.3f} MOp/s"

    def on_run_end(self, runner: "TestRunner", results: Dict[str, "SuiteResult"]) -> None:
        """Called by the runner when a run completes."""
        self._close_progress_bar()

    def _postfix(self, status: Optional[str]) -> str:
        parts = []
        if status is not None:
            parts.append(f"{self.passed}/{self.current} Passed")
        if self._last_rate is not None:
            parts.append(f"last={self._last_rate}")
        return " | ".join(parts)

    @abstractmethod
    def _initialize_progress_bar(self) -> None:
        """Initialize the progress bar display.

        Called once at the start of the run. Implementations should create and
        configure the underlying progress bar object.
        """
        pass

    @abstractmethod
    def _update_progress(self, current: int, status: Optional[str]) -> None:
        """Update the progress bar position and status.

        Args:
            current: Number of completed tests (1-indexed)
            status: Status of the completed test ("passed", "failed", "errored"),
                or None if show_status is False
        """
        pass

    @abstractmethod
    def _close_progress_bar(self) -> None:
        """Close and finalize the progress bar display."""
        pass


class TqdmProgressReporter(ProgressReporter):
    """Progress bar reporter using tqdm (default).

    Example:
        ```python
        from yunit.core.callbacks.progress_bar import TqdmProgressReporter

        runner = TestRunner(reporters=[TqdmProgressReporter(desc="Unit tests")])
        runner.run(suites)
        ```

    Args:
        desc: Custom description (defaults to "Running tests")
        show_status: Show passed counter (default: True)
        leave: Keep bar visible after completion (default: True)
        ncols: Width in characters (default: auto)
    """

    def __init__(
        self,
        desc: Optional[str] = None,
        show_status: bool = True,
        leave: bool = True,
        ncols: Optional[int] = None,
    ):
        super().__init__(desc=desc, show_status=show_status)
        self.leave = leave
        self.ncols = ncols
        self._pbar = None

    def _initialize_progress_bar(self) -> None:
        """Initialize tqdm progress bar. (Internal)"""
        from tqdm import tqdm

        self._pbar = tqdm(total=self.total, desc=self.desc, leave=self.leave, ncols=self.ncols, unit="test")

    def _update_progress(self, current: int, status: Optional[str]) -> None:
        """Update tqdm progress. (Internal)"""
        if self._pbar is not None:
            postfix = self._postfix(status)
            if postfix:
                self._pbar.set_postfix_str(postfix)
            self._pbar.update(1)

    def _close_progress_bar(self) -> None:
        """Close tqdm progress bar. (Internal)"""
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


class RichProgressReporter(ProgressReporter):
    """Progress bar reporter using the rich library.

    Args:
        desc: Custom description (defaults to "Running tests")
        show_status: Show colored passed counter (default: True)
        transient: Remove bar after completion (default: False)
    """

    def __init__(
        self,
        desc: Optional[str] = None,
        show_status: bool = True,
        transient: bool = False,
    ):
        super().__init__(desc=desc, show_status=show_status)
        self.transient = transient
        self._progress = None
        self._task_id = None

    def _initialize_progress_bar(self) -> None:
        """Initialize rich progress bar. (Internal)"""
        from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

        columns = [
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("[bold]{task.fields[info]}"),
        ]

        self._progress = Progress(*columns, transient=self.transient)
        self._progress.start()
        self._task_id = self._progress.add_task(self.desc or "Running tests", total=self.total, info="")

    def _update_progress(self, current: int, status: Optional[str]) -> None:
        """Update rich progress bar. (Internal)"""
        if self._progress is not None and self._task_id is not None:
            info_parts = []
            if status is not None:
                info_parts.append(f"[green]{self.passed}[/green]/{self.current} Passed")
            if self._last_rate is not None:
                info_parts.append(f"last={self._last_rate}")
            self._progress.update(self._task_id, advance=1, info=" | ".join(info_parts))

    def _close_progress_bar(self) -> None:
        """Close rich progress bar. (Internal)"""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None
