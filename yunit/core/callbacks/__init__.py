"""Reporter implementations for yunit runs."""

from .console import ConsoleReporter
from .result_logger import ResultLogger, FileResultLogger
from .progress_bar import ProgressReporter, TqdmProgressReporter, RichProgressReporter

__all__ = [
    "ConsoleReporter",
    "ResultLogger",
    "FileResultLogger",
    "ProgressReporter",
    "TqdmProgressReporter",
    "RichProgressReporter",
]
