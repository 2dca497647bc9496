import logging
from typing import Any, List, Optional

from .reporter import Reporter

logger = logging.getLogger(__name__)


class ReporterHandler:
    """Fans events out to an explicit list of reporters.

    A reporter that raises is logged and skipped; the remaining reporters are still
    notified and the caller never sees the exception.
    """

    def __init__(self, reporters: Optional[List[Reporter]] = None):
        self.reporters: List[Reporter] = list(reporters or [])

    def register(self, reporter: Reporter) -> None:
        """Register a new reporter."""
        self.reporters.append(reporter)

    def deregister(self, reporter: Reporter) -> None:
        """Remove an existing reporter."""
        self.reporters.remove(reporter)

    def invoke(self, event: str, *args: Any) -> None:
        """Call hook `event` on every registered reporter."""
        for reporter in list(self.reporters):
            try:
                getattr(reporter, event)(*args)
            except Exception:
                logger.exception("Reporter %s failed in %s", type(reporter).__name__, event)
