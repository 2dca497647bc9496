"""Discovery of test suites in Python source files."""

import importlib.util
import inspect
import logging
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterable, List, Optional, Pattern, Union

from .suite import TestSuite

logger = logging.getLogger(__name__)


def find_files(path: Union[str, Path]) -> List[Path]:
    """Python files under `path` (recursively, sorted), or `path` itself if it is a file."""
    path = Path(path)
    if path.is_file():
        return [path]
    return sorted(p for p in path.rglob("*.py") if not p.name.startswith("_"))


def import_file(file: Path) -> Optional[ModuleType]:
    """Import a source file as a module named after its path. Returns None on failure."""
    parts = file.resolve().with_suffix("").parts[1:]
    module_name = "yunit_suites." + "_".join(re.sub(r"\W", "_", part) for part in parts)
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        logger.warning("Can not import %s: no module spec", file)
        return None

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[module_name]
        logger.warning("Can not import %s", file, exc_info=True)
        return None
    return module


def suites_in_module(module: ModuleType) -> List[TestSuite]:
    """Instantiate every concrete `TestSuite` subclass defined in `module`.

    Classes imported from other modules are ignored, so a shared base suite is only
    run from the file that defines it.
    """
    suites = []
    seen = set()
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if cls is TestSuite or not issubclass(cls, TestSuite) or cls in seen:
            continue
        seen.add(cls)
        if cls.__module__ != module.__name__ or inspect.isabstract(cls):
            continue
        try:
            suites.append(cls())
        except Exception:
            logger.warning("Can not instantiate suite %s", cls.__qualname__, exc_info=True)
    return suites


def load_suites(
    path: Union[str, Path],
    filters: Iterable[Union[str, Pattern[str]]] = (),
) -> Dict[str, TestSuite]:
    """Load the suites defined under `path` that have at least one selected test.

    Args:
        path: Directory searched recursively for `*.py` files, or a single file.
        filters: Test filters, see `TestSuite.get_tests`.

    Returns:
        Mapping from `"<file>:<SuiteName>"` to the suite instance, in file order.
    """
    filters = list(filters)
    suites: Dict[str, TestSuite] = {}
    for file in find_files(path):
        module = import_file(file)
        if module is None:
            continue
        for suite in suites_in_module(module):
            if suite.get_tests(filters):
                suites[f"{file}:{suite.name}"] = suite
    return suites
