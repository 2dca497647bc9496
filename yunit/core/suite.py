import re
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Pattern,
    TypeVar,
    Union,
    overload,
)

from .benchmark import BenchmarkEngine, BenchmarkRequest, BenchmarkResult, ParameterSweep
from .exceptions import DuplicateTestError
from .reporter import Reporter
from .resources import ResourceManager, ResourceSpec

if TYPE_CHECKING:
    from .runner import TestOutcome

T = TypeVar("T")
P = TypeVar("P")

TestFunction = Callable[[], Union[None, Awaitable[None]]]


class TestSuite:
    """A named collection of tests sharing resources and reporters.

    A suite instance owns its resources for its whole lifetime; tests run in the order
    they were added, on the same instance, so state set by one test is visible to the
    next. Tests and hooks may be plain functions or coroutine functions.

    How to use:
        Subclass `TestSuite`, register resources and add tests in `__init__`:

        ```python
        class CacheSuite(TestSuite):
            def __init__(self):
                super().__init__()
                self.backend = self.register_resource(ResourceSpec("backend", create=Backend))
                self.register_resource(ResourceSpec("cache", dependencies=["backend"], create=Cache))
                self.add_test("lookup_is_fast", self.lookup_is_fast)

            def lookup_is_fast(self):
                self.create_resource("cache")
                cache = self.get_resource("cache")
                result = self.measure(FixedCountRequest(fn=lambda i: cache.get(i % 100), operations=10_000))
                assert result.ops_per_second > 0

            def after_each(self, outcome):
                self.delete_all_resources()
        ```
    """

    __test__ = False  # not a pytest test class

    def __init__(self, name: Optional[str] = None, reporters: Optional[List[Reporter]] = None):
        self.name = name or self.__class__.__name__
        self.resources = ResourceManager()
        self.engine = BenchmarkEngine(reporters=reporters)
        self.tests: Dict[str, TestFunction] = {}

    @property
    def reporters(self) -> List[Reporter]:
        """Reporters notified of this suite's measurements."""
        return self.engine.reporters

    @reporters.setter
    def reporters(self, reporters: List[Reporter]) -> None:
        self.engine.reporters = reporters

    # --- Tests ---

    def add_test(self, name: str, fn: TestFunction) -> None:
        """Add a test under `name`.

        Raises:
            DuplicateTestError: If a test with this name was already added.
        """
        if name in self.tests:
            raise DuplicateTestError(self.name, name)
        self.tests[name] = fn

    def get_tests(self, filters: Iterable[Union[str, Pattern[str]]] = ()) -> Dict[str, TestFunction]:
        """Tests whose qualified name `"<suite>.<test>"` matches any filter.

        All tests are returned when no filters are given. Filters are searched, not
        fully matched.
        """
        patterns = [re.compile(f) if isinstance(f, str) else f for f in filters]
        if not patterns:
            return dict(self.tests)
        return {
            name: fn
            for name, fn in self.tests.items()
            if any(p.search(f"{self.name}.{name}") for p in patterns)
        }

    def before_each(self) -> Union[None, Awaitable[None]]:
        """Called before each test. Override if needed."""
        return None

    def after_each(self, outcome: "TestOutcome") -> Union[None, Awaitable[None]]:
        """Called after each test with its outcome so far. Override if needed."""
        return None

    # --- Resources ---

    def register_resource(self, spec: ResourceSpec[T]) -> ResourceSpec[T]:
        """Register a resource. See `ResourceManager.register`."""
        return self.resources.register(spec)

    def remove_resource(self, name: str) -> ResourceSpec:
        """Remove a resource that is not created. See `ResourceManager.remove`."""
        return self.resources.remove(name)

    def remove_all_resources(self) -> None:
        self.resources.remove_all()

    def is_resource_created(self, name: str) -> bool:
        return self.resources.is_created(name)

    @overload
    def get_resource(self, resource: ResourceSpec[T]) -> T: ...

    @overload
    def get_resource(self, resource: str) -> Any: ...

    def get_resource(self, resource: Union[str, ResourceSpec[Any]]) -> Any:
        """Live value of a resource, or its default value. See `ResourceManager.get`."""
        return self.resources.get(resource)

    def create_resource(self, name: str, throw_if_exists: bool = True) -> None:
        self.resources.create(name, throw_if_exists)

    def create_resources(self, names: Iterable[str], throw_if_exists: bool = True) -> None:
        """Create resources in registration order. See `ResourceManager.create_many`."""
        self.resources.create_many(names, throw_if_exists)

    def delete_resource(self, name: str) -> None:
        self.resources.delete(name)

    def delete_all_resources(self) -> None:
        """Delete all created resources, last created first."""
        self.resources.delete_all()

    # --- Benchmarks ---

    @overload
    def measure(self, request: BenchmarkRequest) -> BenchmarkResult: ...

    @overload
    def measure(self, request: BenchmarkRequest, sweep: ParameterSweep[P]) -> Dict[str, BenchmarkResult]: ...

    def measure(
        self, request: BenchmarkRequest, sweep: Optional[ParameterSweep[Any]] = None
    ) -> Union[BenchmarkResult, Dict[str, BenchmarkResult]]:
        """Measure a function and report the result. See `BenchmarkEngine.measure`."""
        if sweep is None:
            return self.engine.measure(request)
        return self.engine.measure(request, sweep)
