"""Exception hierarchy for yunit.

Every error raised by yunit itself derives from `YunitError`. Errors raised by user
code (resource factories, release callbacks, measured functions, test bodies) are
never wrapped: they propagate to the caller unchanged.

Exception Hierarchy:
    YunitError (base)
    ├── ResourceError
    │   ├── DuplicateResourceError     - name already registered
    │   ├── UnknownResourceError       - name never registered
    │   ├── ResourceInUseError         - remove / delete while still needed
    │   ├── ResourceNotCreatedError    - no live value and no default
    │   ├── AlreadyCreatedError        - create() on a created resource
    │   └── DependencyCycleError       - dependency chain leads back to itself
    ├── InvalidBenchmarkRequestError   - request fails validation
    │   └── DuplicateParameterError    - two sweep parameters share a key
    └── DuplicateTestError             - test name already added to a suite

Usage:
    ```python
    try:
        suite.create_resource("db")
    except UnknownResourceError as e:
        print(e.component)  # "db"
    ```
"""

from typing import Any, Dict, Iterable, Optional


class YunitError(Exception):
    """Base exception for all errors raised by yunit."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize YunitError.

        Args:
            message: Human-readable error description.
            component: Name of the resource, test or subsystem the error concerns.
            details: Additional structured information about the error.
        """
        self.message = message
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.component:
            return f"[{self.component}] {self.message}"
        return self.message


class ResourceError(YunitError):
    """Base class for resource lifecycle errors. `component` is the resource name."""

    def __init__(self, name: str, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, component=name, details=details)
        self.name = name


class DuplicateResourceError(ResourceError):
    """A resource with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(name, "Can not register resource: duplicate name")


class UnknownResourceError(ResourceError):
    """The resource name was never registered with the suite."""

    def __init__(self, name: str):
        super().__init__(name, "Invalid resource: not registered")


class ResourceInUseError(ResourceError):
    """The resource (or resources) can not be removed or deleted while in use.

    Raised when removing a created resource, when removing all resources while any
    is created, and when deleting a resource that a created resource depends on.
    """

    def __init__(self, name: str, message: str, *, in_use: Iterable[str] = ()):
        in_use = list(in_use)
        super().__init__(name, message, details={"in_use": in_use})
        self.in_use = in_use


class ResourceNotCreatedError(ResourceError):
    """The resource has no live value (and, for `get`, no default value)."""


class AlreadyCreatedError(ResourceError):
    """The resource was already created and `throw_if_exists` was set."""

    def __init__(self, name: str):
        super().__init__(name, "Can not create resource: already created")


class DependencyCycleError(ResourceError):
    """The dependency chain of a resource leads back to a resource being created."""

    def __init__(self, name: str, chain: Iterable[str]):
        chain = list(chain)
        super().__init__(
            name,
            f"Can not create resource: dependency cycle {' -> '.join(chain)}",
            details={"chain": chain},
        )
        self.chain = chain


class InvalidBenchmarkRequestError(YunitError):
    """A benchmark request failed validation before any iteration ran.

    Examples:
        ```python
        # operations must exceed warmups
        raise InvalidBenchmarkRequestError(
            "operations must be greater than warmups",
            details={"operations": 100, "warmups": 100},
        )
        ```
    """

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, component="benchmark", details=details)


class DuplicateParameterError(InvalidBenchmarkRequestError):
    """Two parameters of a sweep have the same textual form and would share a result key."""

    def __init__(self, key: str):
        super().__init__(
            f"Parameter key {key!r} is not unique within the sweep",
            details={"key": key},
        )
        self.key = key


class DuplicateTestError(YunitError):
    """A test with the same name was already added to the suite."""

    def __init__(self, suite: str, name: str):
        super().__init__(f"Can not add test {name!r}: duplicate name", component=suite)
        self.name = name
