"""Dependency-ordered resource lifecycle management.

A resource is a named, lazily created fixture with optional dependencies, an
optional default value and an optional release callback. `ResourceManager` owns the
registered specs and their runtime state for exactly one suite instance.

Ordering rules:
    - Registration order is the canonical creation order for bulk creation
      (`create_many`), independent of the order names are passed in.
    - Dependencies are always created before their dependents.
    - `delete_all` deletes in exact reverse of the actual creation order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar, Union, overload

from .exceptions import (
    AlreadyCreatedError,
    DependencyCycleError,
    DuplicateResourceError,
    ResourceInUseError,
    ResourceNotCreatedError,
    UnknownResourceError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _NoDefault:
    """Sentinel type marking a resource without a default value."""

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class ResourceSpec(Generic[T]):
    """Definition of a registered resource.

    Attributes:
        name: Identifier, unique within one suite.
        dependencies: Names of resources that must be created first.
        default: Value returned by `get` while the resource is not created.
            `NO_DEFAULT` (the default) means `get` fails instead. `None` is a valid default.
        create: Factory producing the live value. Without it the resource is a pure marker
            and its value is `None`.
        release: Cleanup called with the live value when the resource is deleted.

    Example:
        ```python
        db = manager.register(ResourceSpec("db", create=connect, release=lambda c: c.close()))
        manager.create("db")
        conn = manager.get(db)  # typed as the factory's return type
        ```
    """

    name: str
    dependencies: Sequence[str] = field(default=())
    default: Any = NO_DEFAULT
    create: Optional[Callable[[], T]] = None
    release: Optional[Callable[[T], Any]] = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass
class _ResourceState:
    spec: ResourceSpec
    created: bool = False
    value: Any = None


class ResourceManager:
    """Registry and lifecycle manager for the resources of one suite.

    Not thread-safe: all calls are expected to come from one suite at a time.
    Live values are only reachable through `get`.

    Usage:
        ```python
        manager = ResourceManager()
        manager.register(ResourceSpec("a", create=lambda: 1))
        manager.register(ResourceSpec("b", dependencies=["a"], create=lambda: 2))

        manager.create("b")           # creates "a", then "b"
        manager.get("a")              # 1
        manager.delete_all()          # deletes "b", then "a"
        ```
    """

    def __init__(self) -> None:
        # Registration order, insertion-ordered by name
        self._states: Dict[str, _ResourceState] = {}
        # Actual creation order, used as a stack for delete_all
        self._created: List[str] = []
        # Resources whose creation is in progress, for cycle detection
        self._creating: List[str] = []

    def _state(self, name: str) -> _ResourceState:
        state = self._states.get(name)
        if state is None:
            raise UnknownResourceError(name)
        return state

    @property
    def names(self) -> List[str]:
        """Registered resource names in registration order."""
        return list(self._states)

    @property
    def created(self) -> List[str]:
        """Created resource names in creation order."""
        return list(self._created)

    def register(self, spec: ResourceSpec[T]) -> ResourceSpec[T]:
        """Register a resource. Returns the spec, usable as a typed handle for `get`.

        Raises:
            DuplicateResourceError: If a resource with the same name is registered.
        """
        if spec.name in self._states:
            raise DuplicateResourceError(spec.name)
        self._states[spec.name] = _ResourceState(spec=spec)
        return spec

    def remove(self, name: str) -> ResourceSpec:
        """Remove a registered resource and return its spec.

        Raises:
            UnknownResourceError: If the resource is not registered.
            ResourceInUseError: If the resource is currently created.
        """
        state = self._state(name)
        if state.created:
            raise ResourceInUseError(name, "Can not remove resource: currently created", in_use=[name])
        del self._states[name]
        return state.spec

    def remove_all(self) -> None:
        """Remove every registered resource, newest registration first.

        Raises:
            ResourceInUseError: If any resource is created. Nothing is removed.
        """
        if self._created:
            raise ResourceInUseError(
                ", ".join(self._created),
                f"Can not remove all resources: resources [{', '.join(self._created)}] currently created",
                in_use=self._created,
            )
        for name in reversed(list(self._states)):
            self.remove(name)

    def is_created(self, name: str) -> bool:
        """Whether the resource is created.

        Raises:
            UnknownResourceError: If the resource is not registered.
        """
        return self._state(name).created

    @overload
    def get(self, resource: ResourceSpec[T]) -> T: ...

    @overload
    def get(self, resource: str) -> Any: ...

    def get(self, resource: Union[str, ResourceSpec[Any]]) -> Any:
        """Return the live value, or the default value while not created.

        Args:
            resource: Resource name, or the spec returned by `register`.

        Raises:
            UnknownResourceError: If the resource is not registered.
            ResourceNotCreatedError: If not created and without a default value.
        """
        name = resource.name if isinstance(resource, ResourceSpec) else resource
        state = self._state(name)
        if state.created:
            return state.value
        if state.spec.has_default:
            return state.spec.default
        raise ResourceNotCreatedError(name, "Can not get resource: not created and no default value")

    def create(self, name: str, throw_if_exists: bool = True) -> None:
        """Create a resource, creating its dependencies first.

        Dependencies are created idempotently. If the factory raises, the resource stays
        uncreated and the exception propagates; dependencies created on the way stay created.

        Raises:
            UnknownResourceError: If the resource or one of its dependencies is not registered.
            AlreadyCreatedError: If already created and `throw_if_exists` is True.
            DependencyCycleError: If the dependency chain leads back to this resource.
        """
        state = self._state(name)
        if state.created:
            if throw_if_exists:
                raise AlreadyCreatedError(name)
            return

        if name in self._creating:
            raise DependencyCycleError(name, self._creating[self._creating.index(name) :] + [name])

        self._creating.append(name)
        try:
            for dependency in state.spec.dependencies:
                self.create(dependency, throw_if_exists=False)

            value = state.spec.create() if state.spec.create is not None else None
        finally:
            self._creating.pop()

        state.value = value
        state.created = True
        self._created.append(name)
        logger.debug("Created resource %r", name)

    def create_many(self, names: Iterable[str], throw_if_exists: bool = True) -> None:
        """Create several resources in registration order.

        Every name is validated before anything is created. A requested resource that
        gets created earlier in the same call as a dependency is not created twice.

        Raises:
            UnknownResourceError: If any name is not registered. Nothing is created.
            AlreadyCreatedError: If `throw_if_exists` is True and a requested resource was
                created before the call. Nothing is created.
        """
        requested = set()
        for name in names:
            self._state(name)
            requested.add(name)

        ordered = [n for n in self._states if n in requested]
        if throw_if_exists:
            for name in ordered:
                if self._states[name].created:
                    raise AlreadyCreatedError(name)

        for name in ordered:
            self.create(name, throw_if_exists=False)

    def delete(self, name: str) -> None:
        """Delete a created resource, calling its release callback.

        The resource is marked not created even if the release callback raises; the
        exception then propagates and the release is not retried.

        Raises:
            UnknownResourceError: If the resource is not registered.
            ResourceNotCreatedError: If the resource is not created.
            ResourceInUseError: If a created resource depends on it.
        """
        state = self._state(name)
        if not state.created:
            raise ResourceNotCreatedError(name, "Can not delete resource: not created")

        dependents = [n for n in self._created if name in self._states[n].spec.dependencies]
        if dependents:
            raise ResourceInUseError(
                name,
                f"Can not delete resource: required by created resources [{', '.join(dependents)}]",
                in_use=dependents,
            )

        value = state.value
        state.value = None
        state.created = False
        self._created.remove(name)
        logger.debug("Deleted resource %r", name)

        if state.spec.release is not None:
            state.spec.release(value)

    def delete_all(self) -> None:
        """Delete every created resource, last created first."""
        for name in reversed(list(self._created)):
            self.delete(name)
