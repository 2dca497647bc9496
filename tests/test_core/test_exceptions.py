"""Tests for the yunit exception hierarchy."""

import pytest

from yunit import (
    AlreadyCreatedError,
    DependencyCycleError,
    DuplicateParameterError,
    DuplicateResourceError,
    DuplicateTestError,
    InvalidBenchmarkRequestError,
    ResourceError,
    ResourceInUseError,
    ResourceNotCreatedError,
    UnknownResourceError,
    YunitError,
)


@pytest.mark.core
class TestHierarchy:
    """Every yunit error derives from YunitError."""

    @pytest.mark.parametrize(
        "error",
        [
            DuplicateResourceError("db"),
            UnknownResourceError("db"),
            ResourceInUseError("db", "in use", in_use=["cache"]),
            ResourceNotCreatedError("db", "not created"),
            AlreadyCreatedError("db"),
            DependencyCycleError("db", ["db", "cache", "db"]),
        ],
    )
    def test_resource_errors(self, error):
        assert isinstance(error, ResourceError)
        assert isinstance(error, YunitError)
        assert error.name == "db"
        assert error.component == "db"
        assert str(error).startswith("[db] ")

    def test_benchmark_errors(self):
        error = DuplicateParameterError("10")
        assert isinstance(error, InvalidBenchmarkRequestError)
        assert isinstance(error, YunitError)
        assert error.component == "benchmark"
        assert error.details == {"key": "10"}

    def test_duplicate_test_error(self):
        error = DuplicateTestError("CacheSuite", "lookup")
        assert str(error) == "[CacheSuite] Can not add test 'lookup': duplicate name"


@pytest.mark.core
class TestRendering:
    """Tests for message and details rendering."""

    def test_without_component(self):
        error = YunitError("plain message")
        assert str(error) == "plain message"
        assert error.details == {}

    def test_with_component_and_details(self):
        error = YunitError("failed", component="runner", details={"attempt": 2})
        assert str(error) == "[runner] failed"
        assert error.message == "failed"
        assert error.details == {"attempt": 2}

    def test_cycle_chain(self):
        error = DependencyCycleError("a", ["a", "b", "a"])
        assert error.chain == ["a", "b", "a"]
        assert "a -> b -> a" in str(error)

    def test_in_use_details(self):
        error = ResourceInUseError("db", "busy", in_use=("cache", "pool"))
        assert error.in_use == ["cache", "pool"]
        assert error.details == {"in_use": ["cache", "pool"]}
