"""Tests for TestSuite: test registration, filtering and resource/benchmark delegation."""

import re

import pytest

from yunit import (
    DuplicateTestError,
    FixedCountRequest,
    ParameterSweep,
    ResourceInUseError,
    ResourceSpec,
    TestRunner,
    TestStatus,
    TestSuite,
)

from conftest import EmptySuite


class CustomSuite(TestSuite):
    """Suite whose tests share state set on the instance."""

    def __init__(self):
        super().__init__()
        self.test_property = 0
        self.add_test("1 first", self.first)
        self.add_test("2 second", self.second)

    def first(self):
        self.test_property = 1

    def second(self):
        assert self.test_property == 1


@pytest.mark.core
class TestTestRegistration:
    """Tests for add_test and get_tests."""

    def test_default_name_is_class_name(self):
        assert CustomSuite().name == "CustomSuite"
        assert EmptySuite(name="Renamed").name == "Renamed"

    def test_add_duplicate_test_fails(self, suite):
        suite.add_test("test", lambda: None)

        with pytest.raises(DuplicateTestError) as exc_info:
            suite.add_test("test", lambda: None)

        assert exc_info.value.component == "EmptySuite"
        assert exc_info.value.name == "test"

    def test_tests_keep_insertion_order(self, suite):
        for name in ("c", "a", "b"):
            suite.add_test(name, lambda: None)
        assert list(suite.get_tests()) == ["c", "a", "b"]

    def test_filters_match_qualified_name(self, suite):
        for name in ("lookup", "insert", "insert_many"):
            suite.add_test(name, lambda: None)

        assert list(suite.get_tests(["insert"])) == ["insert", "insert_many"]
        assert list(suite.get_tests(["^EmptySuite\\.insert$"])) == ["insert"]
        assert list(suite.get_tests(["EmptySuite"])) == ["lookup", "insert", "insert_many"]
        assert list(suite.get_tests(["nothing", "lookup"])) == ["lookup"]
        assert list(suite.get_tests([re.compile("many$")])) == ["insert_many"]
        assert suite.get_tests(["OtherSuite"]) == {}

    def test_default_hooks_do_nothing(self, suite):
        assert suite.before_each() is None
        assert suite.after_each(None) is None


@pytest.mark.core
class TestSuiteResources:
    """Tests for the resource wrappers of TestSuite."""

    def test_resource_wrappers(self, suite):
        released = []
        handle = suite.register_resource(ResourceSpec("pool", default=0, create=lambda: 4, release=released.append))
        suite.register_resource(ResourceSpec("client", dependencies=["pool"], create=lambda: "client"))

        assert suite.get_resource(handle) == 0
        suite.create_resources(["client"])
        assert suite.is_resource_created("pool")
        assert suite.get_resource("client") == "client"
        assert suite.get_resource(handle) == 4

        with pytest.raises(ResourceInUseError):
            suite.delete_resource("pool")

        suite.delete_resource("client")
        suite.create_resource("client")
        suite.delete_all_resources()
        assert released == [4]
        assert not suite.is_resource_created("pool")

        spec = suite.remove_resource("client")
        assert spec.name == "client"
        suite.remove_all_resources()
        assert suite.resources.names == []

    def test_suites_have_independent_resources(self):
        first, second = EmptySuite(), EmptySuite()
        first.register_resource(ResourceSpec("shared"))
        second.register_resource(ResourceSpec("shared"))

        first.create_resource("shared")

        assert first.is_resource_created("shared")
        assert not second.is_resource_created("shared")


@pytest.mark.core
class TestSuiteMeasure:
    """Tests for measurements made through a suite."""

    def test_measure_reports_to_suite_reporters(self, reporter):
        suite = EmptySuite(reporters=[reporter])

        result = suite.measure(FixedCountRequest(fn=lambda i: None, operations=10))

        assert result.n == 10
        assert reporter.names == ["measurement_start", "measurement_end"]

    def test_measure_with_sweep(self, suite):
        results = suite.measure(
            FixedCountRequest(fn=lambda i: None, operations=10),
            ParameterSweep(parameters=["a", "b"], before=lambda p, i: None),
        )
        assert list(results) == ["a", "b"]

    def test_reporters_setter(self, suite, reporter):
        suite.reporters = [reporter]
        assert suite.engine.reporters == [reporter]


@pytest.mark.core
def test_state_persists_between_tests():
    """Tests of a suite run in order on one instance."""
    results = TestRunner().run([CustomSuite()])

    outcomes = results["CustomSuite"].outcomes
    assert [o.test for o in outcomes] == ["1 first", "2 second"]
    assert all(o.status == TestStatus.PASSED for o in outcomes)
