"""Example yunit suite: sorting throughput over input sizes.

Run it with:

    yunit examples/sorting
    yunit examples/sorting -f "SortSuite.sweep" --progress rich --results-dir results
"""

import random

from yunit import FixedCountRequest, ParameterSweep, ResourceSpec, TargetTimeRequest, TestSuite


class SortSuite(TestSuite):
    def __init__(self):
        super().__init__()
        self.rng = self.register_resource(ResourceSpec("rng", create=lambda: random.Random(42)))
        self.data = self.register_resource(
            ResourceSpec("data", dependencies=["rng"], default=[], create=self.make_data)
        )

        self.add_test("sorted_builtin", self.sorted_builtin)
        self.add_test("sort_in_place", self.sort_in_place)
        self.add_test("sweep", self.sweep)

    def make_data(self):
        rng = self.get_resource(self.rng)
        return [rng.random() for _ in range(1000)]

    def before_each(self):
        self.create_resources(["data"])

    def after_each(self, outcome):
        self.delete_all_resources()

    def sorted_builtin(self):
        data = self.get_resource(self.data)
        result = self.measure(FixedCountRequest(fn=lambda i: sorted(data), operations=500, label="sorted"))
        assert result.n == 495

    def sort_in_place(self):
        data = self.get_resource(self.data)
        self.measure(TargetTimeRequest(fn=lambda i: list(data).sort(), target_time=0.05, warmups=20))

    def sweep(self):
        rng = self.get_resource(self.rng)
        inputs = {}

        def fill(size, index):
            inputs["values"] = [rng.random() for _ in range(size)]

        results = self.measure(
            FixedCountRequest(fn=lambda i: sorted(inputs["values"]), operations=200, label="size"),
            ParameterSweep(parameters=[10, 100, 1000], before=fill),
        )
        assert list(results) == ["10", "100", "1000"]
