# tests/test_witness_base.py
import pytest

from constraints.base import ConstraintSystem
from primitives.errors import SynthesisError
from primitives.field import Fr
from witness.base import Assignment, Layouter, Value


def _layouter(k=3, witness=True):
    meta = ConstraintSystem(Fr)
    a = meta.advice_column()
    b = meta.advice_column()
    f = meta.fixed_column()
    sel = meta.selector()
    meta.enable_equality(a)
    assignment = Assignment(meta, k, witness=witness)
    return assignment, Layouter(assignment), (a, b, f, sel)


class TestValue:

    def test_known_and_unknown(self):
        assert Value.known(3).is_known
        assert not Value.unknown().is_known
        assert Value.known(3) == Value.known(3)
        assert Value.known(3) != Value.unknown()

    def test_known_value_assigns(self):
        assert Value.known(3).assign() == 3

    def test_assign_unknown_raises(self):
        with pytest.raises(SynthesisError, match="unknown value"):
            Value.unknown().assign()


class TestRegions:

    def test_floor_planner_stacks_regions_sharing_a_column(self):
        assignment, layouter, (a, b, f, sel) = _layouter()
        with layouter.assign_region("first") as region:
            region.assign_advice("x", a, 0, 1)
            region.assign_advice("x", a, 1, 2)
        with layouter.assign_region("second") as region:
            region.assign_advice("y", a, 0, 3)
        with layouter.assign_region("third") as region:
            region.assign_advice("z", b, 0, 4)
        table = assignment.finalize()
        assert table.region("first").start == 0
        assert table.region("second").start == 2
        # Disjoint columns start at row 0
        assert table.region("third").start == 0
        assert [int(v) for v in table.advice[a.index][:3]] == [1, 2, 3]

    def test_fixed_and_selectors_recorded(self):
        assignment, layouter, (a, b, f, sel) = _layouter()
        with layouter.assign_region("r") as region:
            region.assign_fixed("c", f, 1, 7)
            sel.enable(region, 1)
        table = assignment.finalize()
        assert [int(v) for v in table.fixed[f.index][:3]] == [0, 7, 0]
        assert [int(v) for v in table.selectors[sel.index][:3]] == [0, 1, 0]

    def test_region_discarded_on_error(self):
        assignment, layouter, (a, b, f, sel) = _layouter()
        with pytest.raises(RuntimeError):
            with layouter.assign_region("broken") as region:
                region.assign_advice("x", a, 0, 99)
                raise RuntimeError("abort")
        with layouter.assign_region("ok") as region:
            region.assign_advice("x", a, 0, 5)
        table = assignment.finalize()
        assert [info.name for info in table.regions] == ["ok"]
        assert int(table.advice[a.index][0]) == 5

    def test_capacity_exceeded(self):
        assignment, layouter, (a, b, f, sel) = _layouter(k=1)
        with pytest.raises(SynthesisError, match="table has 2 rows"):
            with layouter.assign_region("big") as region:
                for i in range(3):
                    region.assign_advice("x", a, i, i)

    def test_nested_regions_rejected(self):
        _, layouter, _ = _layouter()
        with pytest.raises(SynthesisError, match="opened inside"):
            with layouter.assign_region("outer"):
                with layouter.assign_region("inner"):
                    pass

    def test_wrong_column_kind(self):
        _, layouter, (a, b, f, sel) = _layouter()
        with pytest.raises(SynthesisError, match="not a fixed column"):
            with layouter.assign_region("r") as region:
                region.assign_fixed("x", a, 0, 1)

    def test_copy_constraint_resolved_to_absolute_rows(self):
        assignment, layouter, (a, b, f, sel) = _layouter()
        with layouter.assign_region("first") as region:
            region.assign_advice("pad", a, 0, 0)
            source = region.assign_advice("x", a, 1, 11)
        with layouter.assign_region("second") as region:
            region.copy_advice("y", source, a, 0)
        table = assignment.finalize()
        assert table.copies == [((a, 1), (a, 2))]
        assert int(table.advice[a.index][2]) == 11

    def test_copy_requires_equality(self):
        _, layouter, (a, b, f, sel) = _layouter()
        with pytest.raises(SynthesisError, match="equality enabled"):
            with layouter.assign_region("r") as region:
                source = region.assign_advice("x", a, 0, 1)
                region.copy_advice("y", source, b, 0)

    def test_shape_synthesis_skips_advice(self):
        assignment, layouter, (a, b, f, sel) = _layouter(witness=False)
        with layouter.assign_region("r") as region:
            region.assign_advice("x", a, 0, Value.unknown())
            region.assign_fixed("c", f, 0, 3)
        table = assignment.finalize()
        assert table.advice == []
        assert int(table.fixed[f.index][0]) == 3

    def test_unknown_value_while_proving(self):
        _, layouter, (a, b, f, sel) = _layouter()
        with pytest.raises(SynthesisError, match="unknown value"):
            with layouter.assign_region("r") as region:
                region.assign_advice("x", a, 0, Value.unknown())
