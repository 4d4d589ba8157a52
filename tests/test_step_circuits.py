"""Tests for the shuffle step circuits and the synthesis harness."""

import pytest

from circuits import (
    EXAMPLE_INPUT_0,
    EXAMPLE_INPUT_1,
    EXAMPLE_PERMUTATION,
    STEP_CIRCUIT_REGISTRY,
    ChainedShuffleStepCircuit,
    ShuffleStepCircuit,
    TrivialStepCircuit,
    get_step_circuit_class,
)
from primitives.errors import SynthesisError
from primitives.field import Fr
from witness.synthesis import (
    IO_INPUTS_REGION,
    IO_OUTPUTS_REGION,
    configure_step,
    synthesize_step,
)

K = 4


def _synthesize(circuit, z_i):
    layout = configure_step(circuit, Fr)
    return layout, synthesize_step(layout, circuit, K, Fr(z_i))


class TestRegistry:

    def test_lookup(self):
        assert get_step_circuit_class("trivial") is TrivialStepCircuit
        assert get_step_circuit_class("shuffle") is ShuffleStepCircuit
        assert get_step_circuit_class("chained_shuffle") is ChainedShuffleStepCircuit
        assert set(STEP_CIRCUIT_REGISTRY) == {"trivial", "shuffle", "chained_shuffle"}

    def test_unknown(self):
        with pytest.raises(KeyError, match="Available"):
            get_step_circuit_class("lookup")


class TestShuffleStepCircuit:

    def test_unequal_lengths_within_a_side(self):
        with pytest.raises(ValueError, match="equal length"):
            ShuffleStepCircuit([1, 2], [10], [1, 2], [10, 20])
        with pytest.raises(ValueError, match="equal length"):
            ShuffleStepCircuit([1, 2], [10, 20], [2, 1, 0], [20, 10])

    def test_sides_may_have_different_row_counts(self):
        circuit = ShuffleStepCircuit([1, 2], [10, 20], [2, 1, 0], [20, 10, 0])
        assert circuit.n_input_rows == 2
        assert circuit.n_shuffle_rows == 3
        layout, step = _synthesize(circuit, [0])
        selectors = step.table.selectors
        assert [int(v) for v in selectors[layout.config.s_input.index][:4]] == [1, 1, 0, 0]
        assert [int(v) for v in selectors[layout.config.s_shuffle.index][:4]] == [1, 1, 1, 0]

    def test_echoes_z_i(self):
        circuit = ShuffleStepCircuit.example(arity=2)
        _, step = _synthesize(circuit, [7, 8])
        assert [int(v) for v in step.z_out] == [7, 8]

    def test_layout(self):
        circuit = ShuffleStepCircuit.example()
        layout, step = _synthesize(circuit, [5])
        table = step.table
        config = layout.config
        assert [int(v) for v in table.fixed[config.input_1.index][:4]] == EXAMPLE_INPUT_1
        assert [int(v) for v in table.advice[config.input_0.index][:4]] == EXAMPLE_INPUT_0
        assert [int(v) for v in table.selectors[config.s_input.index][:5]] == [1, 1, 1, 1, 0]
        assert table.region(IO_INPUTS_REGION).start == 0
        assert table.region(IO_OUTPUTS_REGION).start == 1

    def test_without_witnesses(self):
        circuit = ShuffleStepCircuit.example().without_witnesses()
        assert all(not v.is_known for v in circuit.input_0)
        assert circuit.input_1 == EXAMPLE_INPUT_1

    def test_without_witnesses_sizes_each_side(self):
        circuit = ShuffleStepCircuit([1], [10], [0, 1], [0, 10]).without_witnesses()
        assert len(circuit.input_0) == 1
        assert len(circuit.shuffle_0) == len(circuit.shuffle_1) == 2

    def test_example_hooks(self):
        circuit = ShuffleStepCircuit.example()
        assert ShuffleStepCircuit.example_state() == [0]
        assert circuit.next_step([9]) is circuit


class TestChainedShuffleStepCircuit:

    def test_arity_is_row_count(self):
        assert ChainedShuffleStepCircuit.example().arity == len(EXAMPLE_INPUT_1)

    def test_from_permutation(self):
        z = [3, 5, 7, 9]
        circuit = ChainedShuffleStepCircuit.from_permutation(z, EXAMPLE_INPUT_1, EXAMPLE_PERMUTATION)
        assert [v.assign() for v in circuit.shuffle_0] == [7, 3, 9, 5]
        assert [v.assign() for v in circuit.shuffle_1] == [40, 10, 10, 20]

    def test_identity_by_default(self):
        circuit = ChainedShuffleStepCircuit.from_permutation([1, 2], [10, 20])
        assert [v.assign() for v in circuit.shuffle_0] == [1, 2]

    def test_invalid_permutation(self):
        with pytest.raises(ValueError, match="not a permutation"):
            ChainedShuffleStepCircuit.from_permutation([1, 2], [10, 20], [0, 0])

    def test_next_step_replays_the_permutation(self):
        circuit = ChainedShuffleStepCircuit.example()
        assert ChainedShuffleStepCircuit.example_state() == EXAMPLE_INPUT_0
        following = circuit.next_step([3, 5, 7, 9])
        assert [v.assign() for v in following.shuffle_0] == [7, 3, 9, 5]
        assert following.permutation == EXAMPLE_PERMUTATION

    def test_next_step_needs_a_permutation(self):
        circuit = ChainedShuffleStepCircuit([10, 20], [1, 2], [10, 20])
        with pytest.raises(ValueError, match="no permutation"):
            circuit.next_step([1, 2])

    def test_empty(self):
        with pytest.raises(ValueError, match="at least one row"):
            ChainedShuffleStepCircuit([], [], [])

    def test_z_out_is_shuffle_column(self):
        """z_out has the arity's length and holds the shuffle_0 column in row order."""
        z = [1, 2, 4, 1]
        circuit = ChainedShuffleStepCircuit.example(z)
        _, step = _synthesize(circuit, z)
        assert len(step.z_out) == circuit.arity
        assert [int(v) for v in step.z_out] == [z[j] for j in EXAMPLE_PERMUTATION]

    def test_copy_wiring(self):
        """input_0 copies z_i and the IO outputs copy shuffle_0."""
        z = [1, 2, 4, 1]
        layout, step = _synthesize(ChainedShuffleStepCircuit.example(z), z)
        table = step.table
        config = layout.config
        io = layout.io
        pairs = {(a, b) for a, b in table.copies}
        for i in range(4):
            assert ((io, step.z_in_rows[i]), (config.input_0, i)) in pairs
            assert ((config.shuffle_0, i), (io, step.z_out_rows[i])) in pairs
        assert len(table.copies) == 8

    def test_wrong_z_i_length(self):
        circuit = ChainedShuffleStepCircuit.example()
        layout = configure_step(circuit, Fr)
        with pytest.raises(SynthesisError, match="arity is 4"):
            synthesize_step(layout, circuit, K, Fr([1, 2]))


class TestHarness:

    def test_trivial_circuit(self):
        circuit = TrivialStepCircuit(arity=3)
        _, step = _synthesize(circuit, [4, 5, 6])
        assert [int(v) for v in step.z_out] == [4, 5, 6]
        assert step.z_in_rows == [0, 1, 2]
        assert step.z_out_rows == [3, 4, 5]

    def test_table_too_small(self):
        circuit = ChainedShuffleStepCircuit.example()
        layout = configure_step(circuit, Fr)
        with pytest.raises(SynthesisError, match="table has 4 rows"):
            synthesize_step(layout, circuit, 2, Fr(EXAMPLE_INPUT_0))

    def test_shape_synthesis(self):
        circuit = ShuffleStepCircuit.example()
        layout = configure_step(circuit, Fr)
        step = synthesize_step(layout, circuit.without_witnesses(), K)
        assert step.z_out is None
        assert step.table.advice == []

    def test_invalid_arity(self):
        with pytest.raises(ValueError):
            TrivialStepCircuit(arity=0)

    def test_trivial_example(self):
        assert TrivialStepCircuit.example().arity == 1
        assert TrivialStepCircuit.example_state() == [0]
