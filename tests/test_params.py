"""Tests for circuit shapes and public parameter construction."""

import pytest

from circuits import ChainedShuffleStepCircuit, ShuffleStepCircuit, TrivialStepCircuit
from primitives.commitment import CommitmentKey
from primitives.errors import ParamsConstructionError
from primitives.field import Fr
from protocol.params import CircuitShape, PublicParams

from tests.conftest import TABLE_K


class TestCircuitShape:

    def test_deterministic_digest(self):
        a = CircuitShape.from_circuit(ShuffleStepCircuit.example(), Fr, TABLE_K)
        b = CircuitShape.from_circuit(ShuffleStepCircuit.example(), Fr, TABLE_K)
        assert a.digest == b.digest

    def test_digest_depends_on_fixed_values(self):
        a = CircuitShape.from_circuit(ChainedShuffleStepCircuit.example(), Fr, TABLE_K)
        other = ChainedShuffleStepCircuit.example()
        other.input_1 = [11, 20, 40, 10]
        b = CircuitShape.from_circuit(other, Fr, TABLE_K)
        assert a.digest != b.digest
        assert a.structure.differences(b.structure) == ["fixed"]

    def test_digest_depends_on_k(self):
        a = CircuitShape.from_circuit(ShuffleStepCircuit.example(), Fr, TABLE_K)
        b = CircuitShape.from_circuit(ShuffleStepCircuit.example(), Fr, TABLE_K + 1)
        assert a.digest != b.digest

    def test_residual_length(self):
        shape = CircuitShape.from_circuit(ChainedShuffleStepCircuit.example(), Fr, TABLE_K)
        # one shuffle (n + 1), 8 copies, 4 io inputs
        assert shape.residual_length() == (16 + 1) + 8 + 4

    def test_witness_independent(self):
        """Shapes of circuits that differ only in witness data agree."""
        a = CircuitShape.from_circuit(ChainedShuffleStepCircuit.example([1, 2, 4, 1]), Fr, TABLE_K)
        b = CircuitShape.from_circuit(ChainedShuffleStepCircuit.example([9, 9, 9, 9]), Fr, TABLE_K)
        assert a.digest == b.digest


class TestPublicParams:

    def test_build(self, make_params):
        pp = make_params(ShuffleStepCircuit.example(), TrivialStepCircuit())
        assert pp.primary.field is Fr
        assert pp.primary.shape.arity == 1
        assert pp.secondary.label == "secondary"
        assert len(pp.digest) == 32

    def test_digest_binds_both_circuits(self, make_params):
        a = make_params(ShuffleStepCircuit.example(), TrivialStepCircuit())
        b = make_params(ShuffleStepCircuit.example(), ShuffleStepCircuit.example())
        assert a.digest != b.digest

    def test_key_smaller_than_table(self, primary_key, secondary_key):
        with pytest.raises(ParamsConstructionError, match="smaller than table"):
            PublicParams.new(
                primary_key.k + 1, primary_key, ShuffleStepCircuit.example(),
                TABLE_K, secondary_key, ShuffleStepCircuit.example(),
            )

    def test_same_curve_keys(self, primary_key):
        with pytest.raises(ParamsConstructionError, match="both 'bn256'"):
            PublicParams.new(
                TABLE_K, primary_key, ShuffleStepCircuit.example(),
                TABLE_K, primary_key, ShuffleStepCircuit.example(),
            )

    def test_invalid_table_size(self, primary_key, secondary_key):
        with pytest.raises(ParamsConstructionError, match="outside"):
            PublicParams.new(
                0, primary_key, ShuffleStepCircuit.example(),
                TABLE_K, secondary_key, ShuffleStepCircuit.example(),
            )

    def test_table_too_small_for_circuit(self, secondary_key):
        key = CommitmentKey.setup("bn256", 2)
        with pytest.raises(ParamsConstructionError, match="cannot derive circuit shape"):
            PublicParams.new(
                2, key, ChainedShuffleStepCircuit.example(),
                TABLE_K, secondary_key, ShuffleStepCircuit.example(),
            )
