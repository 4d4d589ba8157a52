"""Shuffle step circuits.

ShuffleStepCircuit (unchained):
    Left pairs (input_0[i], input_1[i]) and right pairs
    (shuffle_0[j], shuffle_1[j]) come straight from the step data. The step
    output is z_i unchanged, so the circuit folds as an identity on the IVC
    state while proving its own shuffle at every step.

ChainedShuffleStepCircuit:
    The left value column is z_i itself: row i copies z_i[i] into input_0
    (a copy constraint, not a fresh witness) and pairs it with the constant
    input_1[i]. The output is the shuffle_0 column in row order, so every
    step proves that its output is a reshuffle of its input.
"""

from typing import List, Optional, Sequence

from circuits.step_circuit import StepCircuit
from constraints.base import ConstraintSystem
from constraints.shuffle import ShuffleChip, ShuffleConfig
from witness.base import AssignedCell, Value, as_value

# Example data: the same four pairs on both sides, in a different order.
EXAMPLE_INPUT_0 = [1, 2, 4, 1]
EXAMPLE_INPUT_1 = [10, 20, 40, 10]
EXAMPLE_SHUFFLE_0 = [4, 1, 1, 2]
EXAMPLE_SHUFFLE_1 = [40, 10, 10, 20]
# Right row j holds left row EXAMPLE_PERMUTATION[j]
EXAMPLE_PERMUTATION = [2, 0, 3, 1]


def _check_lengths(**columns: Sequence) -> int:
    lengths = {name: len(values) for name, values in columns.items()}
    if len(set(lengths.values())) != 1:
        raise ValueError(f"row sequences must have equal length, got {lengths}")
    return next(iter(lengths.values()))


def _configure_shuffle(meta: ConstraintSystem) -> ShuffleConfig:
    input_0 = meta.advice_column()
    input_1 = meta.fixed_column()
    shuffle_0 = meta.advice_column()
    shuffle_1 = meta.advice_column()
    return ShuffleChip.configure(meta, input_0, input_1, shuffle_0, shuffle_1)


def _load_shuffles(chip: ShuffleChip, layouter, shuffle_0, shuffle_1) -> List[AssignedCell]:
    """Assign the right-hand pairs; return the shuffle_0 cells in row order."""
    config = chip.config
    outputs = []
    with layouter.assign_region("load shuffles") as region:
        for i, (s0, s1) in enumerate(zip(shuffle_0, shuffle_1)):
            outputs.append(region.assign_advice("shuffle_0", config.shuffle_0, i, s0))
            region.assign_advice("shuffle_1", config.shuffle_1, i, s1)
            config.s_shuffle.enable(region, i)
    return outputs


class ShuffleStepCircuit(StepCircuit):
    """Shuffle gate over witness data supplied per step.

    Each side sets its own row count: the input pairs and the shuffle pairs
    only need equal length within their side. Rows a selector leaves off are
    the zero tuple, so the multisets are compared over the whole table.
    """

    def __init__(
        self,
        input_0: Sequence,
        input_1: Sequence[int],
        shuffle_0: Sequence,
        shuffle_1: Sequence,
        arity: int = 1,
    ):
        _check_lengths(input_0=input_0, input_1=input_1)
        _check_lengths(shuffle_0=shuffle_0, shuffle_1=shuffle_1)
        if arity < 1:
            raise ValueError(f"arity must be positive, got {arity}")
        self.input_0 = [as_value(v) for v in input_0]
        self.input_1 = [int(v) for v in input_1]
        self.shuffle_0 = [as_value(v) for v in shuffle_0]
        self.shuffle_1 = [as_value(v) for v in shuffle_1]
        self._arity = arity

    @property
    def arity(self) -> int:
        return self._arity

    @property
    def n_input_rows(self) -> int:
        return len(self.input_1)

    @property
    def n_shuffle_rows(self) -> int:
        return len(self.shuffle_1)

    @classmethod
    def example(cls, arity: int = 1) -> "ShuffleStepCircuit":
        """Unchained shuffle step over the example pairs."""
        return cls(EXAMPLE_INPUT_0, EXAMPLE_INPUT_1, EXAMPLE_SHUFFLE_0, EXAMPLE_SHUFFLE_1, arity=arity)

    def configure(self, meta: ConstraintSystem) -> ShuffleConfig:
        return _configure_shuffle(meta)

    def synthesize(self, config: ShuffleConfig, layouter, z_i: List[AssignedCell]) -> List[AssignedCell]:
        chip = ShuffleChip.construct(config, layouter.field)

        with layouter.assign_region("load inputs") as region:
            for i, (input_0, input_1) in enumerate(zip(self.input_0, self.input_1)):
                region.assign_advice("input_0", config.input_0, i, input_0)
                region.assign_fixed("input_1", config.input_1, i, input_1)
                config.s_input.enable(region, i)

        _load_shuffles(chip, layouter, self.shuffle_0, self.shuffle_1)
        return list(z_i)

    def without_witnesses(self) -> "ShuffleStepCircuit":
        unknown_inputs = [Value.unknown()] * self.n_input_rows
        unknown_shuffles = [Value.unknown()] * self.n_shuffle_rows
        return ShuffleStepCircuit(
            unknown_inputs, self.input_1, unknown_shuffles, unknown_shuffles, arity=self._arity
        )


class ChainedShuffleStepCircuit(StepCircuit):
    """Shuffle gate whose left values are the previous step's output.

    The arity equals the number of rows: len(input_1) == len(z_i) == len(z_out).
    """

    def __init__(
        self,
        input_1: Sequence[int],
        shuffle_0: Sequence,
        shuffle_1: Sequence,
        permutation: Optional[Sequence[int]] = None,
    ):
        _check_lengths(input_1=input_1, shuffle_0=shuffle_0, shuffle_1=shuffle_1)
        if not input_1:
            raise ValueError("chained shuffle needs at least one row")
        self.input_1 = [int(v) for v in input_1]
        self.shuffle_0 = [as_value(v) for v in shuffle_0]
        self.shuffle_1 = [as_value(v) for v in shuffle_1]
        self.permutation = None if permutation is None else list(permutation)

    @classmethod
    def from_permutation(
        cls,
        z_i: Sequence[int],
        input_1: Sequence[int],
        permutation: Optional[Sequence[int]] = None,
    ) -> "ChainedShuffleStepCircuit":
        """Build the step whose right pairs are the left pairs reordered.

        Right row j holds left row permutation[j]: (z_i[p[j]], input_1[p[j]]).
        The identity permutation is used when none is given.
        """
        _check_lengths(z_i=z_i, input_1=input_1)
        n = len(input_1)
        order = list(range(n)) if permutation is None else [int(j) for j in permutation]
        if sorted(order) != list(range(n)):
            raise ValueError(f"{order} is not a permutation of range({n})")
        return cls(
            input_1=input_1,
            shuffle_0=[int(z_i[j]) for j in order],
            shuffle_1=[int(input_1[j]) for j in order],
            permutation=order,
        )

    @classmethod
    def example(cls, z_i: Optional[Sequence[int]] = None) -> "ChainedShuffleStepCircuit":
        """Chained shuffle step over the example constants, starting from `z_i`."""
        z = EXAMPLE_INPUT_0 if z_i is None else z_i
        return cls.from_permutation(z, EXAMPLE_INPUT_1, EXAMPLE_PERMUTATION)

    @classmethod
    def example_state(cls) -> List[int]:
        return list(EXAMPLE_INPUT_0)

    def next_step(self, z_i: Sequence[int]) -> "ChainedShuffleStepCircuit":
        """Same reordering applied to the new state.

        Raises:
            ValueError: If the circuit was not built from a permutation
        """
        if self.permutation is None:
            raise ValueError("chained shuffle step has no permutation to replay")
        return ChainedShuffleStepCircuit.from_permutation(z_i, self.input_1, self.permutation)

    @property
    def arity(self) -> int:
        return len(self.input_1)

    def configure(self, meta: ConstraintSystem) -> ShuffleConfig:
        config = _configure_shuffle(meta)
        meta.enable_equality(config.input_0)
        meta.enable_equality(config.shuffle_0)
        return config

    def synthesize(self, config: ShuffleConfig, layouter, z_i: List[AssignedCell]) -> List[AssignedCell]:
        chip = ShuffleChip.construct(config, layouter.field)

        with layouter.assign_region("load inputs") as region:
            for i, (z, input_1) in enumerate(zip(z_i, self.input_1)):
                region.copy_advice("input_0", z, config.input_0, i)
                region.assign_fixed("input_1", config.input_1, i, input_1)
                config.s_input.enable(region, i)

        return _load_shuffles(chip, layouter, self.shuffle_0, self.shuffle_1)

    def without_witnesses(self) -> "ChainedShuffleStepCircuit":
        unknown = [Value.unknown()] * self.arity
        return ChainedShuffleStepCircuit(self.input_1, unknown, unknown)
