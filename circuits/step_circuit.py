"""Step circuit interface and the trivial companion circuit."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from constraints.base import ConstraintSystem
from witness.base import AssignedCell, Layouter


class StepCircuit(ABC):
    """The unit of computation folded at each IVC round.

    A step circuit declares a fixed arity A: it receives z_i as A assigned
    cells and must return A assigned cells that become z_{i+1}.
    """

    @property
    @abstractmethod
    def arity(self) -> int:
        pass

    @abstractmethod
    def configure(self, meta: ConstraintSystem):
        """Allocate columns and register constraints; return the layout."""
        pass

    @abstractmethod
    def synthesize(self, config, layouter: Layouter, z_i: List[AssignedCell]) -> List[AssignedCell]:
        """Assign one step into the layouter's regions and return z_out.

        Raises:
            SynthesisError: If any assignment fails
        """
        pass

    @abstractmethod
    def without_witnesses(self) -> "StepCircuit":
        """Copy with every advice value replaced by an unknown placeholder."""
        pass

    @classmethod
    @abstractmethod
    def example(cls) -> "StepCircuit":
        """Instance over the bundled example data."""
        pass

    @classmethod
    def example_state(cls) -> List[int]:
        """z_0 an example run starts from."""
        return [0] * cls.example().arity

    def next_step(self, z_i: Sequence[int]) -> "StepCircuit":
        """Circuit for the step that consumes z_i."""
        return self


class TrivialStepCircuit(StepCircuit):
    """Identity step: allocates nothing and returns z_i."""

    def __init__(self, arity: int = 1):
        if arity < 1:
            raise ValueError(f"arity must be positive, got {arity}")
        self._arity = arity

    @property
    def arity(self) -> int:
        return self._arity

    def configure(self, meta: ConstraintSystem):
        return None

    def synthesize(self, config, layouter, z_i):
        return list(z_i)

    def without_witnesses(self) -> "TrivialStepCircuit":
        return self

    @classmethod
    def example(cls) -> "TrivialStepCircuit":
        return cls()
