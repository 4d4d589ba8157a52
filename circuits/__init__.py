"""Step circuits folded by the IVC engine.

Each circuit is a StepCircuit subclass; STEP_CIRCUIT_REGISTRY maps the names
accepted by `fold-shuffle --variant/--secondary` to the classes.
"""

from .shuffle_step import (
    EXAMPLE_INPUT_0,
    EXAMPLE_INPUT_1,
    EXAMPLE_PERMUTATION,
    EXAMPLE_SHUFFLE_0,
    EXAMPLE_SHUFFLE_1,
    ChainedShuffleStepCircuit,
    ShuffleStepCircuit,
)
from .step_circuit import StepCircuit, TrivialStepCircuit

# Registry mapping circuit names to step circuit classes
STEP_CIRCUIT_REGISTRY: dict[str, type[StepCircuit]] = {
    "trivial": TrivialStepCircuit,
    "shuffle": ShuffleStepCircuit,
    "chained_shuffle": ChainedShuffleStepCircuit,
}


def get_step_circuit_class(name: str) -> type[StepCircuit]:
    """Get the step circuit class registered under `name`.

    Raises:
        KeyError: If no circuit is registered under `name`
    """
    if name in STEP_CIRCUIT_REGISTRY:
        return STEP_CIRCUIT_REGISTRY[name]
    raise KeyError(f"No step circuit '{name}'. "
                   f"Available: {list(STEP_CIRCUIT_REGISTRY.keys())}")


__all__ = [
    "StepCircuit",
    "TrivialStepCircuit",
    "ShuffleStepCircuit",
    "ChainedShuffleStepCircuit",
    "STEP_CIRCUIT_REGISTRY",
    "get_step_circuit_class",
    "EXAMPLE_INPUT_0",
    "EXAMPLE_INPUT_1",
    "EXAMPLE_SHUFFLE_0",
    "EXAMPLE_SHUFFLE_1",
    "EXAMPLE_PERMUTATION",
]
