"""Step synthesis harness.

Wraps a step circuit with the IO column that carries the IVC state. The
harness assigns z_i into the IO column before the circuit runs and copies the
circuit's returned cells back into the IO column afterwards, so both vectors
sit at known rows and are tied to the circuit's own cells by copy
constraints:

    region "step inputs"   io[0..A)   = z_i
    <circuit regions>
    region "step outputs"  io[A..2A)  = z_out   (copied from returned cells)

The same code path serves shape synthesis (z_i=None, every advice value
unknown) and witness synthesis (z_i given, every advice value known).
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from constraints.base import Column, ConstraintSystem
from primitives.errors import SynthesisError
from witness.base import AssignedCell, Assignment, Layouter, StepTable, Value

IO_INPUTS_REGION = "step inputs"
IO_OUTPUTS_REGION = "step outputs"


@dataclass(frozen=True)
class StepLayout:
    """A step circuit's configured constraint system plus the IO column."""
    meta: ConstraintSystem
    config: object
    io: Column
    arity: int


@dataclass
class SynthesizedStep:
    """Result of one synthesis run."""
    table: StepTable
    z_in_rows: List[int]
    z_out_rows: List[int]
    z_out: Optional[object] = None  # field array; None for shape synthesis


def configure_step(circuit, field: type) -> StepLayout:
    """Run the circuit's configure and append the equality-enabled IO column."""
    if circuit.arity < 1:
        raise ValueError(f"step circuit arity must be positive, got {circuit.arity}")
    meta = ConstraintSystem(field)
    config = circuit.configure(meta)
    io = meta.advice_column()
    meta.enable_equality(io)
    return StepLayout(meta=meta, config=config, io=io, arity=circuit.arity)


def synthesize_step(layout: StepLayout, circuit, k: int, z_i: Optional[Sequence] = None) -> SynthesizedStep:
    """Synthesize one step into a 2^k-row table.

    Args:
        layout: Layout produced by configure_step for this circuit's shape
        circuit: Step circuit (witness-free copy for shape synthesis)
        k: log2 of the table size
        z_i: Step input of length arity, or None for shape synthesis

    Raises:
        SynthesisError: On any assignment failure or arity mismatch
    """
    witness = z_i is not None
    if witness and len(z_i) != layout.arity:
        raise SynthesisError(f"z_i has length {len(z_i)}, step arity is {layout.arity}")

    assignment = Assignment(layout.meta, k, witness=witness)
    layouter = Layouter(assignment)

    with layouter.assign_region(IO_INPUTS_REGION) as region:
        z_cells = [
            region.assign_advice(
                f"z_i[{j}]", layout.io, j,
                Value.known(z_i[j]) if witness else Value.unknown(),
            )
            for j in range(layout.arity)
        ]

    z_out_cells = circuit.synthesize(layout.config, layouter, z_cells)
    if len(z_out_cells) != layout.arity:
        raise SynthesisError(
            f"step circuit returned {len(z_out_cells)} output cells, arity is {layout.arity}"
        )

    with layouter.assign_region(IO_OUTPUTS_REGION) as region:
        for j, cell in enumerate(z_out_cells):
            if not isinstance(cell, AssignedCell):
                raise SynthesisError(f"z_out[{j}] is {type(cell).__name__}, expected an assigned cell")
            region.copy_advice(f"z_out[{j}]", cell, layout.io, j)

    table = assignment.finalize()
    inputs = table.region(IO_INPUTS_REGION)
    outputs = table.region(IO_OUTPUTS_REGION)
    z_in_rows = [inputs.start + j for j in range(layout.arity)]
    z_out_rows = [outputs.start + j for j in range(layout.arity)]

    z_out = None
    if witness:
        z_out = table.advice[layout.io.index][z_out_rows]
    return SynthesizedStep(table=table, z_in_rows=z_in_rows, z_out_rows=z_out_rows, z_out=z_out)
