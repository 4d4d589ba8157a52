"""Data structures of the folding accumulator.

Architecture Overview:
    Each side of the IVC (primary over Fr, secondary over Fq) carries one
    relaxed accumulator made of a public instance and a private witness:

    1. RelaxedInstance
       - Step count, z_0, current z_i
       - Commitments to the folded advice columns and error vector
       - Digested into the accumulator digest after every fold

    2. RelaxedWitness
       - Folded advice columns (one field array per column)
       - Folded residual ("error") vector

    A StepProof holds the same data for a single freshly proven step plus
    the folding challenge r drawn for it. Folding computes

        W' = W + r * W_step        E' = E + r * E_step

    and the same combination of the commitment points.
"""

from dataclasses import dataclass, field
from typing import List

# Type aliases
FieldArray = object  # galois FieldArray over the side's scalar field
Point = tuple  # py_ecc Jacobian point of the side's commitment curve


@dataclass
class RelaxedInstance:
    """Public part of an accumulator.

    Attributes:
        step: Number of steps folded into the accumulator
        z_0: Initial state vector
        z_i: Current state vector (output of the last folded step)
        witness_commitments: One commitment per folded advice column
        error_commitments: Chunked commitments to the folded error vector
    """
    step: int
    z_0: FieldArray
    z_i: FieldArray
    witness_commitments: List[Point]
    error_commitments: List[Point]


@dataclass
class RelaxedWitness:
    """Private part of an accumulator."""
    advice: List[FieldArray] = field(default_factory=list)
    error: FieldArray = None


@dataclass
class StepProof:
    """One proven step, ready to be folded.

    Attributes:
        z_in: Step input
        z_out: Step output read from the IO column
        advice: Advice columns of the step's table
        witness_commitments: One commitment per advice column
        error: Residual vector (all zero for a satisfied step)
        error_commitments: Chunked commitments to the residual vector
        challenge: Folding challenge r bound to everything above
    """
    z_in: FieldArray
    z_out: FieldArray
    advice: List[FieldArray]
    witness_commitments: List[Point]
    error: FieldArray
    error_commitments: List[Point]
    challenge: FieldArray
