"""Circuit shapes and public parameters.

The shape of a step circuit is everything about its table that does not
depend on the witness: column counts, equality-enabled columns, shuffle
arguments, fixed values, selector placement, copy constraints and the rows
that carry z_i / z_out. It is learned once by synthesizing the circuit's
witness-free copy and is digested into the public parameters, so every fold
step can be checked against it.
"""

import hashlib
from dataclasses import dataclass
from typing import List, Tuple

from primitives.commitment import MAX_KEY_BITS, CommitmentKey
from primitives.errors import ParamsConstructionError, SynthesisError
from witness.base import CopyConstraint, RegionInfo
from witness.synthesis import StepLayout, SynthesizedStep, configure_step, synthesize_step

# Smallest table: one row for z_i and one for z_out
MIN_TABLE_BITS = 1
MAX_TABLE_BITS = MAX_KEY_BITS


def _digest(lines: List[str]) -> bytes:
    h = hashlib.blake2b(digest_size=32, person=b"shuffle-shape")
    for line in lines:
        h.update(line.encode())
        h.update(b"\n")
    return h.digest()


def _copy_key(copy: CopyConstraint) -> str:
    (a_col, a_row), (b_col, b_row) = copy
    return f"{a_col}@{a_row}={b_col}@{b_row}"


@dataclass(frozen=True)
class TableStructure:
    """Witness-independent part of a synthesized table."""
    fixed: Tuple[Tuple[int, ...], ...]
    selectors: Tuple[Tuple[int, ...], ...]
    copies: Tuple[str, ...]
    z_in_rows: Tuple[int, ...]
    z_out_rows: Tuple[int, ...]
    regions: Tuple[RegionInfo, ...]

    @classmethod
    def of(cls, step: SynthesizedStep) -> "TableStructure":
        table = step.table
        return cls(
            fixed=tuple(tuple(int(v) for v in col) for col in table.fixed),
            selectors=tuple(tuple(int(v) for v in col) for col in table.selectors),
            copies=tuple(_copy_key(c) for c in table.copies),
            z_in_rows=tuple(step.z_in_rows),
            z_out_rows=tuple(step.z_out_rows),
            regions=tuple(table.regions),
        )

    def differences(self, other: "TableStructure") -> List[str]:
        """Names of the parts that differ from `other`."""
        diffs = []
        for name in ("fixed", "selectors", "copies", "z_in_rows", "z_out_rows", "regions"):
            if getattr(self, name) != getattr(other, name):
                diffs.append(name)
        return diffs


@dataclass(frozen=True)
class CircuitShape:
    """Configured layout plus table structure of one step circuit."""
    k: int
    layout: StepLayout
    structure: TableStructure
    digest: bytes

    @classmethod
    def from_circuit(cls, circuit, field: type, k: int) -> "CircuitShape":
        """Learn the shape by synthesizing the circuit without witnesses.

        Raises:
            SynthesisError: If the witness-free synthesis fails
            ValueError: If the circuit declares an invalid arity
        """
        layout = configure_step(circuit, field)
        step = synthesize_step(layout, circuit.without_witnesses(), k)
        structure = TableStructure.of(step)
        lines = [f"k={k}", f"arity={layout.arity}", f"field={field.order}"]
        lines += layout.meta.describe()
        lines += [f"fixed[{i}]=" + ",".join(map(str, col)) for i, col in enumerate(structure.fixed)]
        lines += [f"selector[{i}]=" + "".join(map(str, col)) for i, col in enumerate(structure.selectors)]
        lines += ["copies=" + ";".join(structure.copies)]
        lines += [f"z_in_rows={structure.z_in_rows}", f"z_out_rows={structure.z_out_rows}"]
        return cls(k=k, layout=layout, structure=structure, digest=_digest(lines))

    @property
    def arity(self) -> int:
        return self.layout.arity

    @property
    def n_rows(self) -> int:
        return 1 << self.k

    @property
    def meta(self):
        return self.layout.meta

    def residual_length(self) -> int:
        """Length of the relation's residual vector for one step."""
        n_shuffles = len(self.meta.shuffles)
        return n_shuffles * (self.n_rows + 1) + len(self.structure.copies) + self.arity


@dataclass(frozen=True)
class CircuitPublicParams:
    """Public parameters of one side (primary or secondary) of the IVC."""
    label: str
    k_table_size: int
    commitment_key: CommitmentKey
    shape: CircuitShape

    @property
    def field(self) -> type:
        return self.commitment_key.scalar_field

    @classmethod
    def build(cls, label: str, k_table_size: int, commitment_key: CommitmentKey, circuit) -> "CircuitPublicParams":
        if not MIN_TABLE_BITS <= k_table_size <= MAX_TABLE_BITS:
            raise ParamsConstructionError(
                f"{label}: table size k={k_table_size} outside [{MIN_TABLE_BITS}, {MAX_TABLE_BITS}]"
            )
        if commitment_key.k < k_table_size:
            raise ParamsConstructionError(
                f"{label}: commitment key '{commitment_key.name}' has k={commitment_key.k}, "
                f"smaller than table k={k_table_size}"
            )
        try:
            shape = CircuitShape.from_circuit(circuit, commitment_key.scalar_field, k_table_size)
        except (SynthesisError, ValueError) as exc:
            raise ParamsConstructionError(f"{label}: cannot derive circuit shape: {exc}") from exc
        return cls(label=label, k_table_size=k_table_size, commitment_key=commitment_key, shape=shape)


@dataclass(frozen=True)
class PublicParams:
    """Immutable parameters shared by every fold step of a run."""
    primary: CircuitPublicParams
    secondary: CircuitPublicParams
    digest: bytes

    @classmethod
    def new(
        cls,
        primary_k_table_size: int,
        primary_commitment_key: CommitmentKey,
        primary_circuit,
        secondary_k_table_size: int,
        secondary_commitment_key: CommitmentKey,
        secondary_circuit,
    ) -> "PublicParams":
        """Build parameters from both table sizes, keys and circuits.

        Raises:
            ParamsConstructionError: On incompatible sizes, keys or shapes
        """
        if primary_commitment_key.name == secondary_commitment_key.name:
            raise ParamsConstructionError(
                f"primary and secondary keys are both '{primary_commitment_key.name}'; "
                f"they must belong to the two curves of the cycle"
            )
        primary = CircuitPublicParams.build(
            "primary", primary_k_table_size, primary_commitment_key, primary_circuit
        )
        secondary = CircuitPublicParams.build(
            "secondary", secondary_k_table_size, secondary_commitment_key, secondary_circuit
        )
        lines = []
        for side in (primary, secondary):
            lines += [
                side.label,
                f"table_k={side.k_table_size}",
                f"key={side.commitment_key.name}:{side.commitment_key.k}",
                side.shape.digest.hex(),
            ]
        return cls(primary=primary, secondary=secondary, digest=_digest(lines))
