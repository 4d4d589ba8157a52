"""IVC folding engine.

Per side (primary and secondary), every step:

1. Synthesize the step circuit on the current z_i into a 2^k-row table
2. Check the table's structure against the shape in the public parameters
3. (debug mode) Check the relation row by row and report failures
4. Commit to the advice columns; derive theta, gamma from the transcript
5. Compute the residual vector (protocol/relation.py) and commit to it
6. Derive the folding challenge r and fold W, E and their commitments
7. Advance z_i to the step output and refresh the accumulator digest

The transcript of every step is seeded with the params digest and the
accumulator digest before the step, so each fold is bound to the whole chain.

verify() recomputes the accumulator digest, re-commits the folded witness
and error vectors and requires the folded error vector to be zero. A step
that broke the relation leaves r * E_step != 0 in the accumulator.
"""

import hashlib
from typing import List, Sequence

from primitives.curve import Curve, Point
from primitives.errors import (
    FoldingError,
    FoldStepError,
    InstanceCreationError,
    SynthesisError,
    VerificationError,
)
from primitives.field import element_to_bytes, to_int_list
from primitives.transcript import Transcript
from protocol.data import RelaxedInstance, RelaxedWitness, StepProof
from protocol.params import CircuitPublicParams, PublicParams, TableStructure
from protocol.relation import check_step, compute_residuals
from witness.synthesis import synthesize_step

TRANSCRIPT_LABEL = b"shuffle-fold-step"


class _StepRejected(FoldingError):
    """A synthesized step does not match the shape or violates the relation."""


# --- Helper Functions ---

def _accumulator_digest(pp_digest: bytes, label: str, curve: Curve, instance: RelaxedInstance) -> bytes:
    h = hashlib.blake2b(digest_size=32, person=b"shuffle-acc")
    h.update(pp_digest)
    h.update(label.encode())
    h.update(instance.step.to_bytes(8, "little"))
    for vector in (instance.z_0, instance.z_i):
        h.update(len(vector).to_bytes(8, "little"))
        for value in vector:
            h.update(element_to_bytes(value))
    for points in (instance.witness_commitments, instance.error_commitments):
        h.update(len(points).to_bytes(8, "little"))
        for point in points:
            h.update(curve.to_bytes(point))
    return h.digest()


def _put_points(transcript: Transcript, curve: Curve, points: List[Point]) -> None:
    for point in points:
        transcript.put_bytes(curve.to_bytes(point))


def _fold_points(curve: Curve, acc: List[Point], step: List[Point], r) -> List[Point]:
    """acc[j] + r * step[j] for every commitment."""
    return [curve.add(a, curve.scale(s, r)) for a, s in zip(acc, step)]


def _to_state(side: CircuitPublicParams, z) -> object:
    """Convert an initial state vector into the side's field."""
    field = side.field
    values = []
    for j, v in enumerate(z):
        value = int(v)
        if not 0 <= value < field.order:
            raise InstanceCreationError(f"{side.label}: z_0[{j}] = {value} is not a field element")
        values.append(value)
    return field(values)


def _prove_step(
    side: CircuitPublicParams,
    pp_digest: bytes,
    prev_digest: bytes,
    circuit,
    z_in,
    step: int,
    debug_mode: bool,
) -> StepProof:
    """Synthesize, check and commit one step.

    Raises:
        SynthesisError: If the circuit cannot be assigned
        _StepRejected: If the table differs from the shape or (debug mode)
            violates the relation
    """
    shape = side.shape
    field = side.field
    key = side.commitment_key
    curve = key.curve

    if circuit.arity != shape.arity:
        raise _StepRejected(
            f"{side.label} step circuit has arity {circuit.arity}, public parameters expect {shape.arity}"
        )

    synthesized = synthesize_step(shape.layout, circuit, shape.k, z_in)
    diffs = TableStructure.of(synthesized).differences(shape.structure)
    if diffs:
        raise _StepRejected(
            f"{side.label} step circuit does not match the public parameters "
            f"(differs in {', '.join(diffs)})"
        )

    if debug_mode:
        failures = check_step(shape, synthesized, z_in)
        if failures:
            raise _StepRejected(f"{side.label} constraints not satisfied: " + "; ".join(failures))

    advice = synthesized.table.advice
    witness_commitments = [key.commit(column) for column in advice]

    transcript = Transcript(TRANSCRIPT_LABEL)
    transcript.put_bytes(pp_digest)
    transcript.put_bytes(side.label.encode())
    transcript.put_bytes(prev_digest)
    transcript.put([step])
    transcript.put(z_in)
    transcript.put(synthesized.z_out)
    _put_points(transcript, curve, witness_commitments)
    theta, gamma = transcript.get_fields(field, 2)

    try:
        error = compute_residuals(shape, synthesized, z_in, theta, gamma)
    except ZeroDivisionError as exc:
        raise _StepRejected(f"{side.label} shuffle denominator vanished for this challenge") from exc

    error_commitments = key.commit_chunks(error)
    _put_points(transcript, curve, error_commitments)
    challenge = transcript.get_field(field)

    return StepProof(
        z_in=z_in,
        z_out=synthesized.z_out,
        advice=list(advice),
        witness_commitments=witness_commitments,
        error=error,
        error_commitments=error_commitments,
        challenge=challenge,
    )


# --- Accumulator ---

class _Accumulator:
    """Relaxed accumulator of one side."""

    def __init__(self, side: CircuitPublicParams, instance: RelaxedInstance, witness: RelaxedWitness, digest: bytes):
        self.side = side
        self.instance = instance
        self.witness = witness
        self.digest = digest

    @classmethod
    def start(cls, side: CircuitPublicParams, pp_digest: bytes, z_0, proof: StepProof) -> "_Accumulator":
        instance = RelaxedInstance(
            step=1,
            z_0=z_0,
            z_i=proof.z_out,
            witness_commitments=proof.witness_commitments,
            error_commitments=proof.error_commitments,
        )
        witness = RelaxedWitness(advice=list(proof.advice), error=proof.error)
        digest = _accumulator_digest(pp_digest, side.label, side.commitment_key.curve, instance)
        return cls(side, instance, witness, digest)

    def folded(self, pp_digest: bytes, proof: StepProof) -> "_Accumulator":
        """New accumulator with `proof` folded in; self is left untouched."""
        r = proof.challenge
        acc = self.instance
        curve = self.side.commitment_key.curve
        instance = RelaxedInstance(
            step=acc.step + 1,
            z_0=acc.z_0,
            z_i=proof.z_out,
            witness_commitments=_fold_points(curve, acc.witness_commitments, proof.witness_commitments, r),
            error_commitments=_fold_points(curve, acc.error_commitments, proof.error_commitments, r),
        )
        witness = RelaxedWitness(
            advice=[w + r * s for w, s in zip(self.witness.advice, proof.advice)],
            error=self.witness.error + r * proof.error,
        )
        digest = _accumulator_digest(pp_digest, self.side.label, curve, instance)
        return _Accumulator(self.side, instance, witness, digest)

    def verify(self, pp_digest: bytes) -> None:
        label = self.side.label
        key = self.side.commitment_key
        instance = self.instance

        if _accumulator_digest(pp_digest, label, key.curve, instance) != self.digest:
            raise VerificationError(f"{label}: accumulator digest mismatch")

        if len(instance.z_i) != self.side.shape.arity:
            raise VerificationError(
                f"{label}: z_i has length {len(instance.z_i)}, arity is {self.side.shape.arity}"
            )

        if len(self.witness.advice) != len(instance.witness_commitments):
            raise VerificationError(f"{label}: folded witness has the wrong number of columns")
        for j, column in enumerate(self.witness.advice):
            if not key.curve.eq(key.commit(column), instance.witness_commitments[j]):
                raise VerificationError(f"{label}: folded advice column {j} does not open its commitment")

        chunks = key.commit_chunks(self.witness.error)
        if len(chunks) != len(instance.error_commitments) or not all(
            key.curve.eq(c, e) for c, e in zip(chunks, instance.error_commitments)
        ):
            raise VerificationError(f"{label}: folded error vector does not open its commitment")

        nonzero = [i for i, v in enumerate(self.witness.error) if int(v) != 0]
        if nonzero:
            raise VerificationError(
                f"{label}: folded relation is not satisfied ({len(nonzero)} nonzero residuals, "
                f"first at index {nonzero[0]})"
            )


# --- IVC ---

class IVC:
    """Folding instance over a primary and a secondary step circuit."""

    def __init__(self, pp_digest: bytes, primary: _Accumulator, secondary: _Accumulator, debug_mode: bool):
        self._pp_digest = pp_digest
        self._primary = primary
        self._secondary = secondary
        self.debug_mode = debug_mode

    @classmethod
    def new(cls, pp: PublicParams, circuit1, z0_1: Sequence, circuit2, z0_2: Sequence, debug_mode: bool = False) -> "IVC":
        """Create the instance and prove the base step (step 0) on both sides.

        Raises:
            InstanceCreationError: On arity mismatch, invalid z_0, or a base
                step that cannot be synthesized or does not satisfy the relation
        """
        sides = ((pp.primary, circuit1, z0_1), (pp.secondary, circuit2, z0_2))

        for side, circuit, z0 in sides:
            if circuit.arity != side.shape.arity:
                raise InstanceCreationError(
                    f"{side.label}: step circuit arity {circuit.arity} differs from "
                    f"public parameters arity {side.shape.arity}"
                )
            if len(z0) != circuit.arity:
                raise InstanceCreationError(
                    f"{side.label}: z_0 has length {len(z0)}, step circuit arity is {circuit.arity}"
                )

        accumulators = []
        for side, circuit, z0 in sides:
            z_0 = _to_state(side, z0)
            try:
                proof = _prove_step(side, pp.digest, b"", circuit, z_0, 0, debug_mode)
            except (SynthesisError, _StepRejected) as exc:
                raise InstanceCreationError(f"{side.label}: base step failed: {exc}") from exc
            accumulators.append(_Accumulator.start(side, pp.digest, z_0, proof))

        return cls(pp.digest, accumulators[0], accumulators[1], debug_mode)

    @property
    def step(self) -> int:
        """Number of steps folded so far (the base step counts as one)."""
        return self._primary.instance.step

    @property
    def z_primary(self) -> List[int]:
        return to_int_list(self._primary.instance.z_i)

    @property
    def z_secondary(self) -> List[int]:
        return to_int_list(self._secondary.instance.z_i)

    def fold_step(self, pp: PublicParams, circuit1, circuit2) -> None:
        """Prove the next step on both sides and fold it in.

        The instance is only advanced when both sides succeed.

        Raises:
            FoldStepError: With the 1-based fold index
        """
        fold_index = self.step
        if pp.digest != self._pp_digest:
            raise FoldStepError("public parameters differ from the ones the instance was created with", fold_index)

        folded = []
        for acc, circuit in ((self._primary, circuit1), (self._secondary, circuit2)):
            try:
                proof = _prove_step(
                    acc.side, pp.digest, acc.digest, circuit, acc.instance.z_i, fold_index, self.debug_mode
                )
            except (SynthesisError, _StepRejected) as exc:
                raise FoldStepError(str(exc), fold_index) from exc
            folded.append(acc.folded(pp.digest, proof))

        self._primary, self._secondary = folded

    def verify(self, pp: PublicParams) -> None:
        """Check both accumulators.

        Raises:
            VerificationError: If either accumulator is rejected
        """
        if pp.digest != self._pp_digest:
            raise VerificationError("public parameters differ from the ones the instance was created with")
        self._primary.verify(pp.digest)
        self._secondary.verify(pp.digest)
