"""Primitives - Fields, curves, transcript, commitments and the error taxonomy."""

from primitives.commitment import MAX_KEY_BITS, CommitmentKey
from primitives.curve import BN256, CURVES, GRUMPKIN, POINT_BYTES, Curve, curve_for
from primitives.errors import (
    DriverError,
    FoldingError,
    FoldStepError,
    InstanceCreationError,
    KeyCacheError,
    ParamsConstructionError,
    SynthesisError,
    VerificationError,
)
from primitives.field import (
    FIELD_BYTES,
    Fq,
    Fr,
    batch_inverse,
    element_to_bytes,
    to_int_list,
)
from primitives.transcript import Transcript

__all__ = [
    # Field
    "Fr",
    "Fq",
    "FIELD_BYTES",
    "element_to_bytes",
    "to_int_list",
    "batch_inverse",
    # Curves
    "Curve",
    "BN256",
    "GRUMPKIN",
    "CURVES",
    "POINT_BYTES",
    "curve_for",
    # Transcript
    "Transcript",
    # Commitment
    "CommitmentKey",
    "MAX_KEY_BITS",
    # Errors
    "FoldingError",
    "KeyCacheError",
    "ParamsConstructionError",
    "InstanceCreationError",
    "SynthesisError",
    "FoldStepError",
    "VerificationError",
    "DriverError",
]
