"""Protocol - Public parameters, step relation, folding engine and driver."""

from protocol.data import RelaxedInstance, RelaxedWitness, StepProof
from protocol.driver import DriverState, FoldConfig, FoldDriver
from protocol.ivc import IVC
from protocol.key_cache import load_or_setup_cache, validate_key_file
from protocol.params import CircuitPublicParams, CircuitShape, PublicParams
from protocol.relation import check_step, compute_residuals

__all__ = [
    # Parameters
    "PublicParams",
    "CircuitPublicParams",
    "CircuitShape",
    # Relation
    "compute_residuals",
    "check_step",
    # Folding
    "IVC",
    "RelaxedInstance",
    "RelaxedWitness",
    "StepProof",
    # Key cache
    "load_or_setup_cache",
    "validate_key_file",
    # Driver
    "FoldConfig",
    "FoldDriver",
    "DriverState",
]
