"""End-to-end fold driver.

Stages run strictly in order, each fatal on error:

    setup_keys    load or generate both commitment keys    -> KEYS_READY
    setup_params  public parameters from both circuits     -> PARAMS_READY
    create        folding instance, base step proven       -> CREATED
    fold          fold_step_count - 1 fold steps           -> FOLDING
    verify        accept or reject the accumulator         -> VERIFIED

Any failure moves the driver to FAILED and is re-raised as a DriverError
naming the stage (and the fold step, if any). There are no retries.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple

from circuits.step_circuit import StepCircuit
from primitives.commitment import CommitmentKey
from primitives.curve import CURVES
from primitives.errors import DriverError, FoldingError, FoldStepError
from protocol.ivc import IVC
from protocol.params import PublicParams

# step_update(step, z_primary) -> primary step circuit for that fold step
StepUpdate = Callable[[int, list], object]


@dataclass(frozen=True)
class FoldConfig:
    """Constants of one folding run.

    Attributes:
        fold_step_count: Total steps including the base step
        primary_z_0: Initial state of the primary circuit
        secondary_z_0: Initial state of the secondary circuit
        primary_curve: Key name of the primary side
        secondary_curve: Key name of the secondary side
        primary_table_k: log2 rows of the primary table
        secondary_table_k: log2 rows of the secondary table
        primary_key_k: log2 size of the primary commitment key
        secondary_key_k: log2 size of the secondary commitment key
        key_cache: Directory of cached commitment keys
        debug_mode: Check every step row by row before committing
    """
    fold_step_count: int = 5
    primary_z_0: Tuple[int, ...] = (0,)
    secondary_z_0: Tuple[int, ...] = (0,)
    primary_curve: str = "bn256"
    secondary_curve: str = "grumpkin"
    primary_table_k: int = 5
    secondary_table_k: int = 5
    primary_key_k: int = 8
    secondary_key_k: int = 8
    key_cache: Path = Path(".cache")
    debug_mode: bool = True

    def __post_init__(self):
        if self.fold_step_count < 1:
            raise ValueError(f"fold_step_count must be at least 1, got {self.fold_step_count}")
        for name in (self.primary_curve, self.secondary_curve):
            if name not in CURVES:
                raise ValueError(f"unknown curve '{name}', expected one of {sorted(CURVES)}")
        if self.primary_curve == self.secondary_curve:
            raise ValueError("primary and secondary curves must differ")
        for label, table_k, key_k in (
            ("primary", self.primary_table_k, self.primary_key_k),
            ("secondary", self.secondary_table_k, self.secondary_key_k),
        ):
            if table_k < 1:
                raise ValueError(f"{label} table k must be positive, got {table_k}")
            if key_k < table_k:
                raise ValueError(f"{label} key k={key_k} is smaller than table k={table_k}")
        if not self.primary_z_0 or not self.secondary_z_0:
            raise ValueError("z_0 vectors must not be empty")


class DriverState(Enum):
    UNINITIALIZED = "uninitialized"
    KEYS_READY = "keys_ready"
    PARAMS_READY = "params_ready"
    CREATED = "created"
    FOLDING = "folding"
    VERIFIED = "verified"
    FAILED = "failed"


class FoldDriver:
    """Runs one folding session over a primary and a secondary step circuit."""

    def __init__(self, config: Optional[FoldConfig] = None):
        self.config = config or FoldConfig()
        self.state = DriverState.UNINITIALIZED
        self.failed_stage: Optional[str] = None
        self.primary_key: Optional[CommitmentKey] = None
        self.secondary_key: Optional[CommitmentKey] = None
        self.pp: Optional[PublicParams] = None
        self.ivc: Optional[IVC] = None

    def _require(self, stage: str, *states: DriverState) -> None:
        if self.state not in states:
            expected = " or ".join(s.value for s in states)
            raise DriverError(stage, f"driver is {self.state.value}, expected {expected}")

    def _fail(self, stage: str, exc: Exception, step: Optional[int] = None) -> DriverError:
        self.state = DriverState.FAILED
        self.failed_stage = stage
        return DriverError(stage, str(exc), step)

    # --- Stages ---

    def setup_keys(self) -> None:
        self._require("setup_keys", DriverState.UNINITIALIZED)
        cfg = self.config
        try:
            print(f"start setup primary commitment key: {cfg.primary_curve}")
            self.primary_key = CommitmentKey.load_or_setup_cache(cfg.key_cache, cfg.primary_curve, cfg.primary_key_k)
            print(f"start setup secondary commitment key: {cfg.secondary_curve}")
            self.secondary_key = CommitmentKey.load_or_setup_cache(
                cfg.key_cache, cfg.secondary_curve, cfg.secondary_key_k
            )
        except FoldingError as exc:
            raise self._fail("setup_keys", exc) from exc
        self.state = DriverState.KEYS_READY

    def setup_params(self, primary_circuit, secondary_circuit) -> None:
        self._require("setup_params", DriverState.KEYS_READY)
        cfg = self.config
        try:
            self.pp = PublicParams.new(
                cfg.primary_table_k,
                self.primary_key,
                primary_circuit,
                cfg.secondary_table_k,
                self.secondary_key,
                secondary_circuit,
            )
        except FoldingError as exc:
            raise self._fail("setup_params", exc) from exc
        self.state = DriverState.PARAMS_READY

    def create(self, primary_circuit, secondary_circuit) -> None:
        self._require("create", DriverState.PARAMS_READY)
        cfg = self.config
        try:
            self.ivc = IVC.new(
                self.pp,
                primary_circuit,
                cfg.primary_z_0,
                secondary_circuit,
                cfg.secondary_z_0,
                debug_mode=cfg.debug_mode,
            )
        except FoldingError as exc:
            raise self._fail("create", exc) from exc
        print("ivc created")
        self.state = DriverState.CREATED

    def fold(self, primary_circuit, secondary_circuit, step_update: Optional[StepUpdate] = None) -> None:
        """Fold fold_step_count - 1 steps.

        With `step_update`, the primary circuit of each fold step is rebuilt
        from the current primary state; otherwise the same circuit is reused.
        """
        self._require("fold", DriverState.CREATED)
        self.state = DriverState.FOLDING
        for step in range(1, self.config.fold_step_count):
            circuit = primary_circuit
            if step_update is not None:
                try:
                    circuit = step_update(step, self.ivc.z_primary)
                except Exception as exc:
                    raise self._fail("fold", exc, step) from exc
                if not isinstance(circuit, StepCircuit):
                    raise self._fail(
                        "fold", TypeError(f"step_update returned {type(circuit).__name__}, not a step circuit"), step
                    )
            try:
                self.ivc.fold_step(self.pp, circuit, secondary_circuit)
            except FoldStepError as exc:
                raise self._fail("fold", exc, exc.step) from exc
            except (FoldingError, ValueError) as exc:
                raise self._fail("fold", exc, step) from exc
            print(f"folding step {step} was successful")

    def verify(self) -> None:
        self._require("verify", DriverState.FOLDING)
        try:
            self.ivc.verify(self.pp)
        except FoldingError as exc:
            raise self._fail("verify", exc) from exc
        print("verification successful")
        self.state = DriverState.VERIFIED

    def run(self, primary_circuit, secondary_circuit, step_update: Optional[StepUpdate] = None) -> IVC:
        """Run every stage; return the verified instance.

        Raises:
            DriverError: Naming the stage that failed
        """
        self.setup_keys()
        self.setup_params(primary_circuit, secondary_circuit)
        self.create(primary_circuit, secondary_circuit)
        self.fold(primary_circuit, secondary_circuit, step_update)
        self.verify()
        print("success")
        return self.ivc
