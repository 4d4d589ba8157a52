"""Error taxonomy shared by the circuit, engine and driver layers.

Every stage-local operation raises one of these; callers chain the
underlying cause with ``raise ... from exc``.
"""

from typing import Optional


class FoldingError(Exception):
    """Base class for all shuffle-fold failures."""


class KeyCacheError(FoldingError):
    """Cached commitment key is missing, unreadable or does not match the request."""


class ParamsConstructionError(FoldingError):
    """Public parameters cannot be built from the given shapes, sizes and keys."""


class InstanceCreationError(FoldingError):
    """Folding instance cannot be created (arity or layout mismatch, bad z_0)."""


class SynthesisError(FoldingError):
    """A step circuit could not be assigned into its table."""


class FoldStepError(FoldingError):
    """A fold step failed; `step` is the 1-based fold index."""

    def __init__(self, message: str, step: int):
        super().__init__(f"fold step {step}: {message}")
        self.step = step


class VerificationError(FoldingError):
    """The accumulated proof was rejected."""


class DriverError(FoldingError):
    """A driver stage failed or was invoked out of order."""

    def __init__(self, stage: str, message: str, step: Optional[int] = None):
        where = stage if step is None else f"{stage} (step {step})"
        super().__init__(f"{where}: {message}")
        self.stage = stage
        self.step = step
