"""Constraint system: columns, expressions, shuffle arguments and the shuffle gate."""

from .base import (
    Column,
    ColumnKind,
    ConstraintContext,
    ConstraintSystem,
    Expression,
    Selector,
    ShuffleArgument,
    VirtualCells,
)
from .shuffle import SHUFFLE_NAME, ShuffleChip, ShuffleConfig

__all__ = [
    "Column",
    "ColumnKind",
    "Selector",
    "Expression",
    "ConstraintContext",
    "ConstraintSystem",
    "ShuffleArgument",
    "VirtualCells",
    "ShuffleChip",
    "ShuffleConfig",
    "SHUFFLE_NAME",
]
