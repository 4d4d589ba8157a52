"""Witness assignment: regions, floor planning and step synthesis."""

from .base import (
    Assignment,
    AssignedCell,
    Cell,
    Layouter,
    Region,
    RegionInfo,
    StepTable,
    TableContext,
    Value,
)
from .synthesis import (
    IO_INPUTS_REGION,
    IO_OUTPUTS_REGION,
    StepLayout,
    SynthesizedStep,
    configure_step,
    synthesize_step,
)

__all__ = [
    "Value",
    "Cell",
    "AssignedCell",
    "Region",
    "RegionInfo",
    "Assignment",
    "Layouter",
    "StepTable",
    "TableContext",
    "StepLayout",
    "SynthesizedStep",
    "configure_step",
    "synthesize_step",
    "IO_INPUTS_REGION",
    "IO_OUTPUTS_REGION",
]
