"""Witness values, cells, regions and the table they are laid out into.

A step circuit assigns cells region by region:

    with layouter.assign_region("load inputs") as region:
        cell = region.assign_advice("input_0", config.input_0, 0, Value.known(7))
        config.s_input.enable(region, 0)

Offsets inside a region are relative. When the ``with`` block exits normally
the region is committed: the floor planner places it at the first row where
every column it touches is free, and its cells are written into the table.
If the block raises, the region is discarded and nothing it assigned is kept.

Cells carry (region index, offset, column) and are resolved to absolute rows
only once their region is committed, so copy constraints can reference cells
of earlier regions.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

from constraints.base import Column, ColumnKind, ConstraintContext, ConstraintSystem, Selector
from primitives.errors import SynthesisError

# --- Type Aliases ---
AbsoluteCell = Tuple[Column, int]
CopyConstraint = Tuple[AbsoluteCell, AbsoluteCell]


# --- Values ---

class Value:
    """A witness value that is either known or an unknown placeholder.

    Unknown values are used when synthesizing a circuit only to learn its
    shape (public parameter construction); every advice value must be known
    when a step is actually proven.
    """

    __slots__ = ("_inner", "_known")

    def __init__(self, inner=None, known: bool = True):
        self._inner = inner
        self._known = known

    @classmethod
    def known(cls, value) -> "Value":
        return cls(value, True)

    @classmethod
    def unknown(cls) -> "Value":
        return cls(None, False)

    @property
    def is_known(self) -> bool:
        return self._known

    def assign(self):
        """Return the inner value, failing for unknown placeholders."""
        if not self._known:
            raise SynthesisError("attempted to assign an unknown value while proving")
        return self._inner

    def __eq__(self, other) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if not (self._known and other._known):
            return self._known == other._known
        return int(self._inner) == int(other._inner)

    def __hash__(self) -> int:
        return hash((self._known, int(self._inner) if self._known else None))

    def __repr__(self) -> str:
        return f"Value({int(self._inner)})" if self._known else "Value(unknown)"


def as_value(value: Union[Value, int]) -> Value:
    return value if isinstance(value, Value) else Value.known(value)


@dataclass(frozen=True)
class Cell:
    """Position of an assigned cell, relative to its region."""
    region_index: int
    row_offset: int
    column: Column


@dataclass(frozen=True)
class AssignedCell:
    """A cell together with the value assigned to it."""
    cell: Cell
    value: Value


@dataclass(frozen=True)
class RegionInfo:
    name: str
    start: int
    n_rows: int


# --- Regions ---

class Region:
    """Staging area for the assignments of one region."""

    def __init__(self, assignment: "Assignment", index: int, name: str):
        self.index = index
        self.name = name
        self._assignment = assignment
        self.advice: Dict[Tuple[Column, int], Value] = {}
        self.fixed: Dict[Tuple[Column, int], int] = {}
        self.selectors: Dict[Tuple[Selector, int], bool] = {}
        self.copies: List[Tuple[Cell, Cell]] = []

    def _check_offset(self, what: str, offset: int) -> None:
        if offset < 0:
            raise SynthesisError(f"region '{self.name}': {what} at negative offset {offset}")

    def assign_advice(self, name: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind is not ColumnKind.ADVICE:
            raise SynthesisError(f"region '{self.name}': {name} targets {column}, not an advice column")
        self._check_offset(name, offset)
        value = as_value(value)
        self.advice[(column, offset)] = value
        return AssignedCell(Cell(self.index, offset, column), value)

    def assign_fixed(self, name: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind is not ColumnKind.FIXED:
            raise SynthesisError(f"region '{self.name}': {name} targets {column}, not a fixed column")
        self._check_offset(name, offset)
        self.fixed[(column, offset)] = int(value)
        return AssignedCell(Cell(self.index, offset, column), Value.known(value))

    def copy_advice(self, name: str, source: AssignedCell, column: Column, offset: int) -> AssignedCell:
        """Assign `source`'s value at (column, offset) and constrain both cells equal."""
        target = self.assign_advice(name, column, offset, source.value)
        self.constrain_equal(source.cell, target.cell)
        return target

    def constrain_equal(self, left: Cell, right: Cell) -> None:
        equality = self._assignment.meta.equality
        for cell in (left, right):
            if cell.column not in equality:
                raise SynthesisError(
                    f"region '{self.name}': {cell.column} does not have equality enabled"
                )
        self.copies.append((left, right))

    def enable_selector(self, selector: Selector, offset: int) -> None:
        self._check_offset(str(selector), offset)
        self.selectors[(selector, offset)] = True

    def used_keys(self) -> List[object]:
        keys = {col for col, _ in self.advice} | {col for col, _ in self.fixed}
        keys |= {sel for sel, _ in self.selectors}
        return sorted(keys, key=str)

    def n_rows(self) -> int:
        offsets = [o for _, o in self.advice] + [o for _, o in self.fixed]
        offsets += [o for _, o in self.selectors]
        return max(offsets) + 1 if offsets else 0


# --- Table ---

@dataclass
class StepTable:
    """A synthesized table of 2^k rows.

    Attributes:
        k: log2 of the row count
        field: Field type of every cell
        advice: Field array per advice column (empty for shape-only synthesis)
        fixed: Field array per fixed column
        selectors: Field array (0/1) per selector
        copies: Copy constraints between absolute cells
        regions: Placement of every committed region
    """
    k: int
    field: type
    advice: list = field(default_factory=list)
    fixed: list = field(default_factory=list)
    selectors: list = field(default_factory=list)
    copies: List[CopyConstraint] = field(default_factory=list)
    regions: List[RegionInfo] = field(default_factory=list)

    @property
    def n_rows(self) -> int:
        return 1 << self.k

    def region(self, name: str) -> RegionInfo:
        for info in self.regions:
            if info.name == name:
                return info
        raise KeyError(f"Region '{name}' not found")

    def cell_value(self, column: Column, row: int):
        if column.kind is ColumnKind.ADVICE:
            return self.advice[column.index][row]
        return self.fixed[column.index][row]


class TableContext(ConstraintContext):
    """ConstraintContext backed by a witness StepTable."""

    def __init__(self, table: StepTable):
        self._table = table

    @property
    def field(self) -> type:
        return self._table.field

    @property
    def n_rows(self) -> int:
        return self._table.n_rows

    def advice(self, index: int):
        return self._table.advice[index]

    def fixed(self, index: int):
        return self._table.fixed[index]

    def selector(self, index: int):
        return self._table.selectors[index]


class Assignment:
    """Collects committed regions into a StepTable.

    With ``witness=False`` advice values are not required (shape synthesis);
    fixed values, selectors and copy constraints are always recorded.
    """

    def __init__(self, meta: ConstraintSystem, k: int, witness: bool = True):
        self.meta = meta
        self.k = k
        self.n_rows = 1 << k
        self.witness = witness
        self._advice = [[0] * self.n_rows for _ in range(meta.num_advice)]
        self._fixed = [[0] * self.n_rows for _ in range(meta.num_fixed)]
        self._selectors = [[0] * self.n_rows for _ in range(meta.num_selectors)]
        self._copies: List[Tuple[Cell, Cell]] = []
        self._region_starts: Dict[int, int] = {}
        self._regions: List[RegionInfo] = []
        self._next_free: Dict[object, int] = {}
        self._n_opened = 0
        self._open: Optional[Region] = None

    def open_region(self, name: str) -> Region:
        if self._open is not None:
            raise SynthesisError(f"region '{name}' opened inside region '{self._open.name}'")
        region = Region(self, self._n_opened, name)
        self._n_opened += 1
        self._open = region
        return region

    def discard_region(self, region: Region) -> None:
        self._open = None

    def commit_region(self, region: Region) -> RegionInfo:
        self._open = None
        keys = region.used_keys()
        n_rows = region.n_rows()
        start = max((self._next_free.get(key, 0) for key in keys), default=0)
        if start + n_rows > self.n_rows:
            raise SynthesisError(
                f"region '{region.name}' needs rows {start}..{start + n_rows - 1} "
                f"but the table has {self.n_rows} rows"
            )

        p = self.meta.field.order
        for (column, offset), value in region.advice.items():
            if self.witness:
                self._advice[column.index][start + offset] = int(value.assign()) % p
        for (column, offset), value in region.fixed.items():
            self._fixed[column.index][start + offset] = value % p
        for (selector, offset) in region.selectors:
            self._selectors[selector.index][start + offset] = 1

        for key in keys:
            self._next_free[key] = start + n_rows
        self._copies.extend(region.copies)
        self._region_starts[region.index] = start
        info = RegionInfo(region.name, start, n_rows)
        self._regions.append(info)
        return info

    def resolve(self, cell: Cell) -> AbsoluteCell:
        """Absolute (column, row) of a cell from a committed region."""
        if cell.region_index not in self._region_starts:
            raise SynthesisError(
                f"cell {cell.column}@{cell.row_offset} belongs to a region that was never committed"
            )
        return cell.column, self._region_starts[cell.region_index] + cell.row_offset

    def finalize(self) -> StepTable:
        field_type = self.meta.field
        copies = [(self.resolve(a), self.resolve(b)) for a, b in self._copies]
        return StepTable(
            k=self.k,
            field=field_type,
            advice=[field_type(col) for col in self._advice] if self.witness else [],
            fixed=[field_type(col) for col in self._fixed],
            selectors=[field_type(col) for col in self._selectors],
            copies=copies,
            regions=list(self._regions),
        )


class Layouter:
    """Hands out regions; each is committed or discarded on scope exit."""

    def __init__(self, assignment: Assignment):
        self._assignment = assignment

    @property
    def field(self) -> type:
        return self._assignment.meta.field

    @contextmanager
    def assign_region(self, name: str) -> Iterator[Region]:
        region = self._assignment.open_region(name)
        try:
            yield region
        except BaseException:
            self._assignment.discard_region(region)
            raise
        self._assignment.commit_region(region)
