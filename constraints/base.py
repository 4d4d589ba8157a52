"""Constraint system: columns, selectors, expressions and shuffle arguments.

A ConstraintSystem is filled once per circuit shape by a step circuit's
``configure``. Constraints are declared as Expression trees over column
queries; the engine evaluates them through a ConstraintContext that resolves
each query to the full column of a synthesized table.

Example:
    meta = ConstraintSystem(Fr)
    a = meta.advice_column()
    q = meta.complex_selector()
    meta.shuffle("copy", lambda vc: [(vc.query_selector(q) * vc.query_advice(a), ...)])
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Sequence, Tuple


class ColumnKind(Enum):
    ADVICE = "advice"
    FIXED = "fixed"


@dataclass(frozen=True)
class Column:
    """Handle to an advice or fixed column."""
    kind: ColumnKind
    index: int

    def __str__(self) -> str:
        return f"{self.kind.value}[{self.index}]"


@dataclass(frozen=True)
class Selector:
    """Handle to a boolean per-row selector column."""
    index: int

    def enable(self, region, offset: int) -> None:
        """Enable this selector at `offset` within `region`."""
        region.enable_selector(self, offset)

    def __str__(self) -> str:
        return f"selector[{self.index}]"


# --- Evaluation Context ---

class ConstraintContext(ABC):
    """Uniform access to column values during expression evaluation."""

    @property
    @abstractmethod
    def field(self) -> type:
        pass

    @property
    @abstractmethod
    def n_rows(self) -> int:
        pass

    @abstractmethod
    def advice(self, index: int):
        """Advice column `index` over all rows."""
        pass

    @abstractmethod
    def fixed(self, index: int):
        """Fixed column `index` over all rows."""
        pass

    @abstractmethod
    def selector(self, index: int):
        """Selector column `index` over all rows (0/1 field elements)."""
        pass


# --- Expressions ---

class Expression(ABC):
    """Polynomial expression over the current row of the table."""

    @abstractmethod
    def evaluate(self, ctx: ConstraintContext):
        """Evaluate at every row, returning a field array of length n_rows."""
        pass

    @abstractmethod
    def identifier(self) -> str:
        """Stable textual form; part of the circuit shape digest."""
        pass

    def __add__(self, other: "Expression") -> "Expression":
        return Sum(self, _as_expression(other))

    def __sub__(self, other: "Expression") -> "Expression":
        return Sum(self, Negated(_as_expression(other)))

    def __mul__(self, other: "Expression") -> "Expression":
        return Product(self, _as_expression(other))

    def __neg__(self) -> "Expression":
        return Negated(self)

    def __repr__(self) -> str:
        return self.identifier()


def _as_expression(value) -> Expression:
    if isinstance(value, Expression):
        return value
    if isinstance(value, int):
        return Constant(value)
    raise TypeError(f"cannot use {type(value).__name__} in an expression")


@dataclass(frozen=True, repr=False)
class Constant(Expression):
    value: int

    def evaluate(self, ctx):
        p = ctx.field.order
        return ctx.field([self.value % p] * ctx.n_rows)

    def identifier(self) -> str:
        return str(self.value)


@dataclass(frozen=True, repr=False)
class ColumnQuery(Expression):
    column: Column

    def evaluate(self, ctx):
        if self.column.kind is ColumnKind.ADVICE:
            return ctx.advice(self.column.index)
        return ctx.fixed(self.column.index)

    def identifier(self) -> str:
        return str(self.column)


@dataclass(frozen=True, repr=False)
class SelectorQuery(Expression):
    selector: Selector

    def evaluate(self, ctx):
        return ctx.selector(self.selector.index)

    def identifier(self) -> str:
        return str(self.selector)


@dataclass(frozen=True, repr=False)
class Sum(Expression):
    left: Expression
    right: Expression

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) + self.right.evaluate(ctx)

    def identifier(self) -> str:
        return f"({self.left.identifier()} + {self.right.identifier()})"


@dataclass(frozen=True, repr=False)
class Product(Expression):
    left: Expression
    right: Expression

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) * self.right.evaluate(ctx)

    def identifier(self) -> str:
        return f"({self.left.identifier()} * {self.right.identifier()})"


@dataclass(frozen=True, repr=False)
class Negated(Expression):
    inner: Expression

    def evaluate(self, ctx):
        return -self.inner.evaluate(ctx)

    def identifier(self) -> str:
        return f"-{self.inner.identifier()}"


class VirtualCells:
    """Query builder handed to constraint closures."""

    def __init__(self, meta: "ConstraintSystem"):
        self._meta = meta

    def query_advice(self, column: Column) -> Expression:
        if column.kind is not ColumnKind.ADVICE:
            raise ValueError(f"{column} is not an advice column")
        return ColumnQuery(column)

    def query_fixed(self, column: Column) -> Expression:
        if column.kind is not ColumnKind.FIXED:
            raise ValueError(f"{column} is not a fixed column")
        return ColumnQuery(column)

    def query_selector(self, selector: Selector) -> Expression:
        if selector.index >= self._meta.num_selectors:
            raise ValueError(f"{selector} was not allocated by this constraint system")
        return SelectorQuery(selector)


@dataclass(frozen=True)
class ShuffleArgument:
    """Multiset equality between the `inputs` tuples and the `shuffles` tuples.

    Row i contributes the tuple (inputs[0][i], inputs[1][i], ...) to the left
    multiset and (shuffles[0][i], ...) to the right one. Row order is free.
    """
    name: str
    inputs: Tuple[Expression, ...]
    shuffles: Tuple[Expression, ...]

    def identifier(self) -> str:
        ins = ", ".join(e.identifier() for e in self.inputs)
        shs = ", ".join(e.identifier() for e in self.shuffles)
        return f"shuffle {self.name}: [{ins}] ~ [{shs}]"


# --- Constraint System ---

class ConstraintSystem:
    """Column allocator and constraint registry for one circuit shape."""

    def __init__(self, field: type):
        self.field = field
        self.num_advice = 0
        self.num_fixed = 0
        self.num_selectors = 0
        self.equality: List[Column] = []
        self.shuffles: List[ShuffleArgument] = []

    def advice_column(self) -> Column:
        column = Column(ColumnKind.ADVICE, self.num_advice)
        self.num_advice += 1
        return column

    def fixed_column(self) -> Column:
        column = Column(ColumnKind.FIXED, self.num_fixed)
        self.num_fixed += 1
        return column

    def selector(self) -> Selector:
        selector = Selector(self.num_selectors)
        self.num_selectors += 1
        return selector

    def complex_selector(self) -> Selector:
        """Selector usable inside lookup and shuffle expressions."""
        return self.selector()

    def enable_equality(self, column: Column) -> None:
        """Allow copy constraints on `column`."""
        if column not in self.equality:
            self.equality.append(column)

    def shuffle(
        self,
        name: str,
        build: Callable[[VirtualCells], Sequence[Tuple[Expression, Expression]]],
    ) -> None:
        """Register a shuffle argument from (input, shuffle) expression pairs."""
        pairs = list(build(VirtualCells(self)))
        if not pairs:
            raise ValueError(f"shuffle '{name}' needs at least one expression pair")
        self.shuffles.append(ShuffleArgument(
            name=name,
            inputs=tuple(inp for inp, _ in pairs),
            shuffles=tuple(shuf for _, shuf in pairs),
        ))

    def describe(self) -> List[str]:
        """Textual description of columns and constraints (shape digest input)."""
        lines = [
            f"advice={self.num_advice}",
            f"fixed={self.num_fixed}",
            f"selectors={self.num_selectors}",
            "equality=" + ",".join(str(c) for c in self.equality),
        ]
        lines.extend(s.identifier() for s in self.shuffles)
        return lines
