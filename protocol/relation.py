"""Step relation: residual vector and row-level satisfaction check.

A step is satisfied when its residual vector is all zero. The vector is the
concatenation of:

1. Per shuffle argument, a grand product over compressed tuples. With
   I_i = theta-compression of the input tuple at row i and S_i the same for
   the shuffle tuple:

       Z[0] = 1
       Z[i+1] = Z[i] * (I_i + gamma) / (S_i + gamma)

   residual rows   Z[i+1] * (S_i + gamma) - Z[i] * (I_i + gamma)   (n rows)
   boundary        Z[n] - 1

   Z[n] = 1 exactly when the two multisets are equal (except with
   negligible probability over theta, gamma).
2. One residual per copy constraint: value(a) - value(b).
3. One residual per z_i cell: io[row] - z_i[j].

check_step performs the same checks directly on the table without
challenges and reports readable failures, like a mock prover.
"""

from collections import Counter
from typing import List, Tuple

from constraints.base import ConstraintContext, ShuffleArgument
from primitives.field import batch_inverse
from protocol.params import CircuitShape
from witness.base import TableContext
from witness.synthesis import SynthesizedStep


def _compress(exprs, ctx: ConstraintContext, theta):
    """theta-compression: ((e0 * theta + e1) * theta + e2) ..."""
    acc = exprs[0].evaluate(ctx)
    for expr in exprs[1:]:
        acc = acc * theta + expr.evaluate(ctx)
    return acc


def _compute_cumulative_product(first, row_values):
    """result[0] = first, result[i+1] = result[i] * row_values[i]."""
    field = type(row_values)
    result = field.Zeros(len(row_values) + 1)
    result[0] = first
    for i in range(len(row_values)):
        result[i + 1] = result[i] * row_values[i]
    return result


def shuffle_grand_product(argument: ShuffleArgument, ctx: ConstraintContext, theta, gamma):
    """Return (Z, numerator, denominator) for one shuffle argument.

    Raises:
        ZeroDivisionError: If some S_i + gamma is zero
    """
    field = ctx.field
    numerator = _compress(argument.inputs, ctx, theta) + gamma
    denominator = _compress(argument.shuffles, ctx, theta) + gamma
    ratio = numerator * batch_inverse(denominator)
    z = _compute_cumulative_product(field(1), ratio)
    return z, numerator, denominator


def compute_residuals(shape: CircuitShape, step: SynthesizedStep, z_in, theta, gamma):
    """Residual vector of one synthesized step, length shape.residual_length()."""
    table = step.table
    field = table.field
    p = field.order
    ctx = TableContext(table)
    residuals: List[int] = []

    for argument in shape.meta.shuffles:
        z, numerator, denominator = shuffle_grand_product(argument, ctx, theta, gamma)
        recurrence = z[1:] * denominator - z[:-1] * numerator
        residuals.extend(int(v) for v in recurrence)
        residuals.append(int(z[-1] - field(1)))

    for (a_col, a_row), (b_col, b_row) in table.copies:
        residuals.append((int(table.cell_value(a_col, a_row)) - int(table.cell_value(b_col, b_row))) % p)

    io = table.advice[shape.layout.io.index]
    for j, row in enumerate(step.z_in_rows):
        residuals.append((int(io[row]) - int(z_in[j])) % p)

    return field(residuals)


def _tuples(exprs, ctx: ConstraintContext) -> List[Tuple[int, ...]]:
    columns = [expr.evaluate(ctx) for expr in exprs]
    return [tuple(int(v) for v in row) for row in zip(*columns)]


def _rows_of(tuples, target) -> List[int]:
    return [i for i, t in enumerate(tuples) if t == target]


def check_step(shape: CircuitShape, step: SynthesizedStep, z_in) -> List[str]:
    """Row-level satisfaction check; returns a description per failure."""
    table = step.table
    ctx = TableContext(table)
    failures: List[str] = []

    for argument in shape.meta.shuffles:
        inputs = _tuples(argument.inputs, ctx)
        shuffled = _tuples(argument.shuffles, ctx)
        missing = Counter(inputs) - Counter(shuffled)
        extra = Counter(shuffled) - Counter(inputs)
        for tup, count in missing.items():
            failures.append(
                f"shuffle '{argument.name}': input tuple {tup} at rows {_rows_of(inputs, tup)} "
                f"is missing {count} time(s) from the shuffled side"
            )
        for tup, count in extra.items():
            failures.append(
                f"shuffle '{argument.name}': shuffled tuple {tup} at rows {_rows_of(shuffled, tup)} "
                f"has {count} unmatched occurrence(s)"
            )

    for (a_col, a_row), (b_col, b_row) in table.copies:
        a = int(table.cell_value(a_col, a_row))
        b = int(table.cell_value(b_col, b_row))
        if a != b:
            failures.append(f"copy constraint {a_col}@{a_row} == {b_col}@{b_row} violated: {a} != {b}")

    io = table.advice[shape.layout.io.index]
    for j, row in enumerate(step.z_in_rows):
        if int(io[row]) != int(z_in[j]):
            failures.append(f"z_i[{j}] at io row {row} is {int(io[row])}, expected {int(z_in[j])}")

    return failures
