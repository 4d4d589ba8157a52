"""BN254 scalar field GF(r) and Grumpkin scalar field GF(q).

Uses galois library for all field arithmetic. Fr and Fq are the field types.
The two curves form a cycle: the Grumpkin scalar field is the BN254 base
field, so the primary step circuit lives in Fr and the secondary in Fq.

The primitive elements are passed explicitly and verification is skipped,
otherwise galois would factor p - 1 at import time.
"""

from typing import List, Union

import galois

# --- Field Construction ---

BN256_SCALAR_PRIME = 0x30644E72E131A029B85045B68181585D2833E84879B9709143E1F593F0000001
GRUMPKIN_SCALAR_PRIME = 0x30644E72E131A029B85045B68181585D97816A916871CA8D3C208C16D87CFD47

Fr = galois.GF(BN256_SCALAR_PRIME, primitive_element=5, verify=False)
"""Scalar field of BN254 (primary circuit)."""

Fq = galois.GF(GRUMPKIN_SCALAR_PRIME, primitive_element=3, verify=False)
"""Scalar field of Grumpkin (secondary circuit)."""

# Serialized width of one field element (both primes are < 2^254)
FIELD_BYTES = 32

FieldLike = Union[int, "galois.FieldArray"]


def to_int_list(values) -> List[int]:
    """Convert a field array (or any iterable of scalars) to plain ints."""
    return [int(v) for v in values]


def element_to_bytes(value: FieldLike) -> bytes:
    """Little-endian fixed-width encoding of one field element."""
    return int(value).to_bytes(FIELD_BYTES, "little")


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for any galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Args:
        values: Galois FieldArray to invert (must all be non-zero)

    Returns:
        Galois FieldArray where result[i] = values[i]^(-1)

    Raises:
        ZeroDivisionError: If any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    # Forward pass: prefix products
    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    inv_total = cumprods[n - 1] ** -1

    # Backward pass: extract individual inverses
    results = field_type.Zeros(n)
    z = inv_total
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results
