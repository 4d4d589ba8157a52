"""BN254 G1 and Grumpkin as groups of commitments.

The two curves form a cycle. A BN254 G1 point has coordinates in Fq and
order |Fr|; a Grumpkin point has coordinates in Fr and order |Fq|. So a
commitment to an Fr vector is a BN254 point and a commitment to an Fq vector
is a Grumpkin point.

Point arithmetic is py_ecc's Jacobian formulas from `optimized_bn128`. They
only use the coordinate field class and the curve constant b, so Grumpkin
(y^2 = x^3 - 17 over Fr) reuses them with its own coordinate field class.
galois supplies square roots for hashing to the curve.

Points are encoded as affine x || y, each 32 bytes little-endian; the point
at infinity is 64 zero bytes (no point on either curve has x = y = 0).
"""

import hashlib
from dataclasses import dataclass

import numpy as np
from py_ecc.fields.optimized_field_elements import FQ as OptimizedFQ
from py_ecc.optimized_bn128 import FQ as BN254FQ
from py_ecc.optimized_bn128 import add, eq, is_inf, is_on_curve, multiply, normalize

from primitives.field import BN256_SCALAR_PRIME, FIELD_BYTES, Fq, Fr

POINT_BYTES = 2 * FIELD_BYTES

# Jacobian (x, y, z) tuple of py_ecc field elements
Point = tuple


class GrumpkinFQ(OptimizedFQ):
    """Grumpkin coordinate field (the BN254 scalar field) in py_ecc form."""
    field_modulus = BN256_SCALAR_PRIME


@dataclass(frozen=True)
class Curve:
    """A prime-order short Weierstrass curve y^2 = x^3 + b.

    Attributes:
        name: Curve tag (e.g. 'bn256', 'grumpkin')
        b: Curve constant
        coordinates: py_ecc field class of the coordinates
        base_field: galois field of the coordinates
        scalar_field: galois field of the scalars (the group order)
    """
    name: str
    b: int
    coordinates: type
    base_field: type
    scalar_field: type

    @property
    def identity(self) -> Point:
        return (self.coordinates.one(), self.coordinates.one(), self.coordinates.zero())

    def point(self, x: int, y: int) -> Point:
        return (self.coordinates(x), self.coordinates(y), self.coordinates.one())

    def is_on_curve(self, p: Point) -> bool:
        return is_on_curve(p, self.coordinates(self.b))

    def add(self, p: Point, q: Point) -> Point:
        return add(p, q)

    def scale(self, p: Point, scalar) -> Point:
        return multiply(p, int(scalar) % self.scalar_field.order)

    def eq(self, p: Point, q: Point) -> bool:
        return eq(p, q)

    def msm(self, points, scalars) -> Point:
        """sum(points[i] * scalars[i]); zero scalars are skipped."""
        if len(points) != len(scalars):
            raise ValueError(f"Dimension mismatch: {len(points)} vs {len(scalars)}")
        acc = self.identity
        for p, s in zip(points, scalars):
            s = int(s) % self.scalar_field.order
            if s:
                acc = add(acc, multiply(p, s))
        return acc

    def hash_to_point(self, tag: bytes) -> Point:
        """Try-and-increment: the first x = H(tag, ctr) with x^3 + b square.

        The discrete log of the result to any other point is unknown.
        """
        gf = self.base_field
        b = gf(self.b % gf.order)
        counter = 0
        while True:
            h = hashlib.blake2b(digest_size=64, person=b"ckey-h2c")
            h.update(tag)
            h.update(counter.to_bytes(4, "little"))
            x = gf(int.from_bytes(h.digest(), "little") % gf.order)
            rhs = x ** 3 + b
            if rhs.is_square():
                y = np.sqrt(gf([int(rhs)]))[0]
                return self.point(int(x), int(y))
            counter += 1

    def to_bytes(self, p: Point) -> bytes:
        if is_inf(p):
            return bytes(POINT_BYTES)
        x, y = normalize(p)
        return x.n.to_bytes(FIELD_BYTES, "little") + y.n.to_bytes(FIELD_BYTES, "little")

    def from_bytes(self, data: bytes) -> Point:
        """Decode and check one point.

        Raises:
            ValueError: If a coordinate is out of range or the point is off the curve
        """
        if len(data) != POINT_BYTES:
            raise ValueError(f"expected {POINT_BYTES} bytes, got {len(data)}")
        if data == bytes(POINT_BYTES):
            return self.identity
        x = int.from_bytes(data[:FIELD_BYTES], "little")
        y = int.from_bytes(data[FIELD_BYTES:], "little")
        p = self.base_field.order
        if x >= p or y >= p:
            raise ValueError(f"coordinate outside the {self.name} base field")
        point = self.point(x, y)
        if not self.is_on_curve(point):
            raise ValueError(f"({x:#x}, {y:#x}) is not on {self.name}")
        return point


BN256 = Curve(name="bn256", b=3, coordinates=BN254FQ, base_field=Fq, scalar_field=Fr)
GRUMPKIN = Curve(name="grumpkin", b=-17, coordinates=GrumpkinFQ, base_field=Fr, scalar_field=Fq)

CURVES = {
    "bn256": BN256,
    "grumpkin": GRUMPKIN,
}


def curve_for(name: str) -> Curve:
    """Return the curve for a key name.

    Raises:
        KeyError: If the curve is unknown
    """
    if name not in CURVES:
        raise KeyError(f"Unknown curve '{name}'. Available: {list(CURVES.keys())}")
    return CURVES[name]
