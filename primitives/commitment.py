"""Commitment key and Pedersen vector commitment.

A commitment key of size k holds 2^k points of its curve, each hashed to the
curve from (name, k, index), so no relation between them is known. The
commitment of a vector v is the multi-scalar multiplication
sum(v[i] * bases[i]), a single curve point. It is additively homomorphic,
which is what folding relies on:

    commit(a + r * b) == commit(a) + r * commit(b)

Bases are derived deterministically, so a key generated on one machine and a
key loaded from any cache agree bit for bit. The commitment is binding under
the discrete log assumption on the curve; it is not hiding.
"""

import math
from dataclasses import dataclass, field
from typing import List

from primitives.curve import Curve, Point, curve_for

# Largest supported key size (2^24 bases)
MAX_KEY_BITS = 24


@dataclass(frozen=True)
class CommitmentKey:
    """Bases for committing to vectors of up to 2^k field elements.

    Attributes:
        name: Algorithm / curve tag (e.g. 'bn256', 'grumpkin')
        k: log2 of the number of bases
        bases: 2^k curve points
    """
    name: str
    k: int
    bases: tuple = field(repr=False, compare=False)

    @property
    def curve(self) -> Curve:
        return curve_for(self.name)

    @property
    def scalar_field(self) -> type:
        return self.curve.scalar_field

    @property
    def size(self) -> int:
        return 1 << self.k

    @classmethod
    def setup(cls, name: str, k: int) -> "CommitmentKey":
        """Generate the key for (name, k)."""
        if not 0 <= k <= MAX_KEY_BITS:
            raise ValueError(f"key size must be in [0, {MAX_KEY_BITS}], got {k}")
        curve = curve_for(name)
        bases = tuple(curve.hash_to_point(f"{name}:{k}:{i}".encode()) for i in range(1 << k))
        return cls(name=name, k=k, bases=bases)

    @classmethod
    def from_points(cls, name: str, k: int, points: List[Point]) -> "CommitmentKey":
        """Rebuild a key from already-validated base points."""
        curve_for(name)
        if len(points) != 1 << k:
            raise ValueError(f"expected {1 << k} bases, got {len(points)}")
        return cls(name=name, k=k, bases=tuple(points))

    @classmethod
    def load_or_setup_cache(cls, path, name: str, k: int) -> "CommitmentKey":
        """Load the key for (name, k) from the cache at `path`, generating it on a miss."""
        from protocol.key_cache import load_or_setup_cache

        return load_or_setup_cache(path, name, k)

    def commit(self, values) -> Point:
        """Commit to a vector of at most 2^k field elements."""
        if len(values) > self.size:
            raise ValueError(
                f"vector of length {len(values)} exceeds commitment key size 2^{self.k}"
            )
        return self.curve.msm(self.bases[:len(values)], values)

    def commit_chunks(self, values) -> List[Point]:
        """Commit to an arbitrary-length vector in 2^k-sized chunks."""
        n_chunks = max(1, math.ceil(len(values) / self.size))
        return [self.commit(values[i * self.size:(i + 1) * self.size]) for i in range(n_chunks)]

    def to_bytes(self) -> bytes:
        """Concatenated point encodings of the bases."""
        curve = self.curve
        return b"".join(curve.to_bytes(b) for b in self.bases)
