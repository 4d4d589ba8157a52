"""
Fiat-Shamir transcript over Blake2b.

Absorbs field elements and raw bytes; squeezes challenges as 512-bit digests
reduced into the requested prime field, which keeps the bias negligible for
254-bit moduli. Every squeezed challenge is absorbed back so consecutive
challenges differ.
"""
import hashlib
from typing import Iterable

from primitives.field import FieldLike, element_to_bytes

# Blake2b digest size in bytes (512-bit output, like a Challenge255 squeeze)
DIGEST_SIZE = 64

# Domain separators
_TAG_ELEMENT = b"\x00"
_TAG_BYTES = b"\x01"
_TAG_SQUEEZE = b"\x02"


class Transcript:
    """
    Fiat-Shamir transcript using a running Blake2b state.

    Attributes:
        label: Domain-separation label the state is seeded with
        n_absorbed: Number of absorbed items (elements or byte strings)
        n_squeezed: Number of challenges drawn so far
    """

    def __init__(self, label: bytes = b"shuffle-fold"):
        self.label = label
        self._state = hashlib.blake2b(label, digest_size=DIGEST_SIZE)
        self.n_absorbed = 0
        self.n_squeezed = 0

    def put(self, input_data: Iterable[FieldLike]) -> None:
        """Add field elements to the transcript."""
        for elem in input_data:
            self._add1(elem)

    def put_bytes(self, data: bytes) -> None:
        """Add a length-prefixed byte string (digests, labels)."""
        self._state.update(_TAG_BYTES + len(data).to_bytes(8, "little") + data)
        self.n_absorbed += 1

    def _add1(self, input_elem: FieldLike) -> None:
        self._state.update(_TAG_ELEMENT + element_to_bytes(input_elem))
        self.n_absorbed += 1

    def get_field(self, field: type):
        """Squeeze one challenge in `field` and absorb it back."""
        squeeze = self._state.copy()
        squeeze.update(_TAG_SQUEEZE + self.n_squeezed.to_bytes(8, "little"))
        value = int.from_bytes(squeeze.digest(), "little") % field.order
        self.n_squeezed += 1
        self._add1(value)
        return field(value)

    def get_fields(self, field: type, count: int) -> list:
        """Squeeze `count` challenges in order."""
        return [self.get_field(field) for _ in range(count)]

