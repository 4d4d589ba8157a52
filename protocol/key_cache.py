"""On-disk cache of commitment keys.

File layout (little-endian):

    magic    4 bytes   b"SFCK"
    version  u8
    tag      16 bytes  curve / algorithm name, NUL padded
    k        u32
    count    u32       == 2^k
    bases    count * 64 bytes  affine x || y per point, 32 bytes each

A cached file is only trusted after validate_key_file has checked its size
and every header field against the requested (name, k), and load_key
has checked every base is a point of the curve. A file that fails
validation is an error; it is never regenerated silently.
"""

import os
import struct
from pathlib import Path
from typing import Union

import numpy as np

from primitives.commitment import MAX_KEY_BITS, CommitmentKey
from primitives.curve import POINT_BYTES, curve_for
from primitives.errors import KeyCacheError

MAGIC = b"SFCK"
VERSION = 2
TAG_SIZE = 16

_HEADER = struct.Struct(f"<4sB{TAG_SIZE}sII")

PathLike = Union[str, Path]


def key_path(cache_dir: PathLike, name: str, k: int) -> Path:
    """Cache file holding the key for (name, k)."""
    return Path(cache_dir) / f"{name}-{k}.ckey"


def expected_file_size(k: int) -> int:
    return _HEADER.size + (1 << k) * POINT_BYTES


def _encode_tag(name: str) -> bytes:
    tag = name.encode()
    if len(tag) > TAG_SIZE:
        raise KeyCacheError(f"key name '{name}' is longer than {TAG_SIZE} bytes")
    return tag.ljust(TAG_SIZE, b"\x00")


def save_key(cache_dir: PathLike, key: CommitmentKey) -> Path:
    """Write `key` to the cache atomically; return the file path."""
    path = key_path(cache_dir, key.name, key.k)
    path.parent.mkdir(parents=True, exist_ok=True)
    header = _HEADER.pack(MAGIC, VERSION, _encode_tag(key.name), key.k, key.size)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "wb") as f:
        f.write(header)
        f.write(key.to_bytes())
    os.replace(tmp, path)
    return path


def validate_key_file(path: PathLike, name: str, k: int) -> None:
    """Check a cache file against the requested (name, k) before it is read.

    Raises:
        KeyCacheError: If the file is missing, truncated, oversized, or its
            header does not match
    """
    path = Path(path)
    if not path.is_file():
        raise KeyCacheError(f"cache file {path} does not exist")

    size = path.stat().st_size
    expected = expected_file_size(k)
    if size != expected:
        raise KeyCacheError(
            f"cache file {path} has {size} bytes, expected {expected} for '{name}' with k={k}"
        )

    try:
        with open(path, "rb") as f:
            header = f.read(_HEADER.size)
    except OSError as exc:
        raise KeyCacheError(f"cannot read cache file {path}: {exc}") from exc
    magic, version, tag, file_k, count = _HEADER.unpack(header)

    if magic != MAGIC:
        raise KeyCacheError(f"cache file {path} is not a commitment key (magic {magic!r})")
    if version != VERSION:
        raise KeyCacheError(f"cache file {path} has version {version}, expected {VERSION}")
    if tag != _encode_tag(name):
        found = tag.rstrip(b"\x00").decode(errors="replace")
        raise KeyCacheError(f"cache file {path} holds a '{found}' key, expected '{name}'")
    if file_k != k or count != 1 << k:
        raise KeyCacheError(
            f"cache file {path} holds k={file_k} ({count} bases), expected k={k}"
        )


def load_key(cache_dir: PathLike, name: str, k: int) -> CommitmentKey:
    """Load and validate the cached key for (name, k)."""
    path = key_path(cache_dir, name, k)
    validate_key_file(path, name, k)

    try:
        with open(path, "rb") as f:
            f.seek(_HEADER.size)
            body = f.read()
    except OSError as exc:
        raise KeyCacheError(f"cannot read cache file {path}: {exc}") from exc

    curve = curve_for(name)
    rows = np.frombuffer(body, dtype=np.uint8).reshape(1 << k, POINT_BYTES)
    points = []
    for i, row in enumerate(rows):
        try:
            points.append(curve.from_bytes(row.tobytes()))
        except ValueError as exc:
            raise KeyCacheError(f"cache file {path}: base {i} is invalid: {exc}") from exc
    return CommitmentKey.from_points(name, k, points)


def load_or_setup_cache(cache_dir: PathLike, name: str, k: int) -> CommitmentKey:
    """Load the key for (name, k) from the cache, or generate and store it.

    Raises:
        KeyCacheError: If the request is invalid or a cached file fails validation
    """
    try:
        curve_for(name)
    except KeyError as exc:
        raise KeyCacheError(str(exc)) from exc
    if not 0 <= k <= MAX_KEY_BITS:
        raise KeyCacheError(f"key size must be in [0, {MAX_KEY_BITS}], got {k}")

    path = key_path(cache_dir, name, k)
    if path.exists():
        return load_key(cache_dir, name, k)

    key = CommitmentKey.setup(name, k)
    try:
        save_key(cache_dir, key)
    except OSError as exc:
        raise KeyCacheError(f"cannot write cache file {path}: {exc}") from exc
    return key
