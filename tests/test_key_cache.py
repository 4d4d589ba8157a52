"""Tests for the on-disk commitment key cache."""

import pytest

from primitives.commitment import CommitmentKey
from primitives.errors import KeyCacheError
from protocol import key_cache
from protocol.key_cache import (
    VERSION,
    expected_file_size,
    key_path,
    load_key,
    load_or_setup_cache,
    save_key,
    validate_key_file,
)

K = 3


def test_round_trip(tmp_path):
    generated = load_or_setup_cache(tmp_path, "bn256", K)
    path = key_path(tmp_path, "bn256", K)
    assert path.is_file()
    assert path.stat().st_size == expected_file_size(K)

    loaded = load_or_setup_cache(tmp_path, "bn256", K)
    assert loaded == generated
    assert loaded.to_bytes() == generated.to_bytes()


def test_classmethod_entry_point(tmp_path):
    key = CommitmentKey.load_or_setup_cache(tmp_path, "grumpkin", K)
    assert key == CommitmentKey.setup("grumpkin", K)
    assert key_path(tmp_path, "grumpkin", K).is_file()


def test_no_temporary_file_left(tmp_path):
    load_or_setup_cache(tmp_path, "bn256", K)
    assert sorted(p.name for p in tmp_path.iterdir()) == [f"bn256-{K}.ckey"]


def test_size_mismatch_is_fatal(tmp_path):
    path = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    data = path.read_bytes()
    path.write_bytes(data[:-32])
    with pytest.raises(KeyCacheError, match="bytes, expected"):
        load_or_setup_cache(tmp_path, "bn256", K)
    # Never regenerated
    assert path.stat().st_size == len(data) - 32


def test_bad_magic(tmp_path):
    path = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    data = bytearray(path.read_bytes())
    data[:4] = b"XXXX"
    path.write_bytes(bytes(data))
    with pytest.raises(KeyCacheError, match="not a commitment key"):
        validate_key_file(path, "bn256", K)


def test_tag_mismatch(tmp_path):
    src = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    src.rename(key_path(tmp_path, "grumpkin", K))
    with pytest.raises(KeyCacheError, match="holds a 'bn256' key"):
        load_key(tmp_path, "grumpkin", K)


def test_k_mismatch(tmp_path):
    """A file renamed to another k fails on size before anything is read."""
    src = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    src.rename(key_path(tmp_path, "bn256", K + 1))
    with pytest.raises(KeyCacheError):
        load_key(tmp_path, "bn256", K + 1)


def test_out_of_range_base(tmp_path):
    path = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    data = bytearray(path.read_bytes())
    data[-64:] = b"\xff" * 64
    path.write_bytes(bytes(data))
    with pytest.raises(KeyCacheError, match="outside"):
        load_key(tmp_path, "bn256", K)


def test_missing_file(tmp_path):
    with pytest.raises(KeyCacheError, match="does not exist"):
        validate_key_file(key_path(tmp_path, "bn256", K), "bn256", K)


def test_unknown_curve(tmp_path):
    with pytest.raises(KeyCacheError, match="Unknown curve"):
        load_or_setup_cache(tmp_path, "pallas", K)


def test_invalid_k(tmp_path):
    with pytest.raises(KeyCacheError, match="key size"):
        load_or_setup_cache(tmp_path, "bn256", -1)


def test_creates_cache_directory(tmp_path):
    cache = tmp_path / "nested" / "cache"
    load_or_setup_cache(cache, "grumpkin", K)
    assert key_path(cache, "grumpkin", K).is_file()


def test_off_curve_base(tmp_path):
    path = save_key(tmp_path, CommitmentKey.setup("grumpkin", K))
    data = bytearray(path.read_bytes())
    data[-64:] = (1).to_bytes(32, "little") + (1).to_bytes(32, "little")
    path.write_bytes(bytes(data))
    with pytest.raises(KeyCacheError, match="base 7 is invalid.*not on grumpkin"):
        load_key(tmp_path, "grumpkin", K)


def test_old_version_rejected(tmp_path):
    path = save_key(tmp_path, CommitmentKey.setup("bn256", K))
    data = bytearray(path.read_bytes())
    data[4] = VERSION - 1
    path.write_bytes(bytes(data))
    with pytest.raises(KeyCacheError, match=f"expected {VERSION}"):
        load_or_setup_cache(tmp_path, "bn256", K)


def test_unreadable_file_is_cache_error(tmp_path, monkeypatch):
    save_key(tmp_path, CommitmentKey.setup("bn256", K))

    def denied(*args, **kwargs):
        raise PermissionError("permission denied")

    monkeypatch.setattr(key_cache, "open", denied, raising=False)
    with pytest.raises(KeyCacheError, match="cannot read cache file.*permission denied"):
        load_or_setup_cache(tmp_path, "bn256", K)
