"""
Shared fixtures for the shuffle-fold tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path so absolute imports work
# (tests/ is inside the repository root, so parent is the root)
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

# Small sizes keep every run well under a second per step
TABLE_K = 4
KEY_K = 6


@pytest.fixture(scope="session")
def primary_key():
    from primitives.commitment import CommitmentKey

    return CommitmentKey.setup("bn256", KEY_K)


@pytest.fixture(scope="session")
def secondary_key():
    from primitives.commitment import CommitmentKey

    return CommitmentKey.setup("grumpkin", KEY_K)


@pytest.fixture
def make_params(primary_key, secondary_key):
    """Build PublicParams for a (primary, secondary) circuit pair."""
    from protocol.params import PublicParams

    def _make(primary_circuit, secondary_circuit, table_k=TABLE_K):
        return PublicParams.new(
            table_k, primary_key, primary_circuit,
            table_k, secondary_key, secondary_circuit,
        )

    return _make
