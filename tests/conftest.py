import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to sys.path
# This ensures that 'storage_trees' is importable from tests without installing
root_dir = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(root_dir))

from storage_trees.nested import StructArray  # noqa: E402


@pytest.fixture
def sample_record():
    """Nested record with int and str names, mixed dtypes and a zero-size marker field."""
    return StructArray({
        1: np.array([1, 2, 3], dtype=np.int64),
        "position": StructArray({
            "x": np.array([0.5, -1.25, 3.0], dtype=np.float32),
            "y": np.array([[1.0, 2.0], [3.0, np.nan]], dtype=np.float64),
        }),
        "valid": np.array([True, False, True]),
        "marker": np.zeros(3, dtype=np.dtype([])),
    })
