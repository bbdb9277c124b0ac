import os
import sys
from datetime import date, timedelta

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from numerix.config import LOTTO_WHEELS
from numerix.models import DrawRecord


def random_history(n_draws, numbers_to_select=6, max_number=90, seed=7, wheels=(), secondary=False):
    """Synthetic uniform draws, most recent first."""
    rng = np.random.default_rng(seed)
    start = date(2024, 1, 1)
    history = []
    for i in range(n_draws):
        def pick():
            return sorted(rng.choice(np.arange(1, max_number + 1), size=numbers_to_select, replace=False).tolist())
        numbers = pick() if not wheels else ()
        history.append(DrawRecord(
            date=start + timedelta(days=3 * (n_draws - i)),
            numbers=numbers,
            jolly=int(rng.integers(1, max_number + 1)) if secondary else None,
            superstar=int(rng.integers(1, max_number + 1)) if secondary else None,
            wheels={w: pick() for w in wheels},
        ))
    return history


@pytest.fixture
def superenalotto_history():
    return random_history(200, secondary=True)


@pytest.fixture
def lotto_history():
    return random_history(60, numbers_to_select=5, wheels=LOTTO_WHEELS, seed=11)
