import numpy as np
import pytest

from qaoa_meanfield.cost_model import CostModel


@pytest.fixture
def four_cycle():
    # 0-1-2-3-0, max cut 4 with assignments 0101 / 1010
    return CostModel.from_maxcut_edges(4, [(0, 1), (1, 2), (2, 3), (3, 0)])


@pytest.fixture
def random_model():
    rng = np.random.default_rng(7)
    n = 4
    h = rng.normal(size=n)
    upper = np.triu(rng.normal(size=(n, n)), k=1)
    return CostModel(num_variables=n, h=h, J=upper + upper.T)
