import numpy as np
import pytest

from qaoa_meanfield.landscape import energy_landscape_p1


def test_landscape_matches_closed_form(four_cycle):
    G, B, E = energy_landscape_p1(four_cycle, num_points=9)

    assert G.shape == B.shape == E.shape == (9, 9)
    np.testing.assert_allclose(E, np.sin(4 * B) * np.sin(2 * G), atol=1e-12)


def test_landscape_peak(four_cycle):
    G, B, E = energy_landscape_p1(
        four_cycle, gamma_range=(0.0, np.pi / 2), beta_range=(0.0, np.pi / 4), num_points=5
    )
    i, j = np.unravel_index(np.argmax(E), E.shape)

    assert G[i, j] == pytest.approx(np.pi / 4)
    assert B[i, j] == pytest.approx(np.pi / 8)
    assert E[i, j] == pytest.approx(1.0)
