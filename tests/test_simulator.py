import numpy as np
import pytest

from qaoa_meanfield.cost_model import CostModel
from qaoa_meanfield.errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    NumericalInstabilityError,
    ResourceExhaustedError,
)
from qaoa_meanfield.simulator import QAOASimulator


@pytest.mark.parametrize("p", [1, 2, 3])
def test_probabilities_sum_to_one(random_model, p):
    sim = QAOASimulator()
    rng = np.random.default_rng(p)
    for _ in range(5):
        gammas = rng.uniform(-5.0, 5.0, size=p)
        betas = rng.uniform(-5.0, 5.0, size=p)
        result = sim.run(random_model, gammas, betas)

        assert result.probabilities.shape == (16,)
        assert np.all(result.probabilities >= 0.0)
        assert abs(result.probabilities.sum() - 1.0) < 1e-9


def test_zero_layers_is_uniform(random_model):
    result = QAOASimulator().run(random_model, [], [])

    np.testing.assert_allclose(result.probabilities, np.full(16, 1 / 16), rtol=1e-12)
    assert result.expected_cost == pytest.approx(random_model.energies().mean())


def test_four_cycle_p1_closed_form(four_cycle):
    # ring of 4: <C> = sin(4 beta) sin(2 gamma)
    sim = QAOASimulator()
    for gamma, beta in [(0.5, 0.3), (np.pi / 4, np.pi / 8), (1.1, 2.0)]:
        result = sim.run(four_cycle, [gamma], [beta])
        assert result.expected_cost == pytest.approx(
            np.sin(4 * beta) * np.sin(2 * gamma), abs=1e-12
        )


def test_four_cycle_optimal_angles_favour_max_cuts(four_cycle):
    result = QAOASimulator().run(four_cycle, [np.pi / 4], [np.pi / 8])

    assert result.expected_cost == pytest.approx(1.0)
    assert set(result.most_probable(2)) == {0b0101, 0b1010}
    assert result.probabilities[0b0101] == pytest.approx(result.probabilities[0b1010])


def test_expectation_matches_distribution(random_model):
    sim = QAOASimulator()
    params = [0.4, -0.2, 0.9, 0.1]
    result = sim.run(random_model, params[:2], params[2:])

    manual = float(result.probabilities @ random_model.energies())
    assert sim.expectation(random_model, params) == pytest.approx(manual)


def test_statevector_is_normalized(random_model):
    state = QAOASimulator().statevector(random_model, [0.3, 0.8], [1.2, -0.4])
    assert np.linalg.norm(state) == pytest.approx(1.0)


def test_gradient_matches_finite_differences(random_model):
    sim = QAOASimulator()
    params = np.array([0.31, -0.72, 0.45, 1.13])
    grad = sim.gradient(random_model, params)

    eps = 1e-6
    numeric = np.zeros_like(params)
    for k in range(params.size):
        step = np.zeros_like(params)
        step[k] = eps
        numeric[k] = (
            sim.expectation(random_model, params + step)
            - sim.expectation(random_model, params - step)
        ) / (2 * eps)

    np.testing.assert_allclose(grad, numeric, atol=1e-6)


def test_gradient_vanishes_at_four_cycle_optimum(four_cycle):
    grad = QAOASimulator().gradient(four_cycle, [np.pi / 4, np.pi / 8])
    np.testing.assert_allclose(grad, 0.0, atol=1e-10)


def test_angle_length_mismatch(four_cycle):
    with pytest.raises(DimensionMismatchError):
        QAOASimulator().run(four_cycle, [0.1, 0.2], [0.3])
    with pytest.raises(DimensionMismatchError):
        QAOASimulator().expectation(four_cycle, [0.1, 0.2, 0.3])


def test_non_finite_angles_rejected(four_cycle):
    with pytest.raises(InvalidArgumentError):
        QAOASimulator().run(four_cycle, [np.nan], [0.3])


def test_qubit_ceiling(four_cycle):
    with pytest.raises(ResourceExhaustedError):
        QAOASimulator(max_qubits=3).run(four_cycle, [0.1], [0.2])

    # also catchable as the builtin
    with pytest.raises(MemoryError):
        QAOASimulator(max_qubits=3).gradient(four_cycle, [0.1, 0.2])


def test_qubit_ceiling_from_environment(monkeypatch, four_cycle):
    monkeypatch.setenv("QAOA_MEANFIELD_MAX_QUBITS", "2")
    sim = QAOASimulator()

    assert sim.max_qubits == 2
    with pytest.raises(ResourceExhaustedError):
        sim.run(four_cycle, [0.1], [0.2])


def test_overflowing_phases_are_reported():
    model = CostModel(num_variables=2, h=[1e308, 0.0], J=np.zeros((2, 2)))
    with np.errstate(all="ignore"):
        with pytest.raises(NumericalInstabilityError):
            QAOASimulator().run(model, [10.0], [0.1])


def test_diagonal_level_matches_model_level(random_model):
    sim = QAOASimulator()
    gammas, betas = np.array([0.4, 0.9]), np.array([0.7, 0.2])
    costs = sim.cost_diagonal(random_model)
    n = random_model.num_variables

    np.testing.assert_allclose(costs, random_model.energies())
    np.testing.assert_allclose(
        sim.evolve_diagonal(costs, n, gammas, betas),
        sim.statevector(random_model, gammas, betas),
        atol=1e-12,
    )

    params = np.concatenate([gammas, betas])
    value, grad = sim.value_and_gradient_diagonal(costs, n, gammas, betas)
    assert value == pytest.approx(sim.expectation(random_model, params))
    np.testing.assert_allclose(grad, sim.gradient(random_model, params), atol=1e-12)

    with pytest.raises(ResourceExhaustedError):
        QAOASimulator(max_qubits=n - 1).cost_diagonal(random_model)
