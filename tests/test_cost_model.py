import itertools

import networkx as nx
import numpy as np
import pytest

from qaoa_meanfield.cost_model import CostModel, bits_to_index, index_to_bits
from qaoa_meanfield.errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    InvalidEdgeError,
)


def test_evaluate_simple():
    # C(z) = z0 + 0.5 z0 z1
    model = CostModel(num_variables=2, h=[1.0, 0.0], J=[[0.0, 0.5], [0.5, 0.0]])

    # x = 00 -> z = (+1, +1)
    assert model.evaluate("00") == 1.5

    # x = 10 -> z = (-1, +1)
    assert model.evaluate("10") == -1.5

    # x = 01 -> z = (+1, -1)
    assert model.evaluate("01") == 0.5

    # x = 11 -> z = (-1, -1)
    assert model.evaluate("11") == -0.5

    assert model.evaluate([1, 0]) == model.evaluate("10")


def test_evaluate_rejects_bad_bitstrings(four_cycle):
    with pytest.raises(DimensionMismatchError):
        four_cycle.evaluate("010")
    with pytest.raises(InvalidArgumentError):
        four_cycle.evaluate([0, 2, 0, 1])
    with pytest.raises(InvalidArgumentError):
        four_cycle.evaluate("01a1")


def test_evaluate_rejects_fractional_and_nested_bits():
    model = CostModel.from_maxcut_edges(2, [(0, 1)])
    with pytest.raises(InvalidArgumentError):
        model.evaluate([0.7, 0.2])
    with pytest.raises(DimensionMismatchError):
        model.evaluate(np.zeros((2, 2), dtype=int))
    # whole-valued floats are still bits
    assert model.evaluate([1.0, 0.0]) == model.evaluate("10") == 0.5


def test_model_validation():
    with pytest.raises(DimensionMismatchError):
        CostModel(num_variables=3, h=[0.0, 0.0], J=np.zeros((3, 3)))
    with pytest.raises(DimensionMismatchError):
        CostModel(num_variables=2, h=[0.0, 0.0], J=np.zeros((3, 3)))
    with pytest.raises(InvalidArgumentError):
        CostModel(num_variables=2, h=[0.0, 0.0], J=[[0.0, 1.0], [2.0, 0.0]])
    with pytest.raises(InvalidArgumentError):
        CostModel(num_variables=2, h=[0.0, 0.0], J=[[1.0, 0.0], [0.0, 0.0]])
    with pytest.raises(InvalidArgumentError):
        CostModel(num_variables=0, h=[], J=np.zeros((0, 0)))


def test_model_is_read_only(four_cycle):
    with pytest.raises(ValueError):
        four_cycle.J[0, 1] = 3.0
    with pytest.raises(ValueError):
        four_cycle.h[0] = 1.0


def test_maxcut_edges_couplings(four_cycle):
    assert np.all(four_cycle.h == 0.0)
    assert four_cycle.J[0, 1] == -0.5
    assert four_cycle.J[1, 0] == -0.5
    assert four_cycle.J[0, 2] == 0.0
    assert four_cycle.maxcut_offset == 2.0


@pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6])
def test_maxcut_reproduces_cut_count(n):
    rng = np.random.default_rng(n)
    pairs = list(itertools.combinations(range(n), 2))
    edges = [e for e in pairs if rng.random() < 0.6]
    model = CostModel.from_maxcut_edges(n, edges)

    shifts = set()
    for bits in itertools.product([0, 1], repeat=n):
        cut = sum(1 for i, j in edges if bits[i] != bits[j])
        shifts.add(round(model.evaluate(bits) - cut, 12))
        assert model.cut_value(bits) == pytest.approx(cut)

    # evaluate == cut - |E|/2 for every assignment
    assert shifts == {round(-len(edges) / 2, 12)}


def test_maxcut_invalid_edges():
    with pytest.raises(InvalidEdgeError):
        CostModel.from_maxcut_edges(4, [(0, 4)])
    with pytest.raises(InvalidEdgeError):
        CostModel.from_maxcut_edges(4, [(-1, 2)])
    with pytest.raises(InvalidEdgeError):
        CostModel.from_maxcut_edges(4, [(2, 2)])
    with pytest.raises(DimensionMismatchError):
        CostModel.from_maxcut_edges(4, [(0, 1), (1, 2)], weights=[1.0])


def test_from_networkx_matches_edge_list(four_cycle):
    model = CostModel.from_networkx(nx.cycle_graph(4))
    np.testing.assert_array_equal(model.J, four_cycle.J)

    weighted = nx.Graph()
    weighted.add_edge("a", "b", weight=3.0)
    weighted.add_node("c")
    model = CostModel.from_networkx(weighted)
    assert model.num_variables == 3
    assert model.J[0, 1] == -1.5


def test_from_qubo_matches_qubo_values():
    # C(x) = x0 + 2 x1 + 3 x0 x1 + 0.5
    Q = np.array([[1.0, 3.0], [0.0, 2.0]])
    model, offset = CostModel.from_qubo(Q, constant=0.5)

    assert model.evaluate("00") + offset == pytest.approx(0.5)
    assert model.evaluate("10") + offset == pytest.approx(1.5)
    assert model.evaluate("01") + offset == pytest.approx(2.5)
    assert model.evaluate("11") + offset == pytest.approx(6.5)


def test_from_qubo_random_matrix():
    rng = np.random.default_rng(3)
    Q = rng.normal(size=(4, 4))
    model, offset = CostModel.from_qubo(Q, constant=-1.25)

    for bits in itertools.product([0, 1], repeat=4):
        x = np.array(bits)
        assert model.evaluate(bits) + offset == pytest.approx(x @ Q @ x - 1.25)


def test_energies_match_evaluate(random_model):
    costs = random_model.energies()
    assert costs.shape == (16,)
    for k in range(16):
        assert costs[k] == pytest.approx(
            random_model.evaluate(index_to_bits(k, 4))
        )


def test_index_bit_convention():
    assert list(index_to_bits(0b0101, 4)) == [1, 0, 1, 0]
    assert bits_to_index([0, 1, 0, 1]) == 0b1010


def test_best_assignment(four_cycle):
    bits, value = four_cycle.best_assignment(maximize=True)
    assert value == 2.0
    assert bits_to_index(bits) in (0b0101, 0b1010)
    assert four_cycle.cut_value(bits) == 4.0

    _, worst = four_cycle.best_assignment()
    assert worst == -2.0
