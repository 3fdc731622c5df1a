import pytest

from src.pool.factorize import (
    factorize_cost,
    is_feasible_cost,
    describe_decomposition,
    feasible_costs,
    nearest_feasible_costs,
)


@pytest.mark.parametrize("cost, expected", [
    (1, (0, 0)),
    (2, (1, 0)),
    (3, (0, 1)),
    (12, (2, 1)),
    (192, (6, 1)),
    (1594323, (0, 13)),
])
def test_factorize_feasible(cost, expected):
    assert factorize_cost(cost) == expected


@pytest.mark.parametrize("cost", [5, 7, 10, 14, 100])
def test_factorize_other_prime_factors(cost):
    assert factorize_cost(cost) is None
    assert not is_feasible_cost(cost)


@pytest.mark.parametrize("cost", [0, -6, 12.0, True, "12", None])
def test_factorize_rejects_non_positive_integers(cost):
    assert factorize_cost(cost) is None


def test_factorization_multiplies_back():
    for cost in range(1, 2000):
        factors = factorize_cost(cost)
        if factors is not None:
            twos, threes = factors
            assert 2 ** twos * 3 ** threes == cost


def test_describe_decomposition():
    assert describe_decomposition(6, 1) == "2^6 × 3^1"


def test_feasible_costs_sorted_and_distinct():
    costs = [c['cost'] for c in feasible_costs(13, max_cost=500)]

    assert costs == sorted(set(costs))
    assert costs[:6] == [1, 2, 3, 4, 6, 8]
    assert 192 in costs
    assert all(c <= 500 for c in costs)


def test_feasible_costs_fit_the_coupon():
    for combo in feasible_costs(4):
        assert combo['singles'] + combo['doubles'] + combo['triples'] == 4
        assert combo['cost'] == 2 ** combo['doubles'] * 3 ** combo['triples']


def test_feasible_costs_respect_match_count():
    costs = [c['cost'] for c in feasible_costs(2)]
    assert costs == [1, 2, 3, 4, 6, 9]


def test_nearest_feasible_costs():
    assert nearest_feasible_costs(5) == [4, 6]
    assert nearest_feasible_costs(100) == [96, 108]


def test_nearest_feasible_costs_above_the_maximum():
    assert nearest_feasible_costs(10, match_count=2) == [9]
