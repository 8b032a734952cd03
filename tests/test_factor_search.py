import pytest
from sympy import Poly, symbols

from factor_config import FactorConfig
from factor_search import (
    Partition,
    PrimeCacheExhaustedError,
    SearchExhaustedError,
    SearchFrame,
    check_divisors,
    choose_prime,
    factor_integer_poly,
    factor_multivariate,
    factor_univariate,
    next_prime,
)

x, y, z = symbols("x y z")


def as_set(factors):
    return {f.as_expr() for f in factors}


def test_next_prime_and_limits():
    assert next_prime(2) == 3
    assert next_prime(3) == 5
    assert next_prime(7) == 11
    assert next_prime(100) == 101
    assert next_prime(1000) == 1009
    with pytest.raises(PrimeCacheExhaustedError):
        next_prime(10, limit=10)
    with pytest.raises(PrimeCacheExhaustedError):
        next_prime(14, limit=16)


def test_partition_enumerates_all_splits_once():
    part = Partition(3)
    seen = [[part[i] for i in range(3)]]
    while part.next():
        seen.append([part[i] for i in range(3)])
    assert seen == [[0, 1, 1], [0, 1, 0], [0, 0, 1]]

    part = Partition(4)
    count = 1
    while part.next():
        assert part.size_first() + part.size_second() == 4
        assert part.size_second() > 0
        count += 1
    assert count == 2 ** 3 - 1


def test_partition_groups():
    part = Partition(3)
    part.next()
    assert part.groups(["a", "b", "c"]) == (["a", "c"], ["b"])
    with pytest.raises(ValueError):
        Partition(1)


def test_search_frame_is_mutable_work_item():
    frame = SearchFrame(Poly(x, x))
    frame.factors.append("f")
    assert frame.factors == ["f"]
    assert SearchFrame(Poly(x, x)).factors == []


def test_check_divisors():
    assert check_divisors(1, [2, 3]) == [1, 2, 3]
    assert check_divisors(1, [2, 4]) is None
    assert check_divisors(6, [3]) is None
    assert check_divisors(2, [6, 5]) == [2, 3, 5]


def test_choose_prime_skips_bad_primes():
    config = FactorConfig()
    # 3 divides the leading coefficient
    p, modpoly = choose_prime(Poly(3 * x ** 2 + 1, x), 0, config)
    assert p == 5
    assert modpoly.degree() == 2
    p, _ = choose_prime(Poly(x ** 2 - 4 * x - 1, x), 0, config)
    assert p == 3


def test_factor_univariate_basic():
    coeff, factors = factor_univariate(Poly(x ** 2 - 1, x))
    assert coeff == 1
    assert as_set(factors) == {x - 1, x + 1}

    coeff, factors = factor_univariate(Poly(-2 * x ** 2 + 2, x))
    assert coeff == -2
    assert as_set(factors) == {x - 1, x + 1}


def test_factor_univariate_strips_monomial_and_keeps_irreducible():
    coeff, factors = factor_univariate(Poly(x ** 4 + x ** 2 + x, x))
    assert coeff == 1
    assert as_set(factors) == {x, x ** 3 + x + 1}


def test_factor_univariate_many_modular_factors():
    f = Poly((x - 1) * (x + 2) * (x - 3) * (x + 4) * (2 * x + 5), x)
    coeff, factors = factor_univariate(f)
    assert coeff == 1
    assert as_set(factors) == {x - 1, x + 2, x - 3, x + 4, 2 * x + 5}


def test_factor_univariate_rejects_repeated_factor():
    with pytest.raises(ValueError):
        factor_univariate(Poly((x + 1) ** 2 * (x + 3), x))


def test_factor_multivariate_two_variables():
    f = Poly((x * y + 1) * (x - y), x, y)
    coeff, factors = factor_multivariate(f, FactorConfig(seed=7))
    assert coeff == 1
    assert as_set(factors) == {x * y + 1, x - y}


def test_factor_multivariate_content_in_main_variable():
    f = Poly(y * (x + 1) * (x - y), x, y)
    coeff, factors = factor_multivariate(f, FactorConfig(seed=3))
    assert coeff == 1
    assert as_set(factors) == {y, x + 1, x - y}


def test_factor_multivariate_three_variables():
    f = Poly(-(x + y + z) * (x * y - z + 1), x, y, z)
    coeff, factors = factor_multivariate(f, FactorConfig(seed=11))
    assert coeff == -1
    assert as_set(factors) == {x + y + z, x * y - z + 1}


def test_factor_multivariate_irreducible():
    f = Poly(x ** 2 + y ** 2 + 1, x, y)
    coeff, factors = factor_multivariate(f, FactorConfig(seed=5))
    assert coeff == 1
    assert as_set(factors) == {x ** 2 + y ** 2 + 1}


def test_factor_integer_poly_multiplicities():
    f = Poly(6 * (x - y) ** 2 * (x + 1), x, y)
    coeff, parts = factor_integer_poly(f, FactorConfig(seed=2))
    assert coeff == 6
    assert {(g.as_expr(), k) for g, k in parts} == {(x + 1, 1), (x - y, 2)}


def test_explicit_evaluation_budget_is_a_hard_error():
    with pytest.raises(SearchExhaustedError):
        factor_multivariate(Poly(x ** 2 - y ** 2, x, y), FactorConfig(seed=0, max_rounds=1))


def test_evaluation_rounds_are_unbounded_by_default():
    assert FactorConfig().max_rounds is None
    coeff, factors = factor_multivariate(Poly(x ** 2 - y ** 2, x, y), FactorConfig(seed=0))
    assert coeff == 1
    assert as_set(factors) == {x - y, x + y}
