from sympy import Poly, symbols

from hensel_lift import LiftResult, hensel_multivar, hensel_univar, lift_exponent, multivariate_bound, univariate_bound
from modular_poly import ModRing, UniPoly
from padic_lift import EvalPoint

x, y = symbols("x y")


def up(ring, *coeffs_high_to_low):
    return UniPoly.from_coeffs(ring, list(reversed(coeffs_high_to_low)))


def test_bounds_and_lift_exponent():
    assert lift_exponent(3, 32) == 4
    assert lift_exponent(101, 1) == 1
    a = Poly(x ** 2 - 1, x)
    assert univariate_bound(a, 1) == 2 * 2
    assert multivariate_bound(Poly(x ** 2 - y ** 2, x, y)) == 2 * 2 ** 4


def test_hensel_univar_monic_split():
    r7 = ModRing(7)
    a = Poly((x + 1) * (x + 4), x)
    res = hensel_univar(a, 7, up(r7, 1, 1), up(r7, 1, 4))
    assert res.lifted
    u, w = res.factors
    assert {u.as_expr(), w.as_expr()} == {x + 1, x + 4}


def test_hensel_univar_non_monic_split():
    r5 = ModRing(5)
    a = Poly((2 * x + 1) * (3 * x + 2), x)
    res = hensel_univar(a, 5, up(r5, 1, 3), up(r5, 1, 4))
    assert res.lifted
    u, w = res.factors
    assert u * w == a
    assert {u.as_expr(), w.as_expr()} == {2 * x + 1, 3 * x + 2}


def test_hensel_univar_wrong_combination_is_soft_failure():
    r5 = ModRing(5)
    # x^2 + 1 = (x + 2)(x + 3) mod 5 but is irreducible over Z
    res = hensel_univar(Poly(x ** 2 + 1, x), 5, up(r5, 1, 2), up(r5, 1, 3))
    assert isinstance(res, LiftResult)
    assert not res.lifted
    assert res.factors == ()
    assert not res


def test_hensel_multivar_difference_of_squares():
    target = Poly(x ** 2 - y ** 2, x, y)
    l = lift_exponent(3, multivariate_bound(target))
    ring = ModRing(3 ** l)
    u = [up(ring, 1, -2), up(ring, 1, 2)]
    one = Poly(1, x, y)
    res = hensel_multivar(target, 0, [EvalPoint(1, 2)], 3, l, u, [one, one])
    assert res.lifted
    assert [f.as_expr() for f in res.factors] == [x - y, x + y]


def test_hensel_multivar_with_leading_coefficients():
    target = Poly((x * y + 1) * (y * x - 2), x, y)
    l = lift_exponent(5, multivariate_bound(target))
    ring = ModRing(5 ** l)
    # at y = 3: (3x + 1)(3x - 2)
    u = [up(ring, 3, 1), up(ring, 3, -2)]
    lcs = [Poly(y, x, y), Poly(y, x, y)]
    res = hensel_multivar(target, 0, [EvalPoint(1, 3)], 5, l, u, lcs)
    assert res.lifted
    assert [f.as_expr() for f in res.factors] == [x * y + 1, x * y - 2]
