from sympy import Poly, symbols

from modular_poly import ModRing, UniPoly, product
from padic_lift import (
    EvalPoint,
    eea_lift,
    multiterm_eea_lift,
    multivar_diophant,
    univar_diophant,
    univariate_diophant,
)

x, y = symbols("x y")


def up(ring, *coeffs_high_to_low):
    return UniPoly.from_coeffs(ring, list(reversed(coeffs_high_to_low)))


def test_eea_lift_reaches_prime_power():
    ring = ModRing(5 ** 3)
    a, b = up(ring, 1, 1), up(ring, 1, 2)
    s, t = eea_lift(a, b, 5, 3)
    assert s.ring == ring
    assert s * a + t * b == UniPoly.one(ring)


def test_eea_lift_k_one_is_plain_bezout():
    ring = ModRing(7)
    a, b = up(ring, 1, 0, 1), up(ring, 1, 3)
    s, t = eea_lift(a, b, 7, 1)
    assert s * a + t * b == UniPoly.one(ring)


def test_multiterm_eea_lift():
    ring = ModRing(7 ** 2)
    a = [up(ring, 1, 1), up(ring, 1, 2), up(ring, 1, 3)]
    s = multiterm_eea_lift(a, 7, 2)
    total = UniPoly.zero(ring)
    for j, sj in enumerate(s):
        total = total + sj * product((a[i] for i in range(3) if i != j), ring)
    assert total == UniPoly.one(ring)


def _check_diophant(a, sigma, rhs, ring):
    total = UniPoly.zero(ring)
    for j, sj in enumerate(sigma):
        total = total + sj * product((a[i] for i in range(len(a)) if i != j), ring)
    assert total == rhs
    for sj, aj in zip(sigma, a):
        assert sj.degree() < aj.degree()


def test_univar_diophant_three_factors():
    ring = ModRing(7 ** 2)
    a = [up(ring, 1, 1), up(ring, 1, 2), up(ring, 1, 0, 1)]
    sigma = univar_diophant(a, 2, 7, 2)
    _check_diophant(a, sigma, UniPoly.monomial(ring, 1, 2), ring)


def test_univariate_diophant_two_factors():
    ring = ModRing(5 ** 4)
    a = [up(ring, 1, 1), up(ring, 2, 3)]
    rhs = up(ring, 7, 11)
    sigma = univariate_diophant(a, rhs, 5, 4)
    _check_diophant(a, sigma, rhs, ring)


def test_multivar_diophant_recovers_polynomial_coefficients():
    # sigma0 * (x - y) + sigma1 * (x + y) = x*y - y^2 + x + y  has sigma = (y, 1)
    a = [Poly(x + y, x, y), Poly(x - y, x, y)]
    c = Poly(x * y - y ** 2 + x + y, x, y)
    sigma = multivar_diophant(a, c, [EvalPoint(1, 2)], 0, 2, 5, 3)
    assert [s.as_expr() for s in sigma] == [y, 1]
