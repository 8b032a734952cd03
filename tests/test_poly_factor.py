import pytest
import sympy
from sympy import Poly, Rational, expand, sin, symbols

from factor_config import FactorConfig
from poly_factor import FactorInputError, _self_test, factor, factor_list

x, y, z = symbols("x y z")

CFG = FactorConfig(seed=1)

UNIVARIATE = [
    1 + x - x ** 3,
    (1 + x) ** 3,
    x ** 2 * (x - 3) ** 2 * (x ** 3 - 5 * x + 7),
    x ** 16 + 11 * x ** 4 + 121,
    x ** 37 + 1,
    6 * x ** 4 - 6,
    (2 * x + 3) ** 2 * (x ** 2 + 1),
    x ** 4 + 1,
    4 * x ** 4 + 1,
    x ** 10 - 1,
    -x ** 2 + 1,
]

MULTIVARIATE = [
    (x * y + 1) * (x + y) ** 2,
    x ** 2 - y ** 2,
    (x ** 2 * y + 3 * x - 2) * (x * y ** 2 - y + 5),
    (x + y + z) * (x * y - z + 1),
    y * (x + 1) * (x - y),
    x ** 3 * y ** 2 - y,
    (x + y) ** 3,
    -3 * (x - 2 * y) * (x + y ** 2 + 1),
]

EXAM = [
    "1+x-x^3",
    "1+x^6+x",
    "1-x^6+x",
    "(1+x)^3",
    "(x+1)*(x+4)",
    "x^6-3*x^5+x^4-3*x^3-x^2-3*x+1",
    "(-1+x)^3*(1+x)^3*(1+x^2)",
    "-(-168+20*x-x^2)*(30+x)",
    "x^2*(x-3)^2*(x^3-5*x+7)",
    "-6*x^2*(x-3)",
    "x^16+11*x^4+121",
    "x^8-40*x^6+352*x^4-960*x^2+576",
    "x*(2+x^2)*(1+x+x^3+x^2+x^6+x^5+x^4)*(1+x)^2*(1-x+x^2)^2*(-1+x)",
    "(x+4+x^2-x^3+43*x^4)*(x+1-x^2-3*x^3+4*x^4)",
    "-x^2*(x-1)*(1+x^2)",
    "x",
    "(1+x)*(1+x^2-x^29-x^11-x^25-x^9-x^35+x^20-x^3+x^16-x^15-x-x^13+x^28+x^24-x^33+x^8"
    "-x^19+x^36+x^12-x^27+x^10-x^23+x^18+x^14+x^34-x^31+x^32+x^30-x^5+x^26+x^4+x^22-x^21"
    "-x^7-x^17+x^6)",
    "(1+4*x)*x^2*(1-4*x+16*x^2)*(3+5*x+92*x^3)",
]


def canonical(factors, gens):
    return sorted((str(Poly(g, *gens).monic().as_expr()), k) for g, k in factors)


def check_against_sympy(e):
    gens = sorted(e.free_symbols, key=lambda s: s.sort_key())
    coeff, factors = factor_list(e, CFG)
    ref_coeff, ref_factors = sympy.factor_list(e, *gens)
    assert canonical(factors, gens) == canonical(ref_factors, gens)
    rebuilt = coeff
    for g, k in factors:
        rebuilt *= g ** k
    assert expand(rebuilt - e) == 0
    return coeff, factors


@pytest.mark.parametrize("e", UNIVARIATE)
def test_univariate_matches_reference(e):
    check_against_sympy(e)


@pytest.mark.parametrize("e", MULTIVARIATE)
def test_multivariate_matches_reference(e):
    check_against_sympy(e)


def test_factor_list_normal_form():
    coeff, factors = factor_list(-x ** 2 + 1, CFG)
    assert coeff == -1
    assert dict(factors) == {x - 1: 1, x + 1: 1}

    coeff, factors = factor_list(x ** 37 + 1, CFG)
    assert coeff == 1
    assert len(factors) == 2
    assert (x + 1, 1) in factors


def test_multiplicities_are_reported():
    coeff, factors = factor_list(x ** 2 * (x - 3) ** 2 * (x ** 3 - 5 * x + 7), CFG)
    assert coeff == 1
    assert dict(factors) == {x: 2, x - 3: 2, x ** 3 - 5 * x + 7: 1}


def test_rational_coefficients():
    e = x ** 2 / 4 - 1
    coeff, factors = factor_list(e, CFG)
    assert coeff == Rational(1, 4)
    assert dict(factors) == {x - 2: 1, x + 2: 1}
    assert expand(factor(e, config=CFG) - e) == 0


def test_constants_and_non_polynomials():
    assert factor_list(6) == (6, [])
    assert factor(6) == 6
    assert factor(sin(x), config=CFG) == sin(x)
    with pytest.raises(FactorInputError):
        factor_list(sin(x), CFG)


def test_all_descends_into_subexpressions():
    assert factor(sin(x ** 2 - 1), all=True, config=CFG) == sin((x - 1) * (x + 1))
    assert factor(sin(x) + x ** 2 - 1, all=True, config=CFG) == sin(x) + (x - 1) * (x + 1)
    assert factor(sin(x ** 2 - 1), config=CFG) == sin(x ** 2 - 1)


def test_unsupported_domain_raises():
    with pytest.raises(FactorInputError):
        factor(1.5 * x + 1, config=CFG)


def test_factor_is_a_fixed_point():
    for e in [(x * y + 1) * (x + y) ** 2, x ** 16 + 11 * x ** 4 + 121, 6 * x ** 4 - 6]:
        once = factor(e, config=CFG)
        assert factor(once, config=CFG) == once


def test_result_does_not_depend_on_seed():
    e = (x ** 2 * y + 3 * x - 2) * (x * y ** 2 - y + 5)
    results = {factor(e, config=FactorConfig(seed=s)) for s in range(3)}
    assert len(results) == 1


def test_self_test():
    assert _self_test()["ok"]


@pytest.mark.parametrize("source", EXAM)
def test_exam_set_gives_canonical_product(source):
    ee = expand(sympy.sympify(source))
    answer = factor(ee, config=CFG)
    assert expand(answer) == ee
    assert answer == sympy.factor(ee)


@pytest.mark.parametrize("e", [1 + x - x ** 3, 1 - x ** 6 + x, x ** 6 + x + 1])
def test_irreducible_input_comes_back_unchanged(e):
    assert factor(e, config=CFG) == e


def test_sign_and_content_shapes():
    assert factor(-x ** 2 + 1, config=CFG) == sympy.factor(-x ** 2 + 1)
    assert factor(2 * x + 2, config=CFG) == sympy.factor(2 * x + 2)
    assert factor(-2 * x - 2, config=CFG) == sympy.factor(-2 * x - 2)
