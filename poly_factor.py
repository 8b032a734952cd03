#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Exact Polynomial Factorization over Z / Q: 公开入口
===============================================================================

factor(expr)       -> unit * content * prod(irreducible)^multiplicity (sympy 表达式)
factor_list(expr)  -> (coefficient, [(irreducible, multiplicity), ...])

管线:
  sympify -> Poly (ZZ; QQ 先清分母) -> sympy sqf_list (外层无平方)
  -> factor_search (Berlekamp + Hensel + 组合/求值点搜索) -> 回验 -> 组装表达式

工程红线:
  1) 非多项式输入原样返回; factor(e, all=True) 才深入子表达式
  2) 系数域不是 ZZ/QQ (浮点, 代数扩张, 有限域) 直接 FactorInputError
  3) 结果必须乘回等于输入, 否则 FactorVerificationError (不静默返回错误结果)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sympy import Add, Expr, Integer, Mul, Poly, Pow, Rational, sympify

import expr_bridge as eb
from factor_config import FactorConfig, configure_logging
from factor_search import factor_integer_poly
from modular_poly import PolyFactorError

_logger = logging.getLogger(__name__)


class FactorInputError(ValueError):
    """输入是多项式, 但系数域不受支持."""


class FactorVerificationError(PolyFactorError):
    """分解结果乘回后不等于输入."""


# =============================================================================
# 输入分类
# =============================================================================

def _polynomial_symbols(expr: Expr) -> Optional[List]:
    """expr 是 (至少含一个符号的) 多项式时返回排序后的符号表, 否则 None."""
    syms = sorted(expr.free_symbols, key=lambda s: s.sort_key())
    if not syms:
        return None
    if not expr.is_polynomial(*syms):
        return None
    return syms


def _integer_poly(expr: Expr, syms: List) -> Tuple[Integer, Poly]:
    """expr == P / denom, P 整系数."""
    P = Poly(expr, *syms)
    dom = P.get_domain()
    if dom.is_ZZ:
        return Integer(1), P
    if dom.is_QQ:
        denom, P = P.clear_denoms(convert=True)
        return Integer(denom), P
    raise FactorInputError(f"unsupported coefficient domain {dom} for {expr}")


def _is_factorable(expr: Expr) -> bool:
    syms = _polynomial_symbols(expr)
    if syms is None:
        return False
    dom = Poly(expr, *syms).get_domain()
    return bool(dom.is_ZZ or dom.is_QQ)


# =============================================================================
# 公开 API
# =============================================================================

def factor_list(expr: Any, config: Optional[FactorConfig] = None) -> Tuple[Expr, List[Tuple[Expr, int]]]:
    """
    返回 (coefficient, [(factor, multiplicity)]), 每个 factor 整系数本原不可约,
    字典序首项为正; expr == coefficient * prod factor^multiplicity.
    """
    config = config or FactorConfig.from_env()
    expr = sympify(expr)
    syms = _polynomial_symbols(expr)
    if syms is None:
        if expr.free_symbols:
            raise FactorInputError(f"not a polynomial: {expr}")
        return expr, []

    denom, P = _integer_poly(expr, syms)
    coeff, parts = factor_integer_poly(P, config)

    if config.verify:
        rebuilt = eb.product((g ** k for g, k in parts), P.gens) * coeff
        if rebuilt != P:
            raise FactorVerificationError(f"factorization of {expr} does not multiply back")

    coefficient = Rational(coeff, 1) / denom
    factors = [(g.as_expr(), k) for g, k in parts]
    _logger.info("factor_list: %d variable(s), %d irreducible factor(s)", len(syms), len(factors))
    return coefficient, factors


def _assemble(coefficient: Expr, factors: List[Tuple[Expr, int]]) -> Expr:
    body = Mul(*[Pow(g, k) for g, k in factors])
    if coefficient == 1:
        return body
    # a bare sign is folded into the product, an irreducible input comes back as it was
    if coefficient == -1:
        return -body
    if body.is_Add:
        return Mul(coefficient, body, evaluate=False)
    return coefficient * body


def _factor_all(expr: Expr, config: FactorConfig) -> Expr:
    if _is_factorable(expr):
        return _assemble(*factor_list(expr, config))
    if expr.is_Add:
        poly_terms, rest = [], []
        for t in expr.args:
            if t.is_number or _is_factorable(t):
                poly_terms.append(t)
            else:
                rest.append(t)
        head = _factor_all(Add(*poly_terms), config) if poly_terms else Integer(0)
        return head + Add(*[_factor_all(t, config) for t in rest])
    if expr.args:
        return expr.func(*[_factor_all(a, config) for a in expr.args])
    return expr


def factor(expr: Any, all: bool = False, config: Optional[FactorConfig] = None) -> Expr:
    """
    整/有理系数多项式的精确分解.

    非多项式输入原样返回; all=True 时对非多项式表达式的多项式子项逐一分解
    (一个和式里的多项式项合并后整体分解).
    """
    config = config or FactorConfig.from_env()
    expr = sympify(expr)
    if _polynomial_symbols(expr) is None:
        if all:
            return _factor_all(expr, config)
        return expr
    return _assemble(*factor_list(expr, config))


# =============================================================================
# Self-test
# =============================================================================

def _self_test() -> Dict[str, Any]:
    from sympy import expand, symbols

    x, y = symbols("x y")
    cases = [
        1 + x - x ** 3,
        (1 + x) ** 3,
        x ** 2 * (x - 3) ** 2 * (x ** 3 - 5 * x + 7),
        x ** 16 + 11 * x ** 4 + 121,
        (x * y + 1) * (x + y) ** 2,
    ]
    results = []
    for e in cases:
        f = factor(e, config=FactorConfig(seed=1))
        ok = expand(f - e) == 0
        results.append({"input": str(e), "output": str(f), "ok": ok})
    report = {"ok": all(r["ok"] for r in results), "cases": results}
    if not report["ok"]:
        raise FactorVerificationError(f"self-test failed: {report}")
    return report


__all__ = [
    "FactorInputError",
    "FactorVerificationError",
    "factor",
    "factor_list",
]


if __name__ == "__main__":
    configure_logging(logging.INFO)
    rep = _self_test()
    for case in rep["cases"]:
        _logger.info("%s -> %s", case["input"], case["output"])
    _logger.info("self-test ok=%s", rep["ok"])
