#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Hensel Lifting (univariate two-factor & multivariate)
===============================================================================

hensel_univar   GCL Algorithm 6.1: 两因子线性 p-adic 提升,
                每步 e = a - u*w 在整数上精确计算, 除以当前模数后约化 mod p,
                用固定的 Bezout 对修正 u, w; 模数超过 2*B*|γ| 仍不收敛即软失败.
hensel_multivar GCL Algorithm 6.4: 从求值点处的单变量分解出发, 逐个恢复变量,
                每阶 Taylor 系数交给 multivar_diophant; 首项系数每步交叉校验,
                最后必须在整数上精确重构目标多项式.

软失败 (组合不对) 用 LiftResult(lifted=False) 表示, 不抛异常;
前置条件破坏 (非互素, 环不匹配) 才抛 PolyFactorError 家族.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from sympy import Poly

import expr_bridge as eb
from modular_poly import ModRing, ModularArithmeticError, UniPoly, extended_euclid
from padic_lift import EvalPoint, UnivariateDiophantSolver, multivar_diophant

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiftResult:
    """
    提升结果.

    lifted=True  -> factors 是整数上精确的因子 (其积等于目标)
    lifted=False -> 软失败, reason 给出原因; factors 为空
    """

    lifted: bool
    factors: Tuple[Poly, ...] = ()
    reason: str = ""
    certificate: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def failed(cls, reason: str, **certificate: Any) -> "LiftResult":
        return cls(lifted=False, factors=(), reason=reason, certificate=dict(certificate))

    def __bool__(self) -> bool:
        return self.lifted


# =============================================================================
# 系数界
# =============================================================================

def univariate_bound(a: Poly, max_degree: int) -> int:
    """ceil(||a||_2) * 2^max_degree: 次数不超过 max_degree 的因子的系数界."""
    return eb.euclidean_norm_ceil(a) * 2 ** int(max_degree)


def multivariate_bound(a: Poly) -> int:
    """ceil(||a||_2) * 2^(sum_v deg_v a): a 的任意整因子的系数界."""
    total = sum(max(eb.degree_in(a, i), 0) for i in range(len(a.gens)))
    return eb.euclidean_norm_ceil(a) * 2 ** total


def lift_exponent(p: int, bound: int) -> int:
    """最小的 l 使 p^l > 2*bound."""
    l, pl = 1, p
    while pl <= 2 * bound:
        l += 1
        pl *= p
    return l


# =============================================================================
# 单变量
# =============================================================================

def hensel_univar(
    a: Poly,
    p: int,
    u1: UniPoly,
    w1: UniPoly,
    gamma: Optional[int] = None,
    main: int = 0,
) -> LiftResult:
    """
    a ≡ lc(a) * u1 * w1 (mod p), u1 w1 互素 -> 尝试得到整数因子 (u, w), u*w == a.

    gamma 缺省取 lc(a); 成功时 u 为本原多项式.
    """
    gens = a.gens
    Rp = ModRing(p)
    if u1.ring != Rp or w1.ring != Rp:
        raise ModularArithmeticError(f"hensel_univar: factors must live in GF({p})")

    bound = univariate_bound(a, max(u1.degree(), w1.degree()))
    alpha = eb.ground_value(eb.lc_in(a, main))
    if gamma is None or gamma == 0:
        gamma = alpha
    a = a * gamma

    u1 = u1.unit_normal() * gamma
    w1 = w1.unit_normal() * alpha
    s, t, g = extended_euclid(u1, w1)
    if not g.is_one():
        raise ModularArithmeticError("hensel_univar: modular factors are not coprime")

    u = eb.replace_lc(eb.from_unipoly(u1, main, gens), main, eb.constant(gamma, gens))
    w = eb.replace_lc(eb.from_unipoly(w1, main, gens), main, eb.constant(alpha, gens))
    e = a - u * w
    modulus = p
    max_modulus = 2 * bound * abs(gamma)
    steps = 0
    while not e.is_zero and modulus < max_modulus:
        c = eb.to_unipoly(e.exquo_ground(modulus), main, Rp)
        q, sigma = divmod(s * c, w1)
        tau = t * c + q * u1
        u = u + eb.from_unipoly(tau, main, gens) * modulus
        w = w + eb.from_unipoly(sigma, main, gens) * modulus
        e = a - u * w
        modulus *= p
        steps += 1

    if not e.is_zero:
        _logger.debug("hensel_univar: no convergence after %d steps (bound=%d)", steps, bound)
        return LiftResult.failed("no convergence below coefficient bound", bound=bound, steps=steps)

    delta = eb.int_content(u)
    u = u.exquo_ground(delta)
    w = (w * delta).exquo_ground(gamma)
    _logger.debug("hensel_univar: lifted in %d steps (p=%d bound=%d)", steps, p, bound)
    return LiftResult(lifted=True, factors=(u, w), certificate={"steps": steps, "bound": bound, "p": p})


# =============================================================================
# 多元
# =============================================================================

def hensel_multivar(
    a: Poly,
    main: int,
    points: Sequence[EvalPoint],
    p: int,
    l: int,
    u: Sequence[UniPoly],
    lc_u: Sequence[Poly],
) -> LiftResult:
    """
    a(x_main, α) ≡ prod u_i (mod p^l), lc(U_i) = lc_u[i] -> 整数上 a == prod U_i.

    points 给出除主变量外全部变量的求值点, 按恢复顺序排列.
    """
    gens = a.gens
    pl = p ** l
    nu = len(points) + 1

    A = [a] * nu
    for j in range(nu - 1, 0, -1):
        pt = points[j - 1]
        A[j - 1] = eb.smod(eb.substitute(A[j], pt.index, pt.value), pl)

    max_degree = max(eb.degree_in(a, pt.index) for pt in points) if points else 0
    U = [eb.from_unipoly(ui, main, gens) for ui in u]
    solver = UnivariateDiophantSolver(u, p, l)

    for j in range(1, nu):
        U1 = list(U)
        for m, lc in enumerate(lc_u):
            coef = eb.smod(eb.substitute_all(lc, ((pt.index, pt.value) for pt in points[j:])), pl)
            U[m] = eb.replace_lc(U[m], main, coef)

        lc_prod = eb.smod(eb.product((eb.lc_in(Ui, main) for Ui in U), gens), pl)
        if lc_prod != eb.smod(eb.lc_in(A[j], main), pl):
            return LiftResult.failed("leading coefficients inconsistent", step=j)

        pt = points[j - 1]
        lower = points[: j - 1]
        e = eb.smod(A[j] - eb.product(U, gens), pl)
        mono = eb.constant(1, gens)
        step = eb.monomial(pt.index, 1, gens) - pt.value
        for k in range(1, eb.degree_in(A[j], pt.index) + 1):
            if e.is_zero:
                break
            mono = mono * step
            c = eb.smod(eb.taylor_coeff(e, pt.index, pt.value, k), pl)
            if c.is_zero:
                continue
            delta_u = multivar_diophant(U1, c, lower, main, max_degree, p, l, solver)
            U = [eb.smod(Ui + d * mono, pl) for Ui, d in zip(U, delta_u)]
            e = eb.smod(A[j] - eb.product(U, gens), pl)
        _logger.debug("hensel_multivar: variable #%d restored, residual zero=%s", pt.index, e.is_zero)

    if eb.product(U, gens) != a:
        return LiftResult.failed("product differs from target over Z", p=p, l=l)
    return LiftResult(lifted=True, factors=tuple(U), certificate={"p": p, "l": l})


__all__ = [
    "LiftResult",
    "univariate_bound",
    "multivariate_bound",
    "lift_exponent",
    "hensel_univar",
    "hensel_multivar",
]
