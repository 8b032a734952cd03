#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
p-adic Lifting Primitives: EEA lift & Diophantine solvers
===============================================================================

  eea_lift            s*a + t*b ≡ 1 (mod p) 经 Newton 迭代提升到 mod p^k
  multiterm_eea_lift  r 个两两互素因子: sum_j s_j * prod_{i≠j} a_i ≡ 1 (mod p^k)
  univariate_diophant sum_i σ_i * b_i ≡ c (mod p^k), b_i = prod_{j≠i} a_j
  multivar_diophant   同上, 多元; 在求值点处做 Taylor 展开, 逐阶调用低一元的求解器

约定:
  - 单变量部分用 UniPoly (Z/p^k), 多元部分用 sympy Poly (ZZ, 对称代表元)
  - 所有 a_i 的首项系数必须是 mod p 单位 (由调用方选素数时保证)
  - 误差 e 总是先在整数上精确计算, 再除以当前模数, 最后约化 mod p
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from sympy import Poly

import expr_bridge as eb
from modular_poly import ModRing, ModularArithmeticError, UniPoly, extended_euclid

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvalPoint:
    """(变量下标, 整数取值): 把 gens[index] 代换为 value."""

    index: int
    value: int


# =============================================================================
# EEA 提升
# =============================================================================

def eea_lift(a: UniPoly, b: UniPoly, p: int, k: int) -> Tuple[UniPoly, UniPoly]:
    """
    返回 Z/p^k 上的 (s, t), 使 s*a + t*b ≡ 1 (mod p^k).

    a, b 会被映射到 Z/p^k (对称代表元); 要求 a, b 在 GF(p) 上互素.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    Rp = ModRing(p)
    Rpk = ModRing(p ** k)
    a = a.to_ring(Rpk)
    b = b.to_ring(Rpk)
    amod = a.to_ring(Rp)
    bmod = b.to_ring(Rp)

    smod, tmod, g = extended_euclid(amod, bmod)
    if not g.is_one():
        raise ModularArithmeticError(f"eea_lift: inputs are not coprime mod {p} (gcd={g})")

    s = smod.to_ring(Rpk)
    t = tmod.to_ring(Rpk)
    one = UniPoly.one(Rpk)
    modulus = p
    for _ in range(1, k):
        e = one - a * s - b * t
        c = e.divide_int(modulus, Rp)
        sigmabar = smod * c
        taubar = tmod * c
        q, sigma = divmod(sigmabar, bmod)
        tau = taubar + q * amod
        s = s + sigma.to_ring(Rpk) * modulus
        t = t + tau.to_ring(Rpk) * modulus
        modulus *= p
    return s, t


def _two_term(a0: UniPoly, a1: UniPoly, s: UniPoly, t: UniPoly, c: UniPoly) -> List[UniPoly]:
    # s*a1 + t*a0 = 1  ->  σ0*a1 + σ1*a0 = c, deg σ0 < deg a0
    q, sigma0 = divmod(c * s, a0)
    sigma1 = c * t + q * a1
    return [sigma0, sigma1]


def multiterm_eea_lift(a: Sequence[UniPoly], p: int, k: int) -> List[UniPoly]:
    """r >= 2 个两两互素的 a_j -> [s_j], sum_j s_j * prod_{i≠j} a_i ≡ 1 (mod p^k)."""
    r = len(a)
    if r < 2:
        raise ValueError("multiterm_eea_lift needs at least two factors")
    Rpk = ModRing(p ** k)
    a = [ai.to_ring(Rpk) for ai in a]
    q: List[Optional[UniPoly]] = [None] * (r - 1)
    q[r - 2] = a[r - 1]
    for j in range(r - 2, 0, -1):
        q[j - 1] = a[j] * q[j]

    beta = UniPoly.one(Rpk)
    s: List[UniPoly] = []
    for j in range(1, r):
        st, tt = eea_lift(a[j - 1], q[j - 1], p, k)
        sigma = _two_term(q[j - 1], a[j - 1], st, tt, beta)
        beta = sigma[0]
        s.append(sigma[1])
    s.append(beta)
    return s


# =============================================================================
# 单变量 Diophantine
# =============================================================================

class UnivariateDiophantSolver:
    """
    固定 a_1..a_r 与 p^k 的单变量 Diophantine 求解器.

    Bezout 数据只算一次; solve(c) 对 c 线性, 多元求解器在最底层反复调用它.
    """

    def __init__(self, a: Sequence[UniPoly], p: int, k: int):
        if len(a) < 2:
            raise ValueError("diophantine system needs at least two factors")
        self.p = p
        self.k = k
        self.ring = ModRing(p ** k)
        self.a = [ai.to_ring(self.ring) for ai in a]
        if len(self.a) == 2:
            self._s, self._t = eea_lift(self.a[1], self.a[0], p, k)
            self._multi: List[UniPoly] = []
        else:
            self._multi = multiterm_eea_lift(self.a, p, k)

    def solve(self, c: UniPoly) -> List[UniPoly]:
        c = c.to_ring(self.ring)
        if len(self.a) == 2:
            return _two_term(self.a[0], self.a[1], self._s, self._t, c)
        return [(c * sj) % aj for sj, aj in zip(self._multi, self.a)]


def univariate_diophant(a: Sequence[UniPoly], c: UniPoly, p: int, k: int) -> List[UniPoly]:
    return UnivariateDiophantSolver(a, p, k).solve(c)


def univar_diophant(a: Sequence[UniPoly], m: int, p: int, k: int) -> List[UniPoly]:
    """右端为单项式 x^m 的特例."""
    ring = ModRing(p ** k)
    return univariate_diophant(a, UniPoly.monomial(ring, 1, m), p, k)


# =============================================================================
# 多元 Diophantine
# =============================================================================

def multivar_diophant(
    a: Sequence[Poly],
    c: Poly,
    points: Sequence[EvalPoint],
    main: int,
    degree_bound: int,
    p: int,
    k: int,
    solver: Optional[UnivariateDiophantSolver] = None,
) -> List[Poly]:
    """
    求 σ_i 使 sum_i σ_i * prod_{j≠i} a_j ≡ c (mod p^k, 以及 mod I^(d+1)).

    a_i, c 属于 Z[x_main, points...]; points 中的变量按顺序从尾部逐个消去.
    返回对称代表元下的 sympy Poly 列表.
    """
    pk = p ** k
    r = len(a)
    gens = c.gens
    if solver is None:
        bottom = [eb.smod(eb.substitute_all(ai, ((pt.index, pt.value) for pt in points)), pk) for ai in a]
        solver = UnivariateDiophantSolver([eb.to_unipoly(ai, main, ModRing(pk)) for ai in bottom], p, k)

    if not points:
        cu = eb.to_unipoly(eb.smod(c, pk), main, solver.ring)
        return [eb.from_unipoly(s, main, gens) for s in solver.solve(cu)]

    last = points[-1]
    rest = points[:-1]
    b = [eb.product((a[j] for j in range(r) if j != i), gens) for i in range(r)]
    anew = [eb.smod(eb.substitute(ai, last.index, last.value), pk) for ai in a]
    cnew = eb.smod(eb.substitute(c, last.index, last.value), pk)
    sigma = multivar_diophant(anew, cnew, rest, main, degree_bound, p, k, solver)

    e = eb.smod(c - sum((s * bi for s, bi in zip(sigma, b)), eb.constant(0, gens)), pk)
    mono = eb.constant(1, gens)
    step = eb.monomial(last.index, 1, gens) - last.value
    for m in range(1, degree_bound + 1):
        if e.is_zero:
            break
        mono = mono * step
        cm = eb.smod(eb.taylor_coeff(e, last.index, last.value, m), pk)
        if cm.is_zero:
            continue
        ds = multivar_diophant(anew, cm, rest, main, degree_bound, p, k, solver)
        ds = [d * mono for d in ds]
        sigma = [s + d for s, d in zip(sigma, ds)]
        e = eb.smod(e - sum((d * bi for d, bi in zip(ds, b)), eb.constant(0, gens)), pk)

    return [eb.smod(s, pk) for s in sigma]


__all__ = [
    "EvalPoint",
    "eea_lift",
    "multiterm_eea_lift",
    "UnivariateDiophantSolver",
    "univariate_diophant",
    "univar_diophant",
    "multivar_diophant",
]
