#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Square-Free Decomposition & Berlekamp Distinct-Factor Extraction over GF(p)
===============================================================================

流程:
  1) squarefree_decomposition: 导数/GCD 递推; 导数恒为零时 (所有指数是 p 的倍数)
     先取 p 次根递归, 再把重数乘 p
  2) berlekamp_factor: Q 矩阵 (第 i 行 = x^(i*p) mod f), 求 (Q - I) 的左零空间
     (Knuth Algorithm N, 列变换高斯消元); 维数 k = 不可约因子个数
  3) 对每个零空间基向量 v 与 s in GF(p), 用 gcd(u, v - s) 逐个剥离真因子

矩阵使用 numpy object dtype, 保证大素数下仍是精确整数运算.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import numpy as np
from sympy import isprime

from modular_poly import ModRing, ModularArithmeticError, PolyFactorError, UniPoly, poly_gcd

_logger = logging.getLogger(__name__)


class BerlekampError(PolyFactorError):
    """零空间维数承诺的因子个数没有被剥离出来 (内部不变量破坏)."""


def _require_prime_field(f: UniPoly) -> int:
    p = f.ring.modulus
    if not isprime(p):
        raise ModularArithmeticError(f"GF(p) algorithms need a prime modulus, got {p}")
    return p


# =============================================================================
# 无平方分解
# =============================================================================

def _sqrfree_main(f: UniPoly) -> List[Tuple[UniPoly, int]]:
    p = f.ring.modulus
    out: List[Tuple[UniPoly, int]] = []
    df = f.derivative()
    if df.is_zero():
        for g, m in _sqrfree_main(f.reduce_exponents(p)):
            out.append((g, m * p))
        return out

    c = poly_gcd(f, df)
    w = f.exact_div(c)
    i = 1
    while not w.is_one():
        y = poly_gcd(w, c)
        z = w.exact_div(y)
        if z.degree() > 0:
            out.append((z, i))
        i += 1
        w = y
        c = c.exact_div(y)
    if c.degree() > 0:
        for g, m in _sqrfree_main(c.reduce_exponents(p)):
            out.append((g, m * p))
    return out


def squarefree_decomposition(f: UniPoly) -> List[Tuple[UniPoly, int]]:
    """
    返回 [(g_i, m_i)], f = lc(f) * prod g_i^m_i, g_i 首一无平方且两两互素,
    同一重数只出现一次, 按重数升序.
    """
    _require_prime_field(f)
    if f.degree() <= 0:
        return []
    merged: Dict[int, UniPoly] = {}
    for g, m in _sqrfree_main(f.unit_normal()):
        merged[m] = merged[m] * g if m in merged else g
    return [(merged[m], m) for m in sorted(merged)]


def is_squarefree(f: UniPoly) -> bool:
    if f.degree() <= 0:
        return True
    df = f.derivative()
    if df.is_zero():
        return False
    return poly_gcd(f, df).degree() == 0


# =============================================================================
# Q 矩阵与零空间
# =============================================================================

def frobenius_q_matrix(f: UniPoly) -> np.ndarray:
    """n x n 矩阵, Q[i, j] = [x^j] (x^(i*p) mod f), n = deg f."""
    p = _require_prime_field(f)
    n = f.degree()
    ring = f.ring
    Q = np.zeros((n, n), dtype=object)
    xp = UniPoly.monomial(ring, 1, 1).powmod(p, f)
    row = UniPoly.one(ring)
    for i in range(n):
        for c, e in row.terms:
            Q[i, e] = c
        row = (row * xp) % f
    return Q


def nullspace_basis(M: np.ndarray, p: int) -> List[List[int]]:
    """
    左零空间 {v : v M = 0} 的一组基 (Knuth Algorithm N).

    对 Berlekamp 的 M = Q - I, 第 0 行恒为零, 所以平凡向量 (1, 0, ..., 0) 总是第一个.
    """
    A = np.array(M, dtype=object) % p
    n = A.shape[0]
    pivot_of_col = [-1] * n
    basis: List[List[int]] = []
    for k in range(n):
        j = next((j for j in range(n) if A[k, j] % p and pivot_of_col[j] < 0), None)
        if j is not None:
            scale = (-pow(int(A[k, j]), -1, p)) % p
            A[:, j] = (A[:, j] * scale) % p
            for i in range(n):
                if i != j and A[k, i] % p:
                    A[:, i] = (A[:, i] + A[k, i] * A[:, j]) % p
            pivot_of_col[j] = k
        else:
            v = [0] * n
            for s in range(n):
                if pivot_of_col[s] >= 0:
                    v[pivot_of_col[s]] = int(A[k, s]) % p
            v[k] = 1
            basis.append(v)
    return basis


# =============================================================================
# Berlekamp
# =============================================================================

def berlekamp_factor(f: UniPoly) -> List[UniPoly]:
    """首一无平方 f 的全部不可约 (首一) 因子."""
    p = _require_prime_field(f)
    f = f.unit_normal()
    if f.degree() <= 1:
        return [f]

    ring: ModRing = f.ring
    Q = frobenius_q_matrix(f)
    n = f.degree()
    basis = nullspace_basis(Q - np.identity(n, dtype=object), p)
    k = len(basis)
    _logger.debug("berlekamp: deg=%d p=%d nullity=%d", n, p, k)
    if k == 1:
        return [f]

    factors = [f]
    for vec in basis[1:]:
        v = UniPoly.from_coeffs(ring, vec)
        refined: List[UniPoly] = []
        for u in factors:
            if u.degree() <= 1:
                refined.append(u)
                continue
            found = 0
            for s in range(p):
                g = poly_gcd(u, v - s)
                if g.degree() > 0:
                    refined.append(g)
                    found += g.degree()
                    if found == u.degree():
                        break
        factors = refined
        if len(factors) == k:
            break

    if len(factors) != k:
        raise BerlekampError(f"berlekamp: found {len(factors)} factors, nullity promised {k}")
    return sorted(factors)


def distinct_factors(f: UniPoly) -> List[UniPoly]:
    """无平方 f 的首一不可约因子, 有序 (sort_key)."""
    if not is_squarefree(f):
        raise ModularArithmeticError("distinct_factors: input is not square-free")
    if f.degree() <= 0:
        return []
    return berlekamp_factor(f)


def factor_modular(f: UniPoly) -> List[Tuple[UniPoly, int]]:
    """GF(p) 上的完全分解: [(首一不可约因子, 重数)], 首项系数丢弃."""
    out: List[Tuple[UniPoly, int]] = []
    for g, m in squarefree_decomposition(f):
        for h in berlekamp_factor(g):
            out.append((h, m))
    out.sort(key=lambda fm: (fm[0].sort_key(), fm[1]))
    return out


__all__ = [
    "BerlekampError",
    "squarefree_decomposition",
    "is_squarefree",
    "frobenius_q_matrix",
    "nullspace_basis",
    "berlekamp_factor",
    "distinct_factors",
    "factor_modular",
]
