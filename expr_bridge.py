#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
sympy <-> 引擎内部表示 的桥接层
===============================================================================

多元整系数多项式统一用 sympy ``Poly`` (domain=ZZ, 固定 gens) 表示;
代换/对称约化/Taylor 系数/首项替换等按 gens 下标在 dict 层完成,
保证 gens 不变 (sympy 自带的 eval 会丢掉变量, 这里不用).

单变量模多项式 (UniPoly) 与 Poly 之间只通过 to_unipoly / from_unipoly 显式转换.
"""

from __future__ import annotations

from functools import reduce
from math import comb, gcd, isqrt
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from sympy import Poly, ZZ

from modular_poly import ModRing, ModularArithmeticError, UniPoly

Monom = Tuple[int, ...]


# =============================================================================
# dict <-> Poly
# =============================================================================

def poly_dict(f: Poly) -> Dict[Monom, int]:
    return {tuple(m): int(c) for m, c in f.as_dict().items() if c}


def from_dict(d: Mapping[Monom, int], gens: Sequence) -> Poly:
    clean = {m: c for m, c in d.items() if c}
    if not clean:
        return Poly(0, *gens, domain=ZZ)
    return Poly.from_dict(clean, *gens, domain=ZZ)


def constant(c: int, gens: Sequence) -> Poly:
    return Poly(int(c), *gens, domain=ZZ)


def is_constant(f: Poly) -> bool:
    return all(not any(m) for m in poly_dict(f))


def ground_value(f: Poly) -> int:
    d = poly_dict(f)
    if not d:
        return 0
    if not is_constant(f):
        raise ValueError(f"not a constant polynomial: {f.as_expr()}")
    return next(iter(d.values()))


def product(polys: Iterable[Poly], gens: Sequence) -> Poly:
    acc = constant(1, gens)
    for f in polys:
        acc = acc * f
    return acc


# =============================================================================
# 按变量下标的操作
# =============================================================================

def degree_in(f: Poly, index: int) -> int:
    d = poly_dict(f)
    if not d:
        return -1
    return max(m[index] for m in d)


def used_indices(f: Poly) -> List[int]:
    used = set()
    for m in poly_dict(f):
        used.update(i for i, e in enumerate(m) if e)
    return sorted(used)


def coeffs_in(f: Poly, index: int) -> Dict[int, Poly]:
    """f = sum_k c_k * x_index^k, 返回 {k: c_k} (c_k 不含 x_index)."""
    buckets: Dict[int, Dict[Monom, int]] = {}
    for m, c in poly_dict(f).items():
        k = m[index]
        mm = m[:index] + (0,) + m[index + 1:]
        buckets.setdefault(k, {})[mm] = c
    return {k: from_dict(d, f.gens) for k, d in buckets.items()}


def lc_in(f: Poly, index: int) -> Poly:
    deg = degree_in(f, index)
    if deg < 0:
        return from_dict({}, f.gens)
    return coeffs_in(f, index)[deg]


def monomial(index: int, exp: int, gens: Sequence, coeff: int = 1) -> Poly:
    m = [0] * len(gens)
    m[index] = exp
    return from_dict({tuple(m): coeff}, gens)


def replace_lc(f: Poly, index: int, lc: Poly) -> Poly:
    """把 f 关于 x_index 的首项系数换成 lc (次数不变)."""
    deg = degree_in(f, index)
    return f + (lc - lc_in(f, index)) * monomial(index, deg, f.gens)


def substitute(f: Poly, index: int, value: int) -> Poly:
    """x_index := value, gens 保持不变."""
    acc: Dict[Monom, int] = {}
    value = int(value)
    for m, c in poly_dict(f).items():
        mm = m[:index] + (0,) + m[index + 1:]
        acc[mm] = acc.get(mm, 0) + c * value ** m[index]
    return from_dict(acc, f.gens)


def substitute_all(f: Poly, points: Iterable[Tuple[int, int]]) -> Poly:
    for index, value in points:
        f = substitute(f, index, value)
    return f


def smod(f: Poly, modulus: int) -> Poly:
    """系数取 (-m/2, m/2] 的对称代表元."""
    ring = ModRing(modulus)
    return from_dict({m: ring.symmetric(c) for m, c in poly_dict(f).items()}, f.gens)


def taylor_coeff(f: Poly, index: int, alpha: int, k: int) -> Poly:
    """f 在 x_index = alpha 处展开的 (x_index - alpha)^k 系数 (整数上精确)."""
    acc: Dict[Monom, int] = {}
    alpha = int(alpha)
    for m, c in poly_dict(f).items():
        n = m[index]
        if n < k:
            continue
        mm = m[:index] + (0,) + m[index + 1:]
        acc[mm] = acc.get(mm, 0) + c * comb(n, k) * alpha ** (n - k)
    return from_dict(acc, f.gens)


def int_content(f: Poly) -> int:
    return reduce(gcd, (abs(c) for c in poly_dict(f).values()), 0)


def content_in(f: Poly, index: int) -> Poly:
    """关于 x_index 的内容 (系数多项式的 gcd), 符号规范为正."""
    content = None
    for c in coeffs_in(f, index).values():
        content = c if content is None else content.gcd(c)
        if is_constant(content):
            break
    if content is None:
        return constant(0, f.gens)
    return normalize_sign(content)


def leading_sign(f: Poly) -> int:
    """按 gens 字典序最高项的系数符号; 零多项式为 0."""
    d = poly_dict(f)
    if not d:
        return 0
    return 1 if d[max(d)] > 0 else -1


def normalize_sign(f: Poly) -> Poly:
    return -f if leading_sign(f) < 0 else f


def primitive_part(f: Poly) -> Poly:
    """整数内容除去, 并使字典序首项为正."""
    c = int_content(f)
    if c == 0:
        return f
    return normalize_sign(f.exquo_ground(c))


def euclidean_norm_ceil(f: Poly) -> int:
    """ceil(||f||_2)."""
    sq = sum(c * c for c in poly_dict(f).values())
    r = isqrt(sq)
    return r if r * r == sq else r + 1


# =============================================================================
# Poly <-> UniPoly
# =============================================================================

def to_unipoly(f: Poly, index: int, ring: ModRing) -> UniPoly:
    acc: Dict[int, int] = {}
    for m, c in poly_dict(f).items():
        if any(e for i, e in enumerate(m) if i != index):
            raise ModularArithmeticError(f"to_unipoly: polynomial depends on more than gen #{index}")
        acc[m[index]] = acc.get(m[index], 0) + c
    return UniPoly.from_dict(ring, acc)


def from_unipoly(u: UniPoly, index: int, gens: Sequence, symmetric: bool = True) -> Poly:
    acc: Dict[Monom, int] = {}
    zero = [0] * len(gens)
    for e, c in u.int_coeffs(symmetric=symmetric).items():
        m = list(zero)
        m[index] = e
        acc[tuple(m)] = c
    return from_dict(acc, gens)


__all__ = [
    "poly_dict",
    "from_dict",
    "constant",
    "is_constant",
    "ground_value",
    "product",
    "degree_in",
    "used_indices",
    "coeffs_in",
    "lc_in",
    "monomial",
    "replace_lc",
    "substitute",
    "substitute_all",
    "smod",
    "taylor_coeff",
    "int_content",
    "content_in",
    "leading_sign",
    "normalize_sign",
    "primitive_part",
    "euclidean_norm_ceil",
    "to_unipoly",
    "from_unipoly",
]
