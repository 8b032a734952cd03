#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Search Orchestration: 素数选择 / 二分组合搜索 / 多元求值点与首项系数分配
===============================================================================

单变量:
  1) 选素数 p: p ∤ lc, 且 f mod p 仍无平方
  2) Berlekamp 得到 mod p 的不可约因子; 只有一个 -> 不可约
  3) SearchFrame 栈上做深度优先二分搜索, 每个二分尝试一次 hensel_univar;
     成功则确认一个真因子, 失败则枚举下一个二分, 枚举完即证明不可约

多元 (Wang EEZ):
  1) 关于主变量的内容若非常数, 分别递归分解
  2) 递归分解首项系数 vn = Ω * prod F_j^{e_j}
  3) 随机求值点: vn(a) ≠ 0, F(x, a) 无平方, F_j(a) 互相有"专属"素因子 (check_divisors)
  4) 多次试验取最小模因子个数, 计数稳定后分配首项系数, 做 hensel_multivar;
     失败则换求值点并增大模数

工程红线:
  - 组合/提升失败是软失败 (LiftResult), 只驱动下一次尝试
  - 素数缓存耗尽是硬失败; 调用方设置了 max_rounds 时, 求值轮数耗尽同样直接抛出
"""

from __future__ import annotations

import logging
import random
import threading
from bisect import bisect_right
from dataclasses import dataclass, field
from math import gcd
from typing import List, Optional, Sequence, Tuple

from sympy import Poly

import expr_bridge as eb
from berlekamp import distinct_factors, is_squarefree
from factor_config import FactorConfig
from hensel_lift import hensel_multivar, hensel_univar, lift_exponent, multivariate_bound
from modular_poly import ModRing, PolyFactorError, UniPoly, product
from padic_lift import EvalPoint

_logger = logging.getLogger(__name__)


class PrimeCacheExhaustedError(PolyFactorError):
    """prime_limit 以下找不到可用素数."""


class SearchExhaustedError(PolyFactorError):
    """调用方设置的 max_rounds 用尽仍未得到提升成功的分解."""


# =============================================================================
# 素数缓存 (进程级, 只增不减, 加锁)
# =============================================================================

_PRIMES: List[int] = [2, 3, 5, 7]
_PRIMES_LOCK = threading.Lock()


def _extend_primes_locked(beyond: int) -> None:
    while _PRIMES[-1] <= beyond:
        candidate = _PRIMES[-1] + 2
        while any(candidate % q == 0 for q in _PRIMES if q * q <= candidate):
            candidate += 2
        _PRIMES.append(candidate)


def next_prime(p: int, limit: int = FactorConfig.prime_limit) -> int:
    """缓存中严格大于 p 的最小素数; 超过 limit 抛 PrimeCacheExhaustedError."""
    if p >= limit:
        raise PrimeCacheExhaustedError(f"no prime above {p} within limit {limit}")
    with _PRIMES_LOCK:
        _extend_primes_locked(p)
        q = _PRIMES[bisect_right(_PRIMES, p)]
    if q > limit:
        raise PrimeCacheExhaustedError(f"next prime {q} exceeds limit {limit}")
    return q


def choose_prime(f: Poly, main: int, config: FactorConfig) -> Tuple[int, UniPoly]:
    """返回 (p, f mod p): p ∤ lc(f) 且 f mod p 无平方."""
    lc = eb.ground_value(eb.lc_in(f, main))
    p = next_prime(config.first_prime - 1, config.prime_limit)
    while True:
        if lc % p:
            modpoly = eb.to_unipoly(f, main, ModRing(p))
            if is_squarefree(modpoly):
                _logger.debug("choose_prime: p=%d for degree %d", p, modpoly.degree())
                return p, modpoly
        p = next_prime(p, config.prime_limit)


# =============================================================================
# 二分枚举与搜索帧
# =============================================================================

class Partition:
    """
    n 个模因子的二分枚举器.

    k[0] 恒为 0 (因子 0 固定在第一组, 避免对称重复); k[1..n-1] 从全 1 开始按二进制递减,
    第二组为空时终止.
    """

    def __init__(self, n: int):
        if n < 2:
            raise ValueError(f"Partition needs n >= 2, got {n}")
        self.n = n
        self._k = [0] + [1] * (n - 1)
        self._sum = n - 1

    def __getitem__(self, i: int) -> int:
        return self._k[i]

    def __len__(self) -> int:
        return self.n

    def size_first(self) -> int:
        return self.n - self._sum

    def size_second(self) -> int:
        return self._sum

    def next(self) -> bool:
        for i in range(self.n - 1, 0, -1):
            if self._k[i]:
                self._k[i] -= 1
                self._sum -= 1
                return self._sum > 0
            self._k[i] += 1
            self._sum += 1
        return False

    def groups(self, items: Sequence) -> Tuple[list, list]:
        first = [it for i, it in enumerate(items) if not self._k[i]]
        second = [it for i, it in enumerate(items) if self._k[i]]
        return first, second

    def split(self, factors: Sequence[UniPoly]) -> Tuple[UniPoly, UniPoly]:
        ring = factors[0].ring
        first, second = self.groups(factors)
        return product(first, ring), product(second, ring)


@dataclass
class SearchFrame:
    """待重组的目标多项式及其尚未确认的模因子."""

    poly: Poly
    factors: List[UniPoly] = field(default_factory=list)


# =============================================================================
# 单变量
# =============================================================================

def _recombine(prim: Poly, main: int, p: int, modfactors: List[UniPoly]) -> List[Poly]:
    result: List[Poly] = []
    stack = [SearchFrame(prim, list(modfactors))]
    while stack:
        frame = stack[-1]
        if len(frame.factors) < 2:
            result.append(frame.poly)
            stack.pop()
            continue
        part = Partition(len(frame.factors))
        while True:
            first, second = part.groups(frame.factors)
            a, b = part.split(frame.factors)
            lift = hensel_univar(frame.poly, p, a, b, main=main)
            if lift.lifted:
                u, w = lift.factors
                if len(first) == 1 and len(second) == 1:
                    result.extend([u, w])
                    stack.pop()
                elif len(first) == 1:
                    result.append(u)
                    frame.poly, frame.factors = w, second
                elif len(second) == 1:
                    result.append(w)
                    frame.poly, frame.factors = u, first
                else:
                    frame.poly, frame.factors = u, first
                    stack.append(SearchFrame(w, second))
                break
            if not part.next():
                result.append(frame.poly)
                stack.pop()
                break
    return result


def factor_univariate(
    f: Poly,
    main: int = 0,
    config: Optional[FactorConfig] = None,
) -> Tuple[int, List[Poly]]:
    """
    f 只含 gens[main], 除去 x^ld 后无平方.

    返回 (unit * content, [不可约本原因子, 首项为正]).
    """
    config = config or FactorConfig()
    gens = f.gens
    if f.is_zero:
        return 0, []
    factors: List[Poly] = []
    d = eb.poly_dict(f)
    ld = min(m[main] for m in d)
    if ld > 0:
        f = f.exquo(eb.monomial(main, ld, gens))
        factors.extend([eb.monomial(main, 1, gens)] * ld)
    if eb.degree_in(f, main) <= 0:
        return eb.ground_value(f), factors

    unit = eb.leading_sign(f)
    cont = eb.int_content(f)
    prim = (f * unit).exquo_ground(cont)
    if eb.degree_in(prim, main) == 1:
        return unit * cont, factors + [prim]
    if eb.degree_in(prim.gcd(prim.diff(gens[main])), main) > 0:
        raise ValueError("factor_univariate expects a square-free polynomial")

    p, modpoly = choose_prime(prim, main, config)
    modfactors = distinct_factors(modpoly.unit_normal())
    _logger.debug("factor_univariate: deg=%d p=%d modular factors=%d",
                  eb.degree_in(prim, main), p, len(modfactors))
    if len(modfactors) <= 1:
        return unit * cont, factors + [prim]
    return unit * cont, factors + _recombine(prim, main, p, modfactors)


# =============================================================================
# 多元: 求值点选择
# =============================================================================

def check_divisors(omega_delta: int, f_tilde: Sequence[int]) -> Optional[List[int]]:
    """
    Wang 条件: 每个 F_j(a) 去掉与 Ω·δ 及前面各项共享的素因子后仍 ≠ 1.

    满足时返回约化后的除数表, 否则 None.
    """
    d = [abs(int(omega_delta))]
    for ft in f_tilde:
        q = abs(int(ft))
        for r in reversed(d):
            while r != 1:
                r = gcd(r, q)
                q //= r
            if q == 1:
                return None
        d.append(q)
    return d


@dataclass(frozen=True)
class _Image:
    points: Tuple[Tuple[int, int], ...]
    image: Poly
    delta: int


def select_evaluation(
    F: Poly,
    main: int,
    others: Sequence[int],
    omega: int,
    lc_factors: Sequence[Tuple[Poly, int]],
    modulus: int,
    rng: random.Random,
    config: FactorConfig,
) -> Optional[_Image]:
    """
    在 [-modulus, modulus) 中抽求值点. 某个 |F_j(a)| == 1 时返回 None (调用方增大模数);
    max_point_draws 次都不合格也返回 None.
    """
    gens = F.gens
    vn = eb.lc_in(F, main)
    for _ in range(config.max_point_draws):
        points = tuple((idx, rng.randrange(-modulus, modulus)) for idx in others)
        if eb.ground_value(eb.substitute_all(vn, points)) == 0:
            continue
        image = eb.substitute_all(F, points)
        if eb.degree_in(image.gcd(image.diff(gens[main])), main) > 0:
            continue
        delta = eb.int_content(image)
        if not lc_factors:
            return _Image(points, image, delta)
        f_tilde = [eb.ground_value(eb.substitute_all(Fj, points)) for Fj, _ in lc_factors]
        if any(abs(ft) == 1 for ft in f_tilde):
            return None
        if check_divisors(omega * delta, f_tilde) is not None:
            return _Image(points, image, delta)
    return None


# =============================================================================
# 多元: 首项系数分配 + Hensel
# =============================================================================

def _distribute_and_lift(
    F: Poly,
    main: int,
    omega: int,
    lc_factors: Sequence[Tuple[Poly, int]],
    img: _Image,
    ufactors: List[Poly],
    config: FactorConfig,
) -> Optional[List[Poly]]:
    gens = F.gens
    r = len(ufactors)
    f_tilde = [eb.ground_value(eb.substitute_all(Fj, img.points)) for Fj, _ in lc_factors]

    D: List[Poly] = []
    D_tilde: List[int] = []
    totals = [0] * len(lc_factors)
    for ui in ufactors:
        d = img.delta * eb.ground_value(eb.lc_in(ui, main))
        exps = [0] * len(lc_factors)
        for j in range(len(lc_factors) - 1, -1, -1):
            while d % f_tilde[j] == 0:
                d //= f_tilde[j]
                exps[j] += 1
        Di = eb.product((Fj ** e for (Fj, _), e in zip(lc_factors, exps) if e), gens)
        Dti = 1
        for ft, e in zip(f_tilde, exps):
            Dti *= ft ** e
        D.append(Di)
        D_tilde.append(Dti)
        totals = [t + e for t, e in zip(totals, exps)]

    if any(t != ej for t, (_, ej) in zip(totals, lc_factors)):
        _logger.debug("distribute: exponent totals %s do not match %s", totals, [e for _, e in lc_factors])
        return None

    uhat: List[Poly] = []
    C: List[Poly] = []
    for ui, Di, Dti in zip(ufactors, D, D_tilde):
        lcu = eb.ground_value(eb.lc_in(ui, main))
        if (omega * Dti) % lcu:
            return None
        uhat.append(ui * ((omega * Dti) // lcu))
        C.append(Di * omega)

    T = F * omega ** (r - 1)
    T_image = eb.substitute_all(T, img.points)
    if eb.product(uhat, gens) != T_image:
        _logger.debug("distribute: scaled univariate factors do not reproduce the image")
        return None

    p, _ = choose_prime(T_image, main, config)
    bound = multivariate_bound(T)
    l = lift_exponent(p, bound)
    ring = ModRing(p ** l)
    u_mod = [eb.to_unipoly(uh, main, ring) for uh in uhat]
    points = [EvalPoint(idx, val) for idx, val in img.points]
    _logger.debug("hensel_multivar: r=%d p=%d l=%d points=%s", r, p, l, img.points)
    lift = hensel_multivar(T, main, points, p, l, u_mod, C)
    if not lift.lifted:
        _logger.debug("hensel_multivar failed: %s", lift.reason)
        return None
    return [eb.primitive_part(Ui) for Ui in lift.factors]


def _wang(F: Poly, main: int, others: Sequence[int], config: FactorConfig, rng: random.Random) -> List[Poly]:
    gens = F.gens
    vn = eb.lc_in(F, main)
    if eb.is_constant(vn):
        omega, lc_factors = eb.ground_value(vn), []
    else:
        omega, lc_factors = factor_integer_poly(vn, config)

    modulus = max(2 * len(lc_factors), 3)
    attempts = 0
    while True:
        minimal_r = None
        trial = 0
        chosen = None
        while trial < config.max_trials:
            attempts += 1
            if config.max_rounds is not None and attempts > config.max_rounds:
                raise SearchExhaustedError(f"no successful lift after {config.max_rounds} evaluation attempts")
            img = select_evaluation(F, main, others, omega, lc_factors, modulus, rng, config)
            if img is None:
                modulus += 1
                continue
            _, ufactors = factor_univariate(img.image, main, config)
            r = len(ufactors)
            if r <= 1:
                return [F]
            if minimal_r is None or r < minimal_r:
                minimal_r, trial = r, 0
                chosen = (img, ufactors)
            elif r == minimal_r:
                trial += 1
                modulus += 1
                chosen = (img, ufactors)
        img, ufactors = chosen
        _logger.debug("wang: %d univariate factors at %s", len(ufactors), img.points)
        factors = _distribute_and_lift(F, main, omega, lc_factors, img, ufactors, config)
        if factors is not None:
            return factors
        modulus += 1


def factor_multivariate(f: Poly, config: Optional[FactorConfig] = None) -> Tuple[int, List[Poly]]:
    """
    无平方多元 f -> (整数系数, [不可约本原因子, 字典序首项为正]).
    """
    config = config or FactorConfig()
    used = eb.used_indices(f)
    if len(used) <= 1:
        return factor_squarefree(f, config)
    main, others = used[0], used[1:]

    unit = eb.leading_sign(f)
    cont = eb.int_content(f)
    F = (f * unit).exquo_ground(cont)
    coeff = unit * cont

    content = eb.content_in(F, main)
    if not eb.is_constant(content):
        pp = F.exquo(content)
        c1, f1 = factor_squarefree(content, config)
        c2, f2 = factor_squarefree(pp, config)
        return coeff * c1 * c2, f1 + f2

    rng = random.Random(config.seed)
    factors = [eb.normalize_sign(g) for g in _wang(F, main, others, config, rng)]
    prod = eb.product(factors, f.gens)
    if prod == F:
        return coeff, factors
    if prod == -F:
        return -coeff, factors
    raise PolyFactorError("internal: multivariate factors do not reproduce the input")


# =============================================================================
# 通用入口 (整系数 Poly)
# =============================================================================

def factor_squarefree(f: Poly, config: Optional[FactorConfig] = None) -> Tuple[int, List[Poly]]:
    """无平方 f 按变量个数分派."""
    config = config or FactorConfig()
    used = eb.used_indices(f)
    if not used:
        return eb.ground_value(f), []
    if len(used) == 1:
        return factor_univariate(f, used[0], config)
    return factor_multivariate(f, config)


def factor_integer_poly(f: Poly, config: Optional[FactorConfig] = None) -> Tuple[int, List[Tuple[Poly, int]]]:
    """
    任意整系数 Poly -> (coeff, [(不可约因子, 重数)]), f == coeff * prod g^e.

    外层无平方分解交给 sympy; 每个无平方部分在这里分解.
    """
    config = config or FactorConfig()
    if f.is_zero:
        return 0, []
    coeff, parts = f.sqf_list()
    coeff = int(coeff)
    out: List[Tuple[Poly, int]] = []
    for h, k in parts:
        sign = eb.leading_sign(h)
        cont = eb.int_content(h)
        h = (h * sign).exquo_ground(cont)
        coeff *= (sign * cont) ** k
        c, facs = factor_squarefree(h, config)
        coeff *= c ** k
        out.extend((g, k) for g in facs)
    out.sort(key=lambda gk: (gk[1], eb.degree_in(gk[0], 0), str(gk[0].as_expr())))
    return coeff, out


__all__ = [
    "PrimeCacheExhaustedError",
    "SearchExhaustedError",
    "next_prime",
    "choose_prime",
    "Partition",
    "SearchFrame",
    "factor_univariate",
    "check_divisors",
    "select_evaluation",
    "factor_multivariate",
    "factor_squarefree",
    "factor_integer_poly",
]
