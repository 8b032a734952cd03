#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
===============================================================================
Modular Polynomial Arithmetic: Z/nZ[x] 上的单变量多项式
===============================================================================

本模块提供因式分解引擎最底层的算子:
  - ModRing: 模 n 环上下文 (n = p 或 p^k), 负责规范代表元/对称代表元/逆元
  - UniPoly: 降幂排列的 (coeff, exp) 项序列, 不含零系数项, 值语义 (frozen)
  - poly_gcd / extended_euclid: GF(p)[x] 上的 GCD 与 Bezout 系数

工程红线:
  1) 每个 UniPoly 都带环标签; 不同环之间混算直接抛错, 只能显式 to_ring() 同态
  2) 除法只在首项系数为单位时进行; 非单位直接 ModularArithmeticError
  3) 所有运算返回新值, 绝不原地修改共享实例
"""

from __future__ import annotations

from dataclasses import dataclass
from math import gcd
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union


# =============================================================================
# Section 0: 严格错误模型
# =============================================================================

class PolyFactorError(RuntimeError):
    """因式分解引擎内部不变量被破坏 (硬失败, 不重试)."""


class ModularArithmeticError(PolyFactorError):
    """模运算前置条件不满足: 非单位求逆, 非整除等."""


class RingMismatchError(ModularArithmeticError):
    """两个不同模数的多项式被混合运算."""


# =============================================================================
# Section 1: 环上下文
# =============================================================================

@dataclass(frozen=True)
class ModRing:
    """
    Z/nZ 的上下文.

    canon(x)     -> [0, n) 的规范代表元
    symmetric(x) -> (-n/2, n/2] 的对称代表元 (平衡 p-adic 展开需要)
    """

    modulus: int

    def __post_init__(self) -> None:
        if int(self.modulus) < 2:
            raise ValueError(f"modulus must be >= 2, got {self.modulus}")
        object.__setattr__(self, "modulus", int(self.modulus))

    def canon(self, x: int) -> int:
        return int(x) % self.modulus

    def symmetric(self, x: int) -> int:
        r = int(x) % self.modulus
        return r - self.modulus if r > self.modulus // 2 else r

    def is_unit(self, x: int) -> bool:
        return gcd(int(x) % self.modulus, self.modulus) == 1

    def inverse(self, x: int) -> int:
        r = int(x) % self.modulus
        if gcd(r, self.modulus) != 1:
            raise ModularArithmeticError(f"{x} is not a unit mod {self.modulus}")
        return pow(r, -1, self.modulus)

    def div(self, a: int, b: int) -> int:
        return (int(a) * self.inverse(b)) % self.modulus

    def __str__(self) -> str:
        return f"Z/{self.modulus}Z"


class Term(NamedTuple):
    coeff: int
    exp: int


Scalar = int
PolyOrScalar = Union["UniPoly", int]


# =============================================================================
# Section 2: UniPoly
# =============================================================================

@dataclass(frozen=True)
class UniPoly:
    """
    模 n 单变量多项式, terms 严格按指数降序, 系数在 [0, n) 且非零.

    直接构造时会校验不变量; 日常请用 from_dict / from_coeffs / zero / one.
    """

    ring: ModRing
    terms: Tuple[Term, ...] = ()

    def __post_init__(self) -> None:
        terms = tuple(Term(int(c), int(e)) for c, e in self.terms)
        last = None
        for c, e in terms:
            if e < 0:
                raise ValueError(f"negative exponent {e}")
            if not (0 < c < self.ring.modulus):
                raise ValueError(f"coefficient {c} not canonical/nonzero in {self.ring}")
            if last is not None and e >= last:
                raise ValueError("terms must be strictly descending by exponent")
            last = e
        object.__setattr__(self, "terms", terms)

    # ---------------------------------------------------------------------
    # constructors
    # ---------------------------------------------------------------------

    @classmethod
    def zero(cls, ring: ModRing) -> "UniPoly":
        return cls(ring, ())

    @classmethod
    def one(cls, ring: ModRing) -> "UniPoly":
        return cls.constant(ring, 1)

    @classmethod
    def constant(cls, ring: ModRing, c: int) -> "UniPoly":
        return cls.monomial(ring, c, 0)

    @classmethod
    def monomial(cls, ring: ModRing, c: int, exp: int) -> "UniPoly":
        c = ring.canon(c)
        if c == 0:
            return cls.zero(ring)
        return cls(ring, (Term(c, int(exp)),))

    @classmethod
    def from_dict(cls, ring: ModRing, coeffs: Mapping[int, int]) -> "UniPoly":
        """{exp: integer coeff} -> UniPoly (系数被规范化, 零项丢弃)."""
        terms = []
        for e in sorted(coeffs, reverse=True):
            c = ring.canon(coeffs[e])
            if c:
                terms.append(Term(c, int(e)))
        return cls(ring, tuple(terms))

    @classmethod
    def from_coeffs(cls, ring: ModRing, coeffs: Sequence[int]) -> "UniPoly":
        """低次到高次的系数列表 (dense) -> UniPoly."""
        terms = []
        for e in range(len(coeffs) - 1, -1, -1):
            c = ring.canon(coeffs[e])
            if c:
                terms.append(Term(c, e))
        return cls(ring, tuple(terms))

    # ---------------------------------------------------------------------
    # basic queries
    # ---------------------------------------------------------------------

    def degree(self) -> int:
        """零多项式返回 -1."""
        return self.terms[0].exp if self.terms else -1

    def lc(self) -> int:
        return self.terms[0].coeff if self.terms else 0

    def is_zero(self) -> bool:
        return not self.terms

    def is_one(self) -> bool:
        return len(self.terms) == 1 and self.terms[0] == (1, 0)

    def __bool__(self) -> bool:
        return bool(self.terms)

    def __getitem__(self, exp: int) -> int:
        for c, e in self.terms:
            if e == exp:
                return c
            if e < exp:
                break
        return 0

    def __len__(self) -> int:
        return len(self.terms)

    def to_dict(self) -> Dict[int, int]:
        return {e: c for c, e in self.terms}

    def dense(self) -> List[int]:
        """低次到高次的 dense 系数表 (长度 degree+1)."""
        out = [0] * (self.degree() + 1)
        for c, e in self.terms:
            out[e] = c
        return out

    def int_coeffs(self, symmetric: bool = True) -> Dict[int, int]:
        """{exp: int}; symmetric=True 时取对称代表元."""
        if symmetric:
            return {e: self.ring.symmetric(c) for c, e in self.terms}
        return self.to_dict()

    def _check_ring(self, other: "UniPoly") -> None:
        if self.ring != other.ring:
            raise RingMismatchError(f"ring mismatch: {self.ring} vs {other.ring}")

    def _coerce(self, other: PolyOrScalar) -> "UniPoly":
        if isinstance(other, UniPoly):
            self._check_ring(other)
            return other
        if isinstance(other, int):
            return UniPoly.constant(self.ring, other)
        return NotImplemented

    # ---------------------------------------------------------------------
    # ring arithmetic
    # ---------------------------------------------------------------------

    def __add__(self, other: PolyOrScalar) -> "UniPoly":
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        acc = self.to_dict()
        for c, e in other.terms:
            acc[e] = acc.get(e, 0) + c
        return UniPoly.from_dict(self.ring, acc)

    __radd__ = __add__

    def __neg__(self) -> "UniPoly":
        m = self.ring.modulus
        return UniPoly(self.ring, tuple(Term(m - c, e) for c, e in self.terms))

    def __sub__(self, other: PolyOrScalar) -> "UniPoly":
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self + (-other)

    def __rsub__(self, other: PolyOrScalar) -> "UniPoly":
        return (-self) + other

    def __mul__(self, other: PolyOrScalar) -> "UniPoly":
        if isinstance(other, int):
            c = self.ring.canon(other)
            if c == 0:
                return UniPoly.zero(self.ring)
            return UniPoly.from_dict(self.ring, {e: a * c for a, e in self.terms})
        if not isinstance(other, UniPoly):
            return NotImplemented
        self._check_ring(other)
        acc: Dict[int, int] = {}
        for a, ea in self.terms:
            for b, eb in other.terms:
                acc[ea + eb] = acc.get(ea + eb, 0) + a * b
        return UniPoly.from_dict(self.ring, acc)

    __rmul__ = __mul__

    def __divmod__(self, other: "UniPoly") -> Tuple["UniPoly", "UniPoly"]:
        """带余除法; 要求 lc(other) 是单位 (域上总成立, p^k 上由调用方保证)."""
        self._check_ring(other)
        if other.is_zero():
            raise ZeroDivisionError("polynomial division by zero")
        ring = self.ring
        m = ring.modulus
        inv = ring.inverse(other.lc())
        db = other.degree()
        rem = self.dense()
        bd = other.dense()
        dq = len(rem) - 1 - db
        if dq < 0:
            return UniPoly.zero(ring), self
        quo = [0] * (dq + 1)
        for i in range(len(rem) - 1, db - 1, -1):
            c = rem[i] % m
            if c == 0:
                continue
            q = (c * inv) % m
            quo[i - db] = q
            shift = i - db
            for j, b in enumerate(bd):
                if b:
                    rem[shift + j] = (rem[shift + j] - q * b) % m
        return UniPoly.from_coeffs(ring, quo), UniPoly.from_coeffs(ring, rem[:db] if db > 0 else [])

    def __floordiv__(self, other: "UniPoly") -> "UniPoly":
        return divmod(self, other)[0]

    def __mod__(self, other: "UniPoly") -> "UniPoly":
        return divmod(self, other)[1]

    def exact_div(self, other: "UniPoly") -> "UniPoly":
        q, r = divmod(self, other)
        if not r.is_zero():
            raise ModularArithmeticError("exact_div: nonzero remainder")
        return q

    def __truediv__(self, c: int) -> "UniPoly":
        """乘以标量 c 的逆元."""
        return self * self.ring.inverse(c)

    def divide_int(self, d: int, ring: Optional[ModRing] = None) -> "UniPoly":
        """
        规范代表元逐项整除 d, 结果落在 ring (默认同环).

        p^k 环中: 若 e ≡ 0 (mod p^j) 且 p^j | p^k, 规范代表元也被 p^j 整除.
        """
        target = ring or self.ring
        acc = {}
        for c, e in self.terms:
            if c % d:
                raise ModularArithmeticError(f"divide_int: {c} not divisible by {d}")
            acc[e] = c // d
        return UniPoly.from_dict(target, acc)

    def derivative(self) -> "UniPoly":
        return UniPoly.from_dict(self.ring, {e - 1: c * e for c, e in self.terms if e > 0})

    def evaluate(self, x: int) -> int:
        m = self.ring.modulus
        acc = 0
        for c in reversed(self.dense()):
            acc = (acc * x + c) % m
        return acc

    def unit_normal(self) -> "UniPoly":
        """整体除以首项系数 (首一化)."""
        if self.is_zero() or self.lc() == 1:
            return self
        return self / self.lc()

    def to_ring(self, ring: ModRing, symmetric: bool = True) -> "UniPoly":
        """显式环同态: 取 (对称) 整数代表元后在目标环中规范化."""
        if ring == self.ring:
            return self
        return UniPoly.from_dict(ring, self.int_coeffs(symmetric=symmetric))

    def reduce_exponents(self, p: int) -> "UniPoly":
        """
        f(x) = g(x^p) -> g(x).

        GF(p) 上 Frobenius 固定系数, 所以 g 同时就是 f 的 p 次根.
        """
        for _, e in self.terms:
            if e % p:
                raise ModularArithmeticError(f"exponent {e} not divisible by {p}")
        return UniPoly(self.ring, tuple(Term(c, e // p) for c, e in self.terms))

    def powmod(self, n: int, f: "UniPoly") -> "UniPoly":
        result = UniPoly.one(self.ring) % f
        base = self % f
        while n > 0:
            if n & 1:
                result = (result * base) % f
            base = (base * base) % f
            n >>= 1
        return result

    # ---------------------------------------------------------------------
    # ordering (去重/排序 Berlekamp 因子用)
    # ---------------------------------------------------------------------

    def sort_key(self) -> Tuple[int, Tuple[Tuple[int, int], ...]]:
        return (len(self.terms), tuple((e, c) for c, e in self.terms))

    def __lt__(self, other: "UniPoly") -> bool:
        self._check_ring(other)
        return self.sort_key() < other.sort_key()

    def __repr__(self) -> str:
        if not self.terms:
            return f"UniPoly(0 mod {self.ring.modulus})"
        body = " + ".join(f"{c}*x^{e}" if e else f"{c}" for c, e in self.terms)
        return f"UniPoly({body} mod {self.ring.modulus})"


# =============================================================================
# Section 3: GCD 与扩展欧几里得 (GF(p)[x])
# =============================================================================

def poly_gcd(a: UniPoly, b: UniPoly) -> UniPoly:
    """首一 gcd; 两者皆零时返回零."""
    a._check_ring(b)
    while not b.is_zero():
        a, b = b, a % b
    return a.unit_normal()


def extended_euclid(a: UniPoly, b: UniPoly) -> Tuple[UniPoly, UniPoly, UniPoly]:
    """
    返回 (s, t, g) 使 s*a + t*b = g, g 首一.

    GF(p)[x] 上使用; 全部余数按 lc(r0) 规范化.
    """
    a._check_ring(b)
    ring = a.ring
    if a.is_zero() and b.is_zero():
        raise ModularArithmeticError("extended_euclid: both inputs are zero")
    r0, r1 = a, b
    s0, s1 = UniPoly.one(ring), UniPoly.zero(ring)
    t0, t1 = UniPoly.zero(ring), UniPoly.one(ring)
    while not r1.is_zero():
        q, r = divmod(r0, r1)
        r0, r1 = r1, r
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    inv = ring.inverse(r0.lc())
    return s0 * inv, t0 * inv, r0 * inv


def product(polys: Iterable[UniPoly], ring: ModRing) -> UniPoly:
    acc = UniPoly.one(ring)
    for f in polys:
        acc = acc * f
    return acc


__all__ = [
    "PolyFactorError",
    "ModularArithmeticError",
    "RingMismatchError",
    "ModRing",
    "Term",
    "UniPoly",
    "poly_gcd",
    "extended_euclid",
    "product",
]
