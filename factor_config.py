#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
因式分解引擎的运行参数.

求值点重试策略里的常数 (试验次数, 模数增长, 抽样次数) 只影响速度, 不影响正确性;
这里集中成一个 frozen dataclass, 可从环境变量读取.

红线: 环境变量非法直接 ValueError, 不静默回落默认值.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional


def _env_int(name: str, *, default: Optional[int]) -> Optional[int]:
    """Read an env var as int (base-10), strict."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(str(raw).strip(), 10)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (base-10), got {raw!r}") from e


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return bool(default)
    val = str(raw).strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class FactorConfig:
    """
    max_trials       需要连续观察到多少次相同的最小模因子个数
    first_prime      素数选择的起点
    prime_limit      素数缓存上限; 超过即 PrimeCacheExhaustedError
    seed             求值点随机源种子 (None -> 每次调用独立)
    max_point_draws  每个模数下最多抽多少组点, 之后模数 +1
    max_rounds       多元求值轮数上限 (None = 不设上限); 设置后超过即 SearchExhaustedError
    verify           结果展开回验
    """

    max_trials: int = 3
    first_prime: int = 3
    prime_limit: int = 1_000_003
    seed: Optional[int] = None
    max_point_draws: int = 64
    max_rounds: Optional[int] = None
    verify: bool = True

    def __post_init__(self) -> None:
        if self.max_trials < 1:
            raise ValueError("max_trials must be >= 1")
        if self.first_prime < 3:
            raise ValueError("first_prime must be >= 3 (balanced p-adic digits need an odd prime)")
        if self.prime_limit <= self.first_prime:
            raise ValueError("prime_limit must exceed first_prime")
        if self.max_point_draws < 1:
            raise ValueError("max_point_draws must be >= 1")
        if self.max_rounds is not None and self.max_rounds < 1:
            raise ValueError("max_rounds must be >= 1")

    @classmethod
    def from_env(cls) -> "FactorConfig":
        base = cls()
        return cls(
            max_trials=_env_int("POLYFACTOR_MAX_TRIALS", default=base.max_trials),
            first_prime=_env_int("POLYFACTOR_FIRST_PRIME", default=base.first_prime),
            prime_limit=_env_int("POLYFACTOR_PRIME_LIMIT", default=base.prime_limit),
            seed=_env_int("POLYFACTOR_SEED", default=base.seed),
            max_point_draws=_env_int("POLYFACTOR_MAX_POINT_DRAWS", default=base.max_point_draws),
            max_rounds=_env_int("POLYFACTOR_MAX_ROUNDS", default=base.max_rounds),
            verify=_env_bool("POLYFACTOR_VERIFY", default=base.verify),
        )

    def with_overrides(self, **changes) -> "FactorConfig":
        return replace(self, **changes)


def configure_logging(level: int = logging.INFO) -> None:
    """只在未配置 handler 时注入默认配置, 避免污染宿主应用."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    root.setLevel(level)


__all__ = ["FactorConfig", "configure_logging"]
