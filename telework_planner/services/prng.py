# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Deterministic pseudo-random helpers.
Same seed, same output. Not suitable for anything security related.
"""

import math
from typing import Sequence, TypeVar

T = TypeVar("T")


def seeded_float(seed: float) -> float:
    """Map a seed to a float in [0, 1)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates shuffle driven by seeded_float(seed + i). Returns a copy."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = min(int(math.floor(seeded_float(seed + i) * (i + 1))), i)
        result[i], result[j] = result[j], result[i]
    return result
