"""
Cumulative progress curves used to spread budget over time.

Each curve maps normalized time t in [0, 1] to cumulative progress in [0, 1].
"""
from enum import Enum
from typing import Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


class CostCurve(Enum):
    """Cost distribution patterns over time"""
    LINEAR = "linear"              # Spread evenly
    SMOOTH = "smooth"              # Ease-in ease-out S-curve
    FRONT_LOADED = "front_loaded"  # Heavy spending early
    BACK_LOADED = "back_loaded"    # Light early, heavy late


def smoothstep(t: ArrayLike) -> ArrayLike:
    """Ease-in ease-out progress: p^2 * (3 - 2p), with p clipped to [0, 1]."""
    p = np.clip(t, 0.0, 1.0)
    result = p * p * (3 - 2 * p)
    return float(result) if np.ndim(result) == 0 else result


def cumulative_progress(curve: CostCurve, t: ArrayLike) -> ArrayLike:
    """
    Cumulative share of cost spent at normalized time t.

    Args:
        curve: Distribution shape
        t: Normalized time (scalar or array)
    """
    if curve == CostCurve.SMOOTH:
        return smoothstep(t)

    p = np.clip(t, 0.0, 1.0)
    if curve == CostCurve.FRONT_LOADED:
        result = 1 - (1 - p) ** 2
    elif curve == CostCurve.BACK_LOADED:
        result = p ** 2
    else:
        result = p
    return float(result) if np.ndim(result) == 0 else result
