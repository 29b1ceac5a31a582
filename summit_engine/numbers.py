"""Rounding helpers shared by the engine modules."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round halves upward (toward positive infinity) instead of using Python's
    banker's rounding.

    round_half_up(2.5) == 3, round_half_up(-2.5) == -2, round_half_up(1.25, 1) == 1.3
    """
    factor = 10 ** digits
    result = math.floor(value * factor + 0.5) / factor
    return int(result) if digits == 0 else result
