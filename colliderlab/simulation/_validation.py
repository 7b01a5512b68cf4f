from __future__ import annotations

import math
import numbers

from .._exceptions import InvalidParameter


def check_positive_int(name: str, value) -> int:
    """Return ``value`` as an int, or raise if it is not a whole number > 0."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidParameter(f"'{name}' must be an integer, got {value!r}.")
    if value <= 0:
        raise InvalidParameter(f"'{name}' must be positive, got {value}.")
    return int(value)


def check_finite(name: str, value) -> float:
    """Return ``value`` as a float, or raise if it is not a finite real number."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"'{name}' must be a real number, got {value!r}.")
    if not math.isfinite(value):
        raise InvalidParameter(f"'{name}' must be finite, got {value}.")
    return float(value)
