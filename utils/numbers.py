"""
Number Helpers

Coercion used wherever stored values or form input may be missing,
mistyped or degenerate (NaN, infinity, booleans).
"""

import math


def is_number(value):
    """
    True for finite ints/floats. Booleans and numeric strings are not numbers,
    and neither are ints too large to convert to a float.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def is_positive(value):
    return is_number(value) and value > 0


def finite_or_zero(value):
    """Return value if it is a finite number, otherwise 0.0."""
    return value if is_number(value) else 0.0


def non_negative(value):
    """Clamp NaN, infinity and negative results to 0.0."""
    if not is_number(value) or value < 0:
        return 0.0
    return value


def clamp(value, min_val, max_val):
    """Clamp a number to [min_val, max_val]; non-numbers become min_val."""
    if not is_number(value):
        return min_val
    return max(min_val, min(max_val, value))


def safe_float(value, default=0.0, min_val=None, max_val=None):
    """Safely parse a float value (form input) with optional bounds."""
    if isinstance(value, str):
        value = value.strip().replace(',', '.')
    if value is None or value == '':
        return default
    try:
        result = float(value)
        if not math.isfinite(result):
            return default
        if min_val is not None:
            result = max(min_val, result)
        if max_val is not None:
            result = min(max_val, result)
        return result
    except (ValueError, TypeError):
        return default
