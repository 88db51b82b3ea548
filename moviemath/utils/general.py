"""
General utility functions for the moviemath package.

This module provides numeric coercion and random-source helpers shared
by the math and analysis layers.
"""

import math
import numpy as np
from typing import Any, Iterable, List, Optional, TypeVar, Union

T = TypeVar('T')

RngLike = Optional[Union[int, np.random.Generator]]


def parse_number(value: Any) -> float:
    """
    Parse a value as a float.

    Accepts numbers and numeric strings. Anything else (None, booleans,
    empty or non-numeric strings, NaN and infinities) yields NaN.

    Args:
        value: Value to parse

    Returns:
        The parsed float, or NaN if the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        return float('nan')

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return float('nan')

    try:
        number = float(value)
    except (ValueError, TypeError):
        return float('nan')

    if not math.isfinite(number):
        return float('nan')

    return number


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce a value to a float, falling back to a default.

    Args:
        value: Value to coerce
        default: Value used when the input is not a finite number

    Returns:
        Coerced float
    """
    number = parse_number(value)
    return default if math.isnan(number) else number


def is_number(value: Any) -> bool:
    """Check whether a value parses as a finite number."""
    return not math.isnan(parse_number(value))


def get_rng(seed: RngLike = None) -> np.random.Generator:
    """
    Get a numpy random generator.

    Args:
        seed: None for a fresh unseeded generator, an int seed, or an
            existing Generator which is returned unchanged

    Returns:
        Random generator
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def distinct(coll: Iterable[T]) -> List[T]:
    """
    Return a list with duplicates removed, preserving order.

    Args:
        coll: Collection to process

    Returns:
        List with duplicates removed
    """
    seen = set()
    result = []
    for item in coll:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
