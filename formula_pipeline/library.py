"""
Core logic for the bundled named functions.

Each implementation receives the resolved argument values as keyword
arguments. It runs even when validation failed, so every invalid branch
short-circuits to the placeholder instead of raising.
"""

import numbers
from typing import Any, Callable, Dict

from .models import PLACEHOLDER


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def multiply(number1, number2):
    if not (_is_number(number1) and _is_number(number2)):
        return PLACEHOLDER
    return number1 * number2


def divide(dividend, divisor):
    if not (_is_number(dividend) and _is_number(divisor)) or divisor == 0:
        return PLACEHOLDER
    return dividend / divisor


def affix(text, prefix, suffix):
    if not all(isinstance(part, str) for part in (text, prefix, suffix)):
        return PLACEHOLDER
    return f"{prefix}{text}{suffix}"


# Upper bound on generated values, matching the declared argument ranges
MAX_SEQUENCE_LENGTH = 20001


def sequence_between(start, end, step):
    if not all(_is_number(value) for value in (start, end, step)):
        return PLACEHOLDER
    if step <= 0 or end < start or (end - start) / step >= MAX_SEQUENCE_LENGTH:
        return PLACEHOLDER
    return tuple(range(int(start), int(end) + 1, int(step)))


def join_list(values, delimiter):
    if not isinstance(values, (list, tuple)) or not isinstance(delimiter, str):
        return PLACEHOLDER
    return delimiter.join(_display(value) for value in values)


def _display(value: Any) -> str:
    """Render a value the way a cell shows it."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(_display(item) for item in value)
    return str(value)


IMPLEMENTATIONS: Dict[str, Callable[..., Any]] = {
    "MULTIPLY": multiply,
    "DIVIDE": divide,
    "AFFIX": affix,
    "SEQUENCEBETWEEN": sequence_between,
    "JOINLIST": join_list,
}
