"""
Argument validation.

A validator is a callable ``(name, value) -> str`` returning a message, or
an empty string when the value is valid. This module provides:
- Built-in per-argument validators and validator factories
- CrossCheck: checks that relate two or more arguments
- validate_arguments: runs all checks for one invocation
- VALIDATOR_FACTORIES / CHECK_FACTORIES: name lookups used by YAML
  declarations
"""

import numbers
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import OMITTED, BoundArgument, ValidationMessage, Validator, find_host_error


def _label(name: str) -> str:
    return f"[{name}] argument"


def _format_bound(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# Kind checks


def is_number(name: str, value: Any) -> str:
    # bool is an int subclass but TRUE/FALSE are not numbers here
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return f"{_label(name)} is not a number"
    return ""


def is_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        return f"{_label(name)} is not text"
    return ""


def is_boolean(name: str, value: Any) -> str:
    if not isinstance(value, bool):
        return f"{_label(name)} is not TRUE or FALSE"
    return ""


def is_list(name: str, value: Any) -> str:
    if not isinstance(value, (list, tuple)):
        return f"{_label(name)} is not a list"
    return ""


KIND_CHECKS: Dict[str, Optional[Validator]] = {
    "any": None,
    "number": is_number,
    "text": is_text,
    "boolean": is_boolean,
    "list": is_list,
}


# Domain checks


def integer(name: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or value != int(value):
        return f"{_label(name)} is not a whole number"
    return ""


def nonzero(name: str, value: Any) -> str:
    if value == 0:
        return f"{_label(name)} must not be zero"
    return ""


def positive(name: str, value: Any) -> str:
    if not value > 0:
        return f"{_label(name)} must be greater than zero"
    return ""


def non_empty(name: str, value: Any) -> str:
    if len(value) == 0:
        return f"{_label(name)} must not be empty"
    return ""


def in_range(minimum: Any = None, maximum: Any = None) -> Validator:
    """Build a validator for an inclusive numeric range (either bound optional)."""

    def check(name: str, value: Any) -> str:
        if minimum is not None and value < minimum:
            return f"{_label(name)} must be at least {_format_bound(minimum)}"
        if maximum is not None and value > maximum:
            return f"{_label(name)} must be at most {_format_bound(maximum)}"
        return ""

    return check


def one_of(choices: Iterable[Any]) -> Validator:
    """Build a validator that accepts only the given values."""
    allowed = tuple(choices)
    listing = ", ".join(str(choice) for choice in allowed)

    def check(name: str, value: Any) -> str:
        if value not in allowed:
            return f"{_label(name)} must be one of: {listing}"
        return ""

    return check


def max_length(limit: int) -> Validator:
    """Build a validator limiting the length of a text or list value."""

    def check(name: str, value: Any) -> str:
        if len(value) > limit:
            return f"{_label(name)} must be at most {limit} characters"
        return ""

    return check


class CrossCheck:
    """A check relating two or more arguments.

    The check callable receives a mapping of argument name to resolved value
    for the names it declares. Messages are attributed to the first name.
    """

    def __init__(self, names: Sequence[str], check: Callable[[Mapping[str, Any]], str]):
        if not names:
            raise ValueError("A cross-argument check must name at least one argument")
        self.names: Tuple[str, ...] = tuple(names)
        self.check = check

    @property
    def argument_name(self) -> str:
        return self.names[0]

    def run(self, values: Mapping[str, Any]) -> ValidationMessage:
        try:
            text = self.check({name: values[name] for name in self.names})
        except Exception:
            text = f"{_label(self.argument_name)} could not be validated"
        return ValidationMessage(self.argument_name, text or "")

    def __repr__(self) -> str:
        return f"CrossCheck({', '.join(self.names)})"


def ordered(first: str, second: str, strict: bool = False) -> CrossCheck:
    """Require ``first`` to come before ``second`` (or equal it unless strict)."""

    def check(values: Mapping[str, Any]) -> str:
        low, high = values[first], values[second]
        if strict and not low < high:
            return f"{_label(first)} must be before [{second}]"
        if low > high:
            return f"{_label(first)} must not be after [{second}]"
        return ""

    return CrossCheck((first, second), check)


def validate_argument(argument: BoundArgument) -> ValidationMessage:
    """
    Validate one bound argument.

    Args:
        argument: The bound argument

    Returns:
        A ValidationMessage; its text is empty when the argument is valid
    """
    spec = argument.spec
    value = argument.resolved_value

    if value is OMITTED:
        if spec.required:
            return ValidationMessage(argument.name, f"{_label(argument.name)} is omitted")
        # Unreachable through bind_arguments, which substitutes defaults
        value = spec.default

    host_error = find_host_error(value)
    if host_error is not None:
        return ValidationMessage(
            argument.name, f"{_label(argument.name)} is an error value ({host_error.code})"
        )

    kind_check = KIND_CHECKS[spec.kind]
    checks = ((kind_check,) if kind_check else ()) + spec.validators

    for validator in checks:
        try:
            text = validator(argument.name, value)
        except Exception:
            text = f"{_label(argument.name)} could not be validated"
        if text:
            return ValidationMessage(argument.name, text)

    return ValidationMessage(argument.name)


def validate_arguments(
    arguments: Sequence[BoundArgument], checks: Sequence[CrossCheck] = ()
) -> List[ValidationMessage]:
    """
    Validate every bound argument, then the cross-argument checks.

    Cross-argument checks only run when every argument passed its own
    checks, since relationships between invalid values are meaningless.

    Args:
        arguments: Bound arguments in declaration order
        checks: Cross-argument checks in declaration order

    Returns:
        One message per argument (empty text when valid), followed by one
        message per cross-argument check when those ran
    """
    messages = [validate_argument(argument) for argument in arguments]

    if checks and not any(message.is_error for message in messages):
        values = {argument.name: argument.resolved_value for argument in arguments}
        for cross_check in checks:
            if any(name not in values for name in cross_check.names):
                messages.append(
                    ValidationMessage(
                        cross_check.argument_name,
                        f"{_label(cross_check.argument_name)} could not be validated",
                    )
                )
                continue
            messages.append(cross_check.run(values))

    return messages


# Lookups for declarations. Plain validators are wrapped in a factory that
# takes no parameters so every entry is called the same way.
VALIDATOR_FACTORIES: Dict[str, Callable[..., Validator]] = {
    "integer": lambda: integer,
    "nonzero": lambda: nonzero,
    "positive": lambda: positive,
    "non_empty": lambda: non_empty,
    "range": lambda min=None, max=None: in_range(min, max),
    "one_of": one_of,
    "max_length": max_length,
}

CHECK_FACTORIES: Dict[str, Callable[..., CrossCheck]] = {
    "ordered": ordered,
}
