"""
Argument binding.

Resolves the raw values a caller supplied against the declared argument
specs. Binding is total: it never raises, and every anomaly is left for
the validator to report.
"""

from typing import Any, List, Mapping, Optional, Sequence

from .models import OMITTED, ArgumentSpec, BoundArgument


def resolve_value(spec: ArgumentSpec, raw_value: Any) -> Any:
    """
    Resolve a single raw value against its spec.

    Args:
        spec: Declaration of the argument
        raw_value: Value supplied by the caller, or OMITTED

    Returns:
        The raw value unchanged when present. When omitted, OMITTED for a
        required argument and the declared (or kind) default otherwise.
    """
    if raw_value is not OMITTED:
        return raw_value
    if spec.required:
        return OMITTED
    return spec.default


def bind_arguments(
    specs: Sequence[ArgumentSpec],
    args: Sequence[Any] = (),
    kwargs: Optional[Mapping[str, Any]] = None,
) -> List[BoundArgument]:
    """
    Produce one BoundArgument per spec, in declaration order.

    Positional values align with specs by position. Named values fill any
    spec that has no positional value (or whose positional value is
    OMITTED). Surplus positional values and unknown names are ignored.

    Args:
        specs: Argument declarations
        args: Positional raw values
        kwargs: Named raw values

    Returns:
        List of BoundArgument, one per spec
    """
    kwargs = kwargs or {}
    bound = []

    for index, spec in enumerate(specs):
        raw_value = args[index] if index < len(args) else OMITTED
        if raw_value is OMITTED:
            raw_value = kwargs.get(spec.name, OMITTED)

        bound.append(
            BoundArgument(
                name=spec.name,
                raw_value=raw_value,
                resolved_value=resolve_value(spec, raw_value),
                spec=spec,
            )
        )

    return bound
