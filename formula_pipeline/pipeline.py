"""
The validate-and-compute pipeline.

    bind_arguments -> validate_arguments -> aggregate_errors
                   \\-> compute_result
                                         -> select_output

NamedFunction ties the stages together so a function author only declares
argument specs, optional cross-argument checks and the core logic.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from .aggregator import aggregate_errors
from .binder import bind_arguments
from .models import (
    PLACEHOLDER,
    ArgumentSpec,
    BoundArgument,
    ErrorReport,
    InvocationResult,
    ValidationMessage,
    find_host_error,
)
from .validators import CrossCheck, validate_arguments


def compute_result(
    function_name: str, logic: Callable[..., Any], arguments: Sequence[BoundArgument]
) -> Tuple[Any, Optional[ValidationMessage]]:
    """
    Run the core logic on the resolved argument values.

    The logic runs whether or not validation passed. Anything it cannot
    produce safely is replaced by the placeholder.

    Args:
        function_name: Name used to attribute a computation fault
        logic: Core logic, called with one keyword argument per spec
        arguments: Bound arguments

    Returns:
        Tuple of (result, fault). fault is None when the logic returned a
        usable value, otherwise a message describing the failure.
    """
    values = {argument.name: argument.resolved_value for argument in arguments}
    try:
        result = logic(**values)
    except Exception:
        return PLACEHOLDER, ValidationMessage(
            function_name, f"{function_name} could not compute a result"
        )

    host_error = find_host_error(result)
    if host_error is not None:
        return PLACEHOLDER, ValidationMessage(
            function_name, f"{function_name} could not compute a result ({host_error.code})"
        )

    return result, None


def select_output(result: Any, report: ErrorReport) -> Any:
    """Return the report text if it holds any message, otherwise the result."""
    if report.ordered_messages:
        return report.combined_text
    return result


class NamedFunction:
    """A function built on the validate-and-compute pipeline."""

    def __init__(
        self,
        name: str,
        parameters: Sequence[ArgumentSpec],
        logic: Callable[..., Any],
        checks: Sequence[CrossCheck] = (),
        description: str = "",
        version: str = "1.0.0",
    ):
        names = [spec.name for spec in parameters]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"{name}: duplicate parameter names: {', '.join(duplicates)}")

        self.name = name.upper()
        self.parameters: Tuple[ArgumentSpec, ...] = tuple(parameters)
        self.logic = logic
        self.checks: Tuple[CrossCheck, ...] = tuple(checks)
        self.description = description
        self.version = str(version)

    def invoke(self, *args: Any, **kwargs: Any) -> InvocationResult:
        """
        Run one invocation through every stage of the pipeline.

        Args:
            *args: Positional raw values (OMITTED marks an omitted argument)
            **kwargs: Named raw values

        Returns:
            InvocationResult with the result, the error report and the
            selected output
        """
        arguments = bind_arguments(self.parameters, args, kwargs)
        messages: List[ValidationMessage] = validate_arguments(arguments, self.checks)
        result, fault = compute_result(self.name, self.logic, arguments)

        # A fault only matters when nothing else already masks the result
        if fault is not None and not any(message.is_error for message in messages):
            messages.append(fault)

        report = aggregate_errors(messages)
        return InvocationResult(
            result=result,
            error_report=report,
            output=select_output(result, report),
            arguments=tuple(arguments),
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.invoke(*args, **kwargs).output

    @property
    def signature(self) -> str:
        """Call signature with optional parameters in brackets."""
        parts = [spec.name if spec.required else f"[{spec.name}]" for spec in self.parameters]
        return f"{self.name}({', '.join(parts)})"

    def __repr__(self) -> str:
        return f"NamedFunction({self.signature})"


def named_function(
    name: str,
    parameters: Sequence[ArgumentSpec],
    checks: Sequence[CrossCheck] = (),
    description: str = "",
    version: str = "1.0.0",
) -> Callable[[Callable[..., Any]], NamedFunction]:
    """Decorator building a NamedFunction around plain core logic."""

    def decorate(logic: Callable[..., Any]) -> NamedFunction:
        return NamedFunction(
            name,
            parameters,
            logic,
            checks=checks,
            description=description or (logic.__doc__ or "").strip(),
            version=version,
        )

    return decorate
