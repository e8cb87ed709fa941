"""
Named function pipeline.

Functions built on this package bind, validate and compute in one fixed
order, and report every argument problem in a single error block:
- models: specs, the OMITTED marker and per-invocation records
- binder / validators / aggregator / pipeline: the pipeline stages
- declarations: YAML function declarations
- call_parser: parser for call text such as '=MULTIPLY(5, 10)'
- lint_declarations: convention checks for declaration files
"""

from .aggregator import aggregate_errors, format_report
from .binder import bind_arguments
from .models import (
    OMITTED,
    ArgumentSpec,
    BoundArgument,
    ErrorReport,
    HostError,
    InvocationResult,
    ValidationMessage,
)
from .pipeline import NamedFunction, compute_result, named_function, select_output
from .validators import CrossCheck, ordered, validate_arguments

__version__ = "1.0.0"

__all__ = [
    "OMITTED",
    "ArgumentSpec",
    "BoundArgument",
    "CrossCheck",
    "ErrorReport",
    "HostError",
    "InvocationResult",
    "NamedFunction",
    "ValidationMessage",
    "aggregate_errors",
    "bind_arguments",
    "compute_result",
    "format_report",
    "named_function",
    "ordered",
    "select_output",
    "validate_arguments",
]
