"""
Data types shared by every stage of the named function pipeline.

All types are immutable. Specs are declared once per function and shared
by every invocation; everything else is created fresh per invocation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple


class _Omitted:
    """Marker for an argument the caller did not supply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMITTED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Omitted, ())


OMITTED = _Omitted()


class HostError:
    """Host-native error value such as ``#N/A`` or ``#DIV/0!``.

    Use ``HostError.of(code)`` to get the shared instance for a code. Only
    the codes in CODES exist.
    """

    __slots__ = ("code",)
    _instances: Dict[str, "HostError"] = {}

    CODES = ("#N/A", "#DIV/0!", "#VALUE!", "#REF!", "#NUM!", "#NAME?", "#NULL!")

    def __init__(self, code: str):
        self.code = code

    @classmethod
    def of(cls, code: str) -> "HostError":
        canon = code.upper()
        if canon not in cls._instances:
            raise ValueError(f"Unknown host error code '{code}'")
        return cls._instances[canon]

    def __repr__(self) -> str:
        return f"HostError({self.code!r})"

    def __str__(self) -> str:
        return self.code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HostError):
            return self.code == other.code
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.code)


HostError._instances = {code: HostError(code) for code in HostError.CODES}


def find_host_error(value: Any) -> Optional[HostError]:
    """Return the first HostError in value (searching nested lists), or None."""
    if isinstance(value, HostError):
        return value
    if isinstance(value, (list, tuple)):
        for item in value:
            found = find_host_error(item)
            if found is not None:
                return found
    return None


# A validator receives the argument name and its resolved value and returns
# a message, or "" when the value is valid.
Validator = Callable[[str, Any], str]

KINDS = ("any", "number", "text", "boolean", "list")

KIND_DEFAULTS: Dict[str, Any] = {
    "any": "",
    "number": 0,
    "text": "",
    "boolean": False,
    "list": (),
}

SEVERITY_ERROR = "error"

# Result used in place of anything the core logic could not produce safely
PLACEHOLDER = ""


@dataclass(frozen=True)
class ArgumentSpec:
    """Declaration of one function argument."""

    name: str
    required: bool = True
    default_value: Any = OMITTED
    validators: Tuple[Validator, ...] = ()
    kind: str = "any"
    description: str = ""
    example: Any = None

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown argument kind '{self.kind}' for '{self.name}'")
        # Accept any iterable of validators but store a tuple
        object.__setattr__(self, "validators", tuple(self.validators))
        if isinstance(self.default_value, list):
            object.__setattr__(self, "default_value", tuple(self.default_value))

    @property
    def default(self) -> Any:
        """Value substituted when an optional argument is omitted."""
        if self.default_value is OMITTED:
            return KIND_DEFAULTS[self.kind]
        return self.default_value


@dataclass(frozen=True)
class BoundArgument:
    name: str
    raw_value: Any
    resolved_value: Any
    spec: ArgumentSpec = field(repr=False, compare=False)

    @property
    def omitted(self) -> bool:
        return self.raw_value is OMITTED


@dataclass(frozen=True)
class ValidationMessage:
    argument_name: str
    text: str = ""
    severity: str = SEVERITY_ERROR

    @property
    def is_error(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class ErrorReport:
    messages: Tuple[ValidationMessage, ...] = ()
    combined_text: str = ""

    @property
    def ordered_messages(self) -> Tuple[str, ...]:
        return tuple(message.text for message in self.messages)

    def __bool__(self) -> bool:
        return bool(self.messages)


@dataclass(frozen=True)
class InvocationResult:
    result: Any
    error_report: ErrorReport
    output: Any
    arguments: Tuple[BoundArgument, ...] = ()

    @property
    def ok(self) -> bool:
        """True when the output is the computed result."""
        return not self.error_report
