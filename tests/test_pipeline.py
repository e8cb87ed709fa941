#!/usr/bin/env python3
"""
Tests for the validate-and-compute pipeline.

Test organization:
1. TestMultiplyScenarios - the canonical two-argument examples
2. TestPipelineProperties - omission, defaulting, precedence, order, idempotence
3. TestComputeResult - isolation of core logic faults
4. TestHostError - shared host error values
5. TestSelectOutput - error/result precedence
6. TestNamedFunction - construction helpers
"""

import itertools

import pytest

from formula_pipeline import (
    OMITTED,
    ArgumentSpec,
    HostError,
    NamedFunction,
    named_function,
    ordered,
)
from formula_pipeline.aggregator import aggregate_errors
from formula_pipeline.binder import bind_arguments
from formula_pipeline.models import PLACEHOLDER, ValidationMessage
from formula_pipeline.pipeline import compute_result, select_output
from formula_pipeline.validators import nonzero


@named_function(
    "multiply",
    parameters=[ArgumentSpec("number1", kind="number"), ArgumentSpec("number2", kind="number")],
)
def MULTIPLY(number1, number2):
    """Multiplies two numbers."""
    return number1 * number2


AFFIX = NamedFunction(
    "AFFIX",
    [
        ArgumentSpec("text", kind="text"),
        ArgumentSpec("prefix", required=False, kind="text"),
        ArgumentSpec("suffix", required=False, kind="text"),
    ],
    lambda text, prefix, suffix: f"{prefix}{text}{suffix}",
)


class TestMultiplyScenarios:
    """Test the documented MULTIPLY examples."""

    def test_valid_numbers(self):
        """Test that valid input returns the product unmodified."""
        assert MULTIPLY(5, 10) == 50

    def test_first_number_omitted(self):
        """Test the omission report."""
        assert MULTIPLY(OMITTED, 10) == "ERROR:\n • [number1] argument is omitted"

    def test_first_number_not_a_number(self):
        """Test the type report."""
        assert MULTIPLY("abc", 10) == "ERROR:\n • [number1] argument is not a number"

    def test_both_omitted(self):
        """Test that both messages appear, number1 first."""
        assert MULTIPLY() == (
            "ERROR:\n • [number1] argument is omitted\n • [number2] argument is omitted"
        )

    def test_optional_prefix_omitted(self):
        """Test that an omitted optional prefix resolves to "" without error."""
        invocation = AFFIX.invoke("report")

        assert invocation.arguments[1].resolved_value == ""
        assert invocation.error_report.ordered_messages == ()
        assert invocation.output == "report"


class TestPipelineProperties:
    """Test properties that hold for every input."""

    VALUES = [OMITTED, 3, 0, -2.5, "abc", "", True, None, HostError.of("#N/A")]

    def test_required_omission_detected_for_each_argument(self):
        """Test omission detection with all other arguments valid."""
        for index, spec in enumerate(MULTIPLY.parameters):
            args = [2, 2]
            args[index] = OMITTED

            output = MULTIPLY(*args)

            assert output.startswith("ERROR:")
            assert f"[{spec.name}] argument is omitted" in output

    def test_optional_omission_never_reported(self):
        """Test that omitted optional arguments get their defaults silently."""
        seen = {}

        def logic(text, prefix, suffix):
            seen.update(prefix=prefix, suffix=suffix)
            return text

        function = NamedFunction("AFFIX", AFFIX.parameters, logic)
        invocation = function.invoke("x", OMITTED, OMITTED)

        assert invocation.ok
        assert seen == {"prefix": "", "suffix": ""}

    def test_error_precedence_is_exhaustive(self):
        """Test that output is the report text exactly when it has messages."""
        for a, b in itertools.product(self.VALUES, repeat=2):
            invocation = MULTIPLY.invoke(a, b)
            report = invocation.error_report

            if report.ordered_messages:
                assert invocation.output == report.combined_text
            else:
                assert invocation.output == invocation.result

    def test_no_host_error_or_exception_leaks(self):
        """Test that no output is a host error value."""
        for a, b in itertools.product(self.VALUES, repeat=2):
            output = MULTIPLY(a, b)

            assert not isinstance(output, (HostError, BaseException))

    def test_first_declared_argument_reported_first(self):
        """Test order stability when several arguments are invalid."""

        def slow_check(name, value):
            return f"[{name}] argument is rejected"

        function = NamedFunction(
            "PAIR",
            [ArgumentSpec("a", validators=(slow_check,)), ArgumentSpec("b", kind="number")],
            lambda a, b: b,
        )

        report = function.invoke("x", "y").error_report

        assert report.ordered_messages == (
            "[a] argument is rejected",
            "[b] argument is not a number",
        )

    def test_invocation_is_idempotent(self):
        """Test that repeated invocations give identical output."""
        for a, b in itertools.product(self.VALUES, repeat=2):
            assert MULTIPLY(a, b) == MULTIPLY(a, b)

    def test_result_is_computed_even_when_invalid(self):
        """Test that core logic runs on unvalidated input."""
        calls = []

        def logic(number, divisor):
            calls.append((number, divisor))
            return "placeholder"

        function = NamedFunction(
            "CHECKED",
            [ArgumentSpec("number", kind="number"), ArgumentSpec("divisor", kind="number", validators=(nonzero,))],
            logic,
        )

        invocation = function.invoke(1, 0)

        assert calls == [(1, 0)]
        assert invocation.result == "placeholder"
        assert invocation.output == "ERROR:\n • [divisor] argument must not be zero"

    def test_cross_check_message_after_valid_arguments(self):
        """Test that a cross-argument failure is reported."""
        function = NamedFunction(
            "SPAN",
            [ArgumentSpec("start", kind="number"), ArgumentSpec("end", kind="number")],
            lambda start, end: end - start,
            checks=[ordered("start", "end")],
        )

        assert function(1, 4) == 3
        assert function(4, 1) == "ERROR:\n • [start] argument must not be after [end]"

    def test_computation_fault_is_reported_when_arguments_are_valid(self):
        """Test that a fault with valid arguments becomes an error report."""
        function = NamedFunction("RATIO", [ArgumentSpec("a", kind="number")], lambda a: 1 / a)

        invocation = function.invoke(0)

        assert invocation.result == PLACEHOLDER
        assert invocation.output == "ERROR:\n • RATIO could not compute a result"

    def test_computation_fault_is_hidden_by_argument_errors(self):
        """Test that only argument messages appear when both fail."""
        invocation = MULTIPLY.invoke(OMITTED, 10)

        assert invocation.result == PLACEHOLDER
        assert invocation.error_report.ordered_messages == ("[number1] argument is omitted",)


class TestComputeResult:
    """Test the isolation of core logic."""

    def setup_method(self):
        """Bind one argument before each test."""
        self.arguments = bind_arguments([ArgumentSpec("x")], (2,))

    def test_returns_result(self):
        """Test that a normal result is returned without a fault."""
        result, fault = compute_result("F", lambda x: x * 2, self.arguments)

        assert result == 4
        assert fault is None

    def test_exception_becomes_placeholder(self):
        """Test that raising logic yields the placeholder and a fault."""

        def broken(x):
            raise ValueError("bad")

        result, fault = compute_result("F", broken, self.arguments)

        assert result == PLACEHOLDER
        assert fault == ValidationMessage("F", "F could not compute a result")

    def test_host_error_result_becomes_placeholder(self):
        """Test that a host error produced by logic is intercepted."""
        result, fault = compute_result("F", lambda x: HostError.of("#DIV/0!"), self.arguments)

        assert result == PLACEHOLDER
        assert fault.text == "F could not compute a result (#DIV/0!)"

    def test_nested_host_error_result_becomes_placeholder(self):
        """Test that a host error inside a returned tuple is intercepted."""
        result, fault = compute_result(
            "F", lambda x: (x, HostError.of("#N/A")), self.arguments
        )

        assert result == PLACEHOLDER
        assert fault.text == "F could not compute a result (#N/A)"

    def test_nested_host_error_output_through_function(self):
        """Test that a function returning a pair holding a host error outputs an error."""
        pair = NamedFunction(
            "PAIR", [ArgumentSpec("a", kind="number")], lambda a: (a, HostError.of("#N/A"))
        )

        assert pair(1) == "ERROR:\n • PAIR could not compute a result (#N/A)"


class TestHostError:
    """Test the shared host error values."""

    def test_codes_are_case_insensitive(self):
        """Test that lookups share one instance regardless of case."""
        assert HostError.of("#n/a") is HostError.of("#N/A")

    def test_unknown_code_rejected(self):
        """Test that codes outside the host's set raise ValueError."""
        with pytest.raises(ValueError, match="Unknown host error code '#BOGUS'"):
            HostError.of("#BOGUS")


class TestSelectOutput:
    """Test the error/result choice."""

    def test_errors_win(self):
        """Test that any message selects the report text."""
        report = aggregate_errors([ValidationMessage("a", "[a] argument is omitted")])

        assert select_output(42, report) == report.combined_text

    def test_result_without_errors(self):
        """Test that a falsy result is still returned unmodified."""
        report = aggregate_errors([ValidationMessage("a")])

        assert select_output(0, report) == 0
        assert select_output("", report) == ""


class TestNamedFunction:
    """Test NamedFunction construction."""

    def test_name_is_upper_cased(self):
        """Test name normalization."""
        assert MULTIPLY.name == "MULTIPLY"

    def test_decorator_uses_docstring_as_description(self):
        """Test the decorator defaults."""
        assert MULTIPLY.description == "Multiplies two numbers."
        assert MULTIPLY.version == "1.0.0"

    def test_signature_marks_optional_parameters(self):
        """Test the display signature."""
        assert AFFIX.signature == "AFFIX(text, [prefix], [suffix])"

    def test_duplicate_parameter_names_rejected(self):
        """Test that ambiguous declarations are refused."""
        with pytest.raises(ValueError, match="duplicate"):
            NamedFunction("BAD", [ArgumentSpec("x"), ArgumentSpec("x")], lambda x: x)

    def test_named_arguments(self):
        """Test invocation by argument name."""
        assert AFFIX(text="b", suffix="c", prefix="a") == "abc"

    def test_unknown_kind_rejected(self):
        """Test that specs only accept known kinds."""
        with pytest.raises(ValueError, match="kind"):
            ArgumentSpec("x", kind="date")
