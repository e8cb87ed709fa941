"""
Invocation text parser for named function calls.

This module provides:
- CallParser: a pyparsing-based parser for host-style call text
- ParsedCall: the function name and raw argument values of one call

The parser supports:
- An optional leading = (as typed into a cell)
- Empty arguments (e.g., AFFIX("x", , "!")), which become OMITTED
- String literals with doubled-quote escaping
- Numbers, TRUE/FALSE, array literals and host error literals

It does not evaluate expressions: operators, cell references and nested
calls are rejected.
"""

import re
from typing import Any, NamedTuple, Tuple

from pyparsing import (
    CaselessKeyword,
    DelimitedList,
    FollowedBy,
    Group,
    Literal,
    Optional,
    ParseException,
    Regex,
    Word,
    alphanums,
    alphas,
    pyparsing_common,
)

from .models import OMITTED, HostError


class ParsedCall(NamedTuple):
    name: str
    arguments: Tuple[Any, ...]


class CallParser:
    """Parser for named function call text using pyparsing."""

    def __init__(self):
        """Initialize the parser with grammar definition."""
        identifier = Word(alphas + "_", alphanums + "_.")
        lparen = Literal("(")
        rparen = Literal(")")
        comma = Literal(",")

        # Doubled-quote escaping: "" within a string represents a single "
        double_quoted = Regex(r'"(?:[^"]|"")*"')
        single_quoted = Regex(r"'(?:[^']|'')*'")

        def process_string_literal(t):
            """Strip the quotes and unescape doubled quotes."""
            s = t[0]
            content = s[1:-1]
            if s[0] == '"':
                content = content.replace('""', '"')
            else:
                content = content.replace("''", "'")
            # Wrapped in a list so "" survives as a token
            return [content]

        string_literal = (double_quoted | single_quoted).set_parse_action(process_string_literal)

        number = pyparsing_common.number()

        boolean = (CaselessKeyword("TRUE") | CaselessKeyword("FALSE")).set_parse_action(
            lambda t: [t[0].upper() == "TRUE"]
        )

        error_literal = Regex("|".join(re.escape(code) for code in HostError.CODES)).set_parse_action(
            lambda t: [HostError.of(t[0])]
        )

        scalar = string_literal | boolean | error_literal | number

        # Array literal: {1,2,3} or {1,2;3,4}
        # Commas separate columns, semicolons separate rows
        row = Group(DelimitedList(scalar))
        array_literal = (
            Literal("{").suppress() + DelimitedList(row, delim=";") + Literal("}").suppress()
        )

        def process_array(t):
            """Flatten a single-row array, keep rows as tuples otherwise."""
            rows = [tuple(r) for r in t]
            if len(rows) == 1:
                return [rows[0]]
            return [tuple(rows)]

        array_literal.set_parse_action(process_array)

        value = array_literal | scalar

        # An argument can be a value OR nothing (matched via lookahead)
        # The lookahead ensures empty args are only valid between/before commas or rparen
        empty_arg = FollowedBy(comma | rparen).set_parse_action(lambda: [OMITTED])

        argument = value | empty_arg
        args_list = Optional(DelimitedList(argument))

        self.call_grammar = (
            identifier("function") + lparen.suppress() + Group(args_list)("args") + rparen.suppress()
        )
        self.value_grammar = value

    def parse(self, text: str) -> ParsedCall:
        """
        Parse call text into a function name and raw argument values.

        Args:
            text: Call text such as '=MULTIPLY(5, 10)'

        Returns:
            ParsedCall with the upper-cased name and argument tuple

        Raises:
            ParseException: If the text is not a single function call
        """
        # Normalize: strip leading = and whitespace
        normalized = text.strip().lstrip("=").strip()
        result = self.call_grammar.parse_string(normalized, parse_all=True)

        arguments = list(result["args"])
        # F() parses as one empty argument; it means no arguments at all
        if len(arguments) == 1 and arguments[0] is OMITTED:
            arguments = []

        return ParsedCall(result["function"].upper(), tuple(arguments))

    def parse_argument(self, text: str) -> Any:
        """
        Parse a single argument literal.

        Args:
            text: Literal text such as '"abc"', '10' or '{1, 2}'

        Returns:
            The parsed value, or OMITTED for empty text

        Raises:
            ParseException: If the text is not a single literal
        """
        normalized = text.strip()
        if not normalized:
            return OMITTED
        return self.value_grammar.parse_string(normalized, parse_all=True)[0]


__all__ = ["CallParser", "ParsedCall", "ParseException"]
