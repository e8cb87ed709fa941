"""
Command-line entry point.

Subcommands:
    call TEXT   Parse a call such as '=MULTIPLY(5, 10)' and print its output
    lint [DIR]  Lint declaration YAML files
    list        List the declared functions

Exit codes:
    0: Success (a computed result, or lint passed)
    1: The output is an error report, or lint found errors
    2: The call text, the function name or a declaration is invalid
"""

import argparse
import sys
from pathlib import Path
from typing import Any, List, Optional

from pyparsing import ParseException

from .declarations import DeclarationError, load_library
from .call_parser import CallParser
from .lint_declarations import DeclarationLinter

EXIT_OK = 0
EXIT_REPORT = 1
EXIT_USAGE = 2


def display(value: Any) -> str:
    """Render an output value for the terminal."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, tuple):
        if value and all(isinstance(row, tuple) for row in value):
            return "\n".join("\t".join(display(item) for item in row) for row in value)
        return "\n".join(display(item) for item in value)
    return str(value)


def cmd_call(arguments: argparse.Namespace) -> int:
    parser = CallParser()
    try:
        call = parser.parse(arguments.text)
    except ParseException as e:
        print(f"❌ Could not parse call at position {e.loc}: {e.msg}", file=sys.stderr)
        return EXIT_USAGE

    try:
        functions = load_library(arguments.formulas)
    except DeclarationError as e:
        print(f"❌ Declaration Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if call.name not in functions:
        print(f"❌ Unknown function '{call.name}'", file=sys.stderr)
        return EXIT_USAGE

    invocation = functions[call.name].invoke(*call.arguments)
    print(display(invocation.output))
    return EXIT_OK if invocation.ok else EXIT_REPORT


def cmd_list(arguments: argparse.Namespace) -> int:
    try:
        functions = load_library(arguments.formulas)
    except DeclarationError as e:
        print(f"❌ Declaration Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    for name in sorted(functions):
        function = functions[name]
        print(f"{function.signature}  v{function.version}")
        print(f"    {function.description}")
        for spec in function.parameters:
            optional = "" if spec.required else ", optional"
            print(f"    • {spec.name} ({spec.kind}{optional}): {spec.description}")
    return EXIT_OK


def _without_path(message: str, path: Path) -> str:
    prefix = f"{path}: "
    return message[len(prefix):] if message.startswith(prefix) else message


def cmd_lint(arguments: argparse.Namespace) -> int:
    linter = DeclarationLinter()
    reports = linter.lint_directory(arguments.directory)

    rule_names = ", ".join(rule.name for rule in linter.rules)
    print(f"Linting {len(reports)} declaration file(s) with: {rule_names}")

    for report in reports:
        marker = "❌" if report.errors else ("⚠️ " if report.warnings else "✓")
        print(f"{marker} {report.path.name}")
        for error in report.errors:
            print(f"    error: {_without_path(error, report.path)}")
        for warning in report.warnings:
            print(f"    warning: {_without_path(warning, report.path)}")

    failed = [report for report in reports if not report.passed]
    warning_count = sum(len(report.warnings) for report in reports)
    error_count = sum(len(report.errors) for report in reports)
    print()
    print(
        f"{len(reports) - len(failed)} of {len(reports)} file(s) passed; "
        f"{error_count} error(s), {warning_count} warning(s)"
    )
    return EXIT_REPORT if failed else EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formula-pipeline",
        description="Validate-and-compute named functions.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    call_parser = subparsers.add_parser("call", help="Invoke a named function from call text.")
    call_parser.add_argument("text", help="Call text, e.g. '=MULTIPLY(5, 10)'.")
    call_parser.add_argument("--formulas", type=Path, default=None, help="Declarations directory.")
    call_parser.set_defaults(func=cmd_call)

    list_parser = subparsers.add_parser("list", help="List declared functions.")
    list_parser.add_argument("--formulas", type=Path, default=None, help="Declarations directory.")
    list_parser.set_defaults(func=cmd_list)

    lint_parser = subparsers.add_parser("lint", help="Lint declaration YAML files.")
    lint_parser.add_argument("directory", nargs="?", type=Path, default=None, help="Declarations directory.")
    lint_parser.set_defaults(func=cmd_lint)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    arguments = parser.parse_args(argv)
    return arguments.func(arguments)


if __name__ == "__main__":
    sys.exit(main())
