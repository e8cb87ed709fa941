"""
Declaration YAML Linter

Validates function declaration files against the naming and structure
conventions. Schema problems are the loader's job; these rules catch
declarations that load fine but break the conventions.

Usage:
    formula-pipeline lint [DIRECTORY]
"""

import re
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import yaml
from pyparsing import ParseException

from .call_parser import CallParser
from .declarations import FORMULAS_DIR


class FileReport(NamedTuple):
    path: Path
    errors: List[str]
    warnings: List[str]

    @property
    def passed(self) -> bool:
        return not self.errors


class LintRule:
    """Base class for lint rules."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        """
        Check the rule against a YAML file.

        Args:
            file_path: Path to the YAML file
            data: Parsed YAML data

        Returns:
            Tuple of (errors, warnings) - both are lists of messages
        """
        raise NotImplementedError("Subclasses must implement check()")


def _parameters(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Parameter entries that are dictionaries (others are a schema problem)."""
    parameters = data.get("parameters")
    if not isinstance(parameters, list):
        return []
    return [param for param in parameters if isinstance(param, dict)]


class UppercaseNameRule(LintRule):
    """Rule: Function names are upper case, like built-in spreadsheet functions."""

    PATTERN = re.compile(r"^[A-Z][A-Z0-9_.]*$")

    def __init__(self):
        super().__init__(
            name="uppercase-name",
            description="Function name must be upper case letters, digits, '_' or '.'",
        )

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        name = data.get("name")
        if not isinstance(name, str):
            return errors, warnings  # Schema validation reports this

        if not self.PATTERN.match(name):
            errors.append(
                f"{file_path}: Function name '{name}' must start with a letter and use only "
                f"upper case letters, digits, '_' or '.' (e.g., '{name.upper()}')"
            )

        return errors, warnings


class RequireParameterExamplesRule(LintRule):
    """Rule: All parameters must have non-empty example values."""

    def __init__(self):
        super().__init__(
            name="require-parameter-examples",
            description="All parameters must have non-empty example values",
        )

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        """
        Check that all parameters have non-empty examples.

        Args:
            file_path: Path to the YAML file
            data: Parsed YAML data

        Returns:
            Tuple of (errors, warnings)
        """
        errors = []
        warnings = []

        for i, param in enumerate(_parameters(data)):
            param_name = param.get("name", f"parameter-{i}")

            if "example" not in param:
                errors.append(
                    f"{file_path}: Parameter '{param_name}' is missing 'example' field. "
                    f"Provide a concrete example value (e.g., '\"abc\"', '0', 'TRUE', '{{1, 2}}')"
                )
            else:
                example = param.get("example")
                if example is None or (isinstance(example, str) and example == ""):
                    errors.append(
                        f"{file_path}: Parameter '{param_name}' has empty example. "
                        f"Provide a concrete example value (e.g., '\"\"', '0', 'FALSE', '{{1, 2}}')"
                    )

        return errors, warnings


class ParseableExamplesRule(LintRule):
    """Rule: Text examples must be valid argument literals."""

    def __init__(self):
        super().__init__(
            name="parseable-examples",
            description="Parameter examples must be valid argument literals",
        )
        self.parser = CallParser()

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        for param in _parameters(data):
            example = param.get("example")
            # Non-text examples (YAML numbers and booleans) are literals already
            if not isinstance(example, str) or example == "":
                continue

            try:
                self.parser.parse_argument(example)
            except ParseException as e:
                error_msg = (
                    f"{file_path}: Parameter '{param.get('name')}' example {example!r} "
                    f"is not a valid argument literal"
                )
                if hasattr(e, "loc"):
                    error_msg += f" at position {e.loc}"
                if hasattr(e, "msg"):
                    error_msg += f": {e.msg}"
                errors.append(error_msg)

        return errors, warnings


class NoRequiredDefaultRule(LintRule):
    """Rule: Required parameters must not declare a default."""

    def __init__(self):
        super().__init__(
            name="no-required-default",
            description="Required parameters must not declare a default (it is never used)",
        )

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        for param in _parameters(data):
            if param.get("required", True) and "default" in param:
                errors.append(
                    f"{file_path}: Parameter '{param.get('name')}' is required but declares a default. "
                    f"Either remove the default or mark the parameter 'required: false'."
                )

        return errors, warnings


class OptionalAfterRequiredRule(LintRule):
    """Rule: Optional parameters should come after every required parameter."""

    def __init__(self):
        super().__init__(
            name="optional-after-required",
            description="Optional parameters should follow all required parameters",
        )

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        first_optional = None
        for param in _parameters(data):
            if not param.get("required", True):
                if first_optional is None:
                    first_optional = param.get("name")
            elif first_optional is not None:
                warnings.append(
                    f"{file_path}: Required parameter '{param.get('name')}' follows optional "
                    f"parameter '{first_optional}'. Callers must then leave '{first_optional}' "
                    f"as an empty argument to reach it."
                )

        return errors, warnings


class KnownCheckArgumentsRule(LintRule):
    """Rule: Cross-argument checks may only name declared parameters."""

    def __init__(self):
        super().__init__(
            name="known-check-arguments",
            description="Cross-argument checks must refer to declared parameters",
        )

    def check(self, file_path: Path, data: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        errors = []
        warnings = []

        checks = data.get("checks")
        if not isinstance(checks, list):
            return errors, warnings

        # Non-text parameter names are a schema problem
        declared = {
            param.get("name") for param in _parameters(data) if isinstance(param.get("name"), str)
        }

        for entry in checks:
            if not isinstance(entry, dict) or len(entry) != 1:
                continue
            check_name, settings = next(iter(entry.items()))
            if isinstance(settings, dict):
                names = [settings.get("first"), settings.get("second")]
            elif isinstance(settings, list):
                names = settings[:2]
            else:
                continue

            for name in names:
                if not isinstance(name, str):
                    errors.append(
                        f"{file_path}: Check '{check_name}' must name parameters as text, got {name!r}"
                    )
                elif name not in declared:
                    errors.append(
                        f"{file_path}: Check '{check_name}' refers to undeclared parameter '{name}'"
                    )

        return errors, warnings


class DeclarationLinter:
    """Main linter class that runs all validation rules."""

    def __init__(self):
        self.rules: List[LintRule] = [
            UppercaseNameRule(),
            RequireParameterExamplesRule(),
            ParseableExamplesRule(),
            NoRequiredDefaultRule(),
            OptionalAfterRequiredRule(),
            KnownCheckArgumentsRule(),
        ]

    def lint_file(self, file_path: Path) -> Tuple[List[str], List[str]]:
        """
        Lint a single YAML file.

        Args:
            file_path: Path to the YAML file to lint

        Returns:
            Tuple of (errors, warnings)
        """
        errors = []
        warnings = []

        try:
            with open(file_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            errors.append(f"{file_path}: YAML parsing error: {e}")
            return errors, warnings
        except OSError as e:
            errors.append(f"{file_path}: Could not read file: {e}")
            return errors, warnings

        if not isinstance(data, dict):
            errors.append(f"{file_path}: Invalid YAML structure (expected dictionary)")
            return errors, warnings

        try:
            for rule in self.rules:
                rule_errors, rule_warnings = rule.check(file_path, data)
                errors.extend(rule_errors)
                warnings.extend(rule_warnings)
        except Exception as e:
            errors.append(f"{file_path}: Unexpected error: {e}")

        return errors, warnings

    def lint_directory(self, directory: Optional[Path] = None) -> List[FileReport]:
        """
        Lint every YAML file in a formulas directory, one report per file.

        Args:
            directory: Directory to search for YAML files (defaults to the bundled formulas)

        Returns:
            FileReport per file, sorted by path
        """
        if directory is None:
            directory = FORMULAS_DIR

        reports = []
        for yaml_file in sorted(Path(directory).glob("*.yaml")):
            errors, warnings = self.lint_file(yaml_file)
            reports.append(FileReport(yaml_file, errors, warnings))
        return reports

    def lint_all(self, directory: Optional[Path] = None) -> Tuple[int, int, int, List[str], List[str]]:
        """
        Lint all YAML files in a formulas directory.

        Args:
            directory: Directory to search for YAML files (defaults to the bundled formulas)

        Returns:
            Tuple of (files_checked, error_count, warning_count, errors, warnings)
        """
        reports = self.lint_directory(directory)
        all_errors = [error for report in reports for error in report.errors]
        all_warnings = [warning for report in reports for warning in report.warnings]

        return len(reports), len(all_errors), len(all_warnings), all_errors, all_warnings
