"""
Named function declarations.

Functions are declared in YAML files, one per function, and paired with a
Python implementation by name. This module:
1. Validates declaration data against the declaration schema
2. Loads all .yaml files in a formulas directory
3. Builds NamedFunction objects from declarations and implementations
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from .models import KINDS, OMITTED, ArgumentSpec, Validator
from .pipeline import NamedFunction
from .validators import CHECK_FACTORIES, VALIDATOR_FACTORIES, CrossCheck

FORMULAS_DIR = Path(__file__).parent / "formulas"

REQUIRED_FIELDS = ["name", "version", "description", "parameters"]
OPTIONAL_FIELDS = ["implementation", "checks", "notes"]
PARAMETER_FIELDS = ["name", "description", "example", "type", "required", "default", "validators"]


class DeclarationError(Exception):
    """Raised when a YAML file doesn't meet the declaration schema."""

    pass


def _single_entry(entry: Any, what: str, filename: str):
    """Split a 'name' or {name: params} entry into (name, params)."""
    if isinstance(entry, str):
        return entry, None
    if isinstance(entry, dict) and len(entry) == 1:
        return next(iter(entry.items()))
    raise DeclarationError(
        f"{filename}: Each {what} must be a name or a single-key mapping, got {entry!r}"
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_settings(name: str, params: Any, filename: str) -> None:
    """Reject validator settings of the wrong shape before building."""
    prefix = f"{filename}: Invalid settings for validator '{name}'"
    if name == "range":
        if not isinstance(params, dict):
            raise DeclarationError(f"{prefix}: expected a mapping with 'min' and/or 'max'")
        unknown = set(params) - {"min", "max"}
        if unknown:
            raise DeclarationError(f"{prefix}: unexpected key(s) {', '.join(sorted(map(str, unknown)))}")
        for key, bound in params.items():
            if bound is not None and not _is_number(bound):
                raise DeclarationError(f"{prefix}: '{key}' must be a number")
    elif name == "one_of":
        if not isinstance(params, list):
            raise DeclarationError(f"{prefix}: expected a list of allowed values")
    elif name == "max_length":
        if not isinstance(params, int) or isinstance(params, bool) or params < 0:
            raise DeclarationError(f"{prefix}: expected a non-negative whole number")


def build_validator(entry: Any, filename: str = "<declaration>") -> Validator:
    """
    Create a validator from a declaration entry.

    Args:
        entry: 'integer', {'range': {'min': 0}}, {'one_of': ['a', 'b']}, ...
        filename: Name of the declaring file (for error messages)

    Returns:
        The validator callable

    Raises:
        DeclarationError: If the validator is unknown or misconfigured
    """
    name, params = _single_entry(entry, "validator", filename)
    if name not in VALIDATOR_FACTORIES:
        raise DeclarationError(f"{filename}: Unknown validator '{name}'")

    _check_settings(name, params, filename)
    factory = VALIDATOR_FACTORIES[name]
    try:
        if params is None:
            return factory()
        if isinstance(params, dict):
            return factory(**params)
        return factory(params)
    except TypeError as e:
        raise DeclarationError(f"{filename}: Invalid settings for validator '{name}': {e}")


def build_check(entry: Any, filename: str = "<declaration>") -> CrossCheck:
    """
    Create a cross-argument check from a declaration entry.

    Args:
        entry: {'ordered': ['start', 'end']} or {'ordered': {'first': ..., 'second': ...}}
        filename: Name of the declaring file (for error messages)

    Returns:
        The CrossCheck

    Raises:
        DeclarationError: If the check is unknown or misconfigured
    """
    name, params = _single_entry(entry, "check", filename)
    if name not in CHECK_FACTORIES:
        raise DeclarationError(f"{filename}: Unknown check '{name}'")

    factory = CHECK_FACTORIES[name]
    try:
        if isinstance(params, dict):
            check = factory(**params)
        elif isinstance(params, list):
            check = factory(*params)
        else:
            raise DeclarationError(f"{filename}: Check '{name}' needs a list or mapping of settings")
    except TypeError as e:
        raise DeclarationError(f"{filename}: Invalid settings for check '{name}': {e}")

    for argument_name in check.names:
        if not isinstance(argument_name, str):
            raise DeclarationError(
                f"{filename}: Check '{name}' must name parameters as text, got {argument_name!r}"
            )
    return check


def validate_declaration(data: Dict[str, Any], filename: str) -> None:
    """
    Validate declaration data against the schema.

    Expected schema:
    - name: string (required)
    - version: string or number (required)
    - description: string (required)
    - parameters: list of dicts with name, description (required)
      and example, type, required, default, validators (optional)
    - implementation: string
    - checks: list
    - notes: string

    Args:
        data: Parsed YAML data
        filename: Name of the file being validated (for error messages)

    Raises:
        DeclarationError: If validation fails
    """
    if not isinstance(data, dict):
        raise DeclarationError(f"{filename}: Invalid YAML structure (expected dictionary)")

    # Check required fields exist and are not empty
    for field in REQUIRED_FIELDS:
        if field not in data:
            raise DeclarationError(f"{filename}: Missing required field '{field}'")
        if data[field] is None or (isinstance(data[field], str) and not data[field].strip()):
            raise DeclarationError(f"{filename}: Required field '{field}' is empty")

    # Validate field types
    if not isinstance(data["name"], str):
        raise DeclarationError(f"{filename}: Field 'name' must be a string")

    if not isinstance(data["version"], (str, float, int)):
        raise DeclarationError(f"{filename}: Field 'version' must be a string or number")

    if not isinstance(data["description"], str):
        raise DeclarationError(f"{filename}: Field 'description' must be a string")

    if not isinstance(data["parameters"], list):
        raise DeclarationError(f"{filename}: Field 'parameters' must be a list")

    if "checks" in data and not isinstance(data["checks"], list):
        raise DeclarationError(f"{filename}: Field 'checks' must be a list")

    # Validate parameters structure
    seen = set()
    for i, param in enumerate(data["parameters"]):
        if not isinstance(param, dict):
            raise DeclarationError(f"{filename}: Parameter {i} must be a dictionary")
        if "name" not in param:
            raise DeclarationError(f"{filename}: Parameter {i} missing required field 'name'")
        if "description" not in param:
            raise DeclarationError(f"{filename}: Parameter {i} missing required field 'description'")

        param_name = param["name"]
        if not isinstance(param_name, str) or not param_name.strip():
            raise DeclarationError(f"{filename}: Parameter {i} field 'name' must be a non-empty string")
        if param_name in seen:
            raise DeclarationError(f"{filename}: Duplicate parameter name '{param_name}'")
        seen.add(param_name)

        kind = param.get("type", "any")
        if kind not in KINDS:
            raise DeclarationError(
                f"{filename}: Parameter '{param_name}' has unknown type '{kind}' "
                f"(expected one of: {', '.join(KINDS)})"
            )

        if not isinstance(param.get("required", True), bool):
            raise DeclarationError(f"{filename}: Parameter '{param_name}' field 'required' must be true or false")

        validators = param.get("validators", [])
        if not isinstance(validators, list):
            raise DeclarationError(f"{filename}: Parameter '{param_name}' field 'validators' must be a list")
        for entry in validators:
            build_validator(entry, filename)

        unexpected = set(param.keys()) - set(PARAMETER_FIELDS)
        if unexpected:
            print(
                f"Warning: {filename} parameter '{param_name}' contains unexpected fields: "
                f"{', '.join(sorted(unexpected))}"
            )

    for entry in data.get("checks", []):
        check = build_check(entry, filename)
        unknown = [name for name in check.names if name not in seen]
        if unknown:
            raise DeclarationError(
                f"{filename}: Check refers to undeclared parameter(s): {', '.join(unknown)}"
            )

    # Check for unexpected fields
    all_allowed_fields = set(REQUIRED_FIELDS + OPTIONAL_FIELDS)
    unexpected_fields = set(data.keys()) - all_allowed_fields
    if unexpected_fields:
        print(f"Warning: {filename} contains unexpected fields: {', '.join(sorted(unexpected_fields))}")


def build_spec(param: Dict[str, Any], filename: str = "<declaration>") -> ArgumentSpec:
    """Create an ArgumentSpec from one validated parameter entry."""
    return ArgumentSpec(
        name=param["name"],
        required=param.get("required", True),
        default_value=param.get("default", OMITTED),
        validators=tuple(build_validator(entry, filename) for entry in param.get("validators", [])),
        kind=param.get("type", "any"),
        description=" ".join(str(param["description"]).split()),
        example=param.get("example"),
    )


def build_function(
    data: Dict[str, Any],
    implementations: Mapping[str, Callable[..., Any]],
    filename: str = "<declaration>",
) -> NamedFunction:
    """
    Create a NamedFunction from a validated declaration.

    Args:
        data: Validated declaration data
        implementations: Core logic by implementation name
        filename: Name of the declaring file (for error messages)

    Returns:
        The NamedFunction

    Raises:
        DeclarationError: If no implementation is registered for the function
    """
    key = str(data.get("implementation", data["name"])).upper()
    if key not in implementations:
        raise DeclarationError(f"{filename}: No implementation registered for '{key}'")

    return NamedFunction(
        name=data["name"],
        parameters=[build_spec(param, filename) for param in data["parameters"]],
        logic=implementations[key],
        checks=[build_check(entry, filename) for entry in data.get("checks", [])],
        description=" ".join(data["description"].split()),
        version=data["version"],
    )


def load_declarations(directory: Optional[Path] = None) -> List[Dict[str, Any]]:
    """
    Load all .yaml files from a formulas directory and validate them.

    Args:
        directory: Directory holding the declarations (defaults to the bundled formulas)

    Returns:
        List of validated declaration dictionaries with 'filename' added

    Raises:
        DeclarationError: If any file fails validation
    """
    directory = Path(directory) if directory is not None else FORMULAS_DIR
    declarations = []
    yaml_files = sorted(directory.glob("*.yaml"))

    if not yaml_files:
        print(f"Warning: No .yaml files found in {directory}")
        return declarations

    names = {}
    for yaml_file in yaml_files:
        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DeclarationError(f"{yaml_file.name}: Invalid YAML syntax - {e}")
        except OSError as e:
            raise DeclarationError(f"{yaml_file.name}: Error reading file - {e}")

        if data is None:
            raise DeclarationError(f"{yaml_file.name}: File is empty")

        validate_declaration(data, yaml_file.name)

        name = data["name"].upper()
        if name in names:
            raise DeclarationError(
                f"{yaml_file.name}: Function '{name}' is already declared in {names[name]}"
            )
        names[name] = yaml_file.name

        # Add filename for error reporting
        data["filename"] = yaml_file.name
        declarations.append(data)

    return declarations


def load_library(
    directory: Optional[Path] = None,
    implementations: Optional[Mapping[str, Callable[..., Any]]] = None,
) -> Dict[str, NamedFunction]:
    """
    Load declarations and pair them with their implementations.

    Args:
        directory: Directory holding the declarations (defaults to the bundled formulas)
        implementations: Core logic by name (defaults to the bundled library)

    Returns:
        Dict mapping upper-cased function names to NamedFunction objects

    Raises:
        DeclarationError: If a declaration is invalid or has no implementation
    """
    if implementations is None:
        from .library import IMPLEMENTATIONS

        implementations = IMPLEMENTATIONS

    functions = {}
    for data in load_declarations(directory):
        function = build_function(data, implementations, data["filename"])
        functions[function.name] = function
    return functions
