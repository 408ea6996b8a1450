from typing import Any, Dict, List, NamedTuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

from counselor.domain.tool.tool_registry import ToolDescriptor


class ValidationResult(NamedTuple):
    is_valid: bool
    errors: List[str]


# Parameter validation
class ToolParameterValidator:
    """Checks tool call arguments against the tool's input schema"""

    def __init__(self):
        self._validators: Dict[str, Draft202012Validator] = {}

    def validate_tool_call(self, tool: ToolDescriptor, parameters: Dict[str, Any]) -> ValidationResult:
        validator = self._validators.get(tool.name)
        if validator is None:
            validator = self._validators[tool.name] = Draft202012Validator(tool.input_schema)

        errors = list(validator.iter_errors(parameters))
        if not errors:
            return ValidationResult(True, [])

        error = best_match(errors)
        location = "/".join(str(part) for part in error.absolute_path) or "input"
        return ValidationResult(False, [f"Schema validation failed at {location}: {error.message}"])
