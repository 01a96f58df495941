"""JSON Schema-based validation for lanbeacon YAML configuration.

The schema ships inside the package as ``config-schema.json`` next to this
module. Before validation the optional top-level ``variables`` group is
expanded into the rest of the document and removed.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator, ValidationError

logger = logging.getLogger(__name__)

_VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")
_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def is_var_key(key: Any) -> bool:
    """Brief: Check whether a key is a valid ALL_UPPERCASE variable name."""

    return isinstance(key, str) and bool(_VAR_NAME.fullmatch(key))


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value)


def expand_variables(cfg: Dict[str, Any]) -> None:
    """Brief: Expand top-level ``variables`` into the config and drop the group.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).

    Outputs:
      - None.

    Behavior:
      - A string that is exactly ``$KEY`` or ``${KEY}`` is replaced by the
        variable's YAML value (which may be a list, mapping, number, ...).
      - ``${KEY}`` occurrences inside longer strings are substituted with the
        value's text form; unknown keys are left untouched.
      - Variables may reference other variables; cycles raise ValueError.

    Example:
      >>> cfg = {"variables": {"DIR": "/tmp/x"}, "output": {"save_path": "${DIR}/eps"}}
      >>> expand_variables(cfg)
      >>> cfg
      {'output': {'save_path': '/tmp/x/eps'}}
    """

    variables = cfg.pop("variables", None)
    if variables is None:
        return
    if not isinstance(variables, dict):
        raise ValueError("config.variables must be a mapping when present")
    for k in variables:
        if not is_var_key(k):
            raise ValueError(
                f"config.variables key {k!r} must be ALL_UPPERCASE and match "
                "[A-Z_][A-Z0-9_]*"
            )

    resolved: Dict[str, Any] = {}

    def _resolve(key: str, stack: Tuple[str, ...]) -> Any:
        if key in resolved:
            return resolved[key]
        if key in stack:
            cycle = " -> ".join(stack + (key,))
            raise ValueError(f"config.variables contains a cycle: {cycle}")
        resolved[key] = _expand(variables[key], stack + (key,))
        return resolved[key]

    def _whole_ref(text: str) -> Optional[str]:
        if text.startswith("${") and text.endswith("}"):
            candidate = text[2:-1]
        elif text.startswith("$"):
            candidate = text[1:]
        else:
            return None
        return candidate if candidate in variables else None

    def _expand(obj: Any, stack: Tuple[str, ...]) -> Any:
        if isinstance(obj, str):
            ref = _whole_ref(obj)
            if ref is not None:
                return copy.deepcopy(_resolve(ref, stack))

            def _repl(match: re.Match[str]) -> str:
                name = match.group(1)
                if name not in variables:
                    return match.group(0)
                return _scalar_text(_resolve(name, stack))

            return _VAR_PATTERN.sub(_repl, obj)
        if isinstance(obj, list):
            return [_expand(item, stack) for item in obj]
        if isinstance(obj, dict):
            return {k: _expand(v, stack) for k, v in obj.items()}
        return obj

    for key in list(variables):
        _resolve(key, ())
    for top_key in list(cfg):
        cfg[top_key] = _expand(cfg[top_key], ())


def get_default_schema_path() -> Path:
    return Path(__file__).resolve().parent / "config-schema.json"


def load_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    path = schema_path or get_default_schema_path()
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Format jsonschema validation errors into a human-readable string.

    Inputs:
      - errors: jsonschema ValidationError instances.
      - config_path: Optional path of the YAML file, used in the header.

    Outputs:
      - str: One header line plus one ``- path: message`` line per error.
    """

    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        lines.append(f"- {instance_path}: {err.message}")
    return "\n".join(lines)


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Expand variables and validate a configuration mapping.

    Inputs:
      - cfg: Dict loaded from YAML (mutated: variables expanded and removed).
      - schema_path: Optional explicit JSON Schema path.
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: Policy for keys the schema does not describe:
        "ignore", "warn" (default, log and continue) or "error".

    Outputs:
      - None on success.

    Raises:
      - ValueError: for any non-extra-key schema violation (all errors are
        listed), for extra keys when unknown_keys is "error", and for bad
        variables.

    Example:
      >>> validate_config({"discovery": {"query_interval": 10}})
    """

    if unknown_keys not in {"ignore", "warn", "error"}:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    expand_variables(cfg)

    validator = Draft202012Validator(load_schema(schema_path))
    errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    if not errors:
        return None

    extra = [e for e in errors if e.validator == "additionalProperties"]
    other = [e for e in errors if e.validator != "additionalProperties"]

    if other:
        raise ValueError(_format_errors(other + extra, config_path=config_path))

    message = _format_errors(extra, config_path=config_path)
    if unknown_keys == "error":
        raise ValueError(message)
    if unknown_keys == "warn":
        logger.warning(message)
    return None
