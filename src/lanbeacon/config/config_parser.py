"""Configuration parsing and normalization helpers for lanbeacon.

Brief:
  Used by the CLI entrypoint. It centralizes:
    - reading the optional YAML config file
    - merging variables from config/env/CLI
    - JSON Schema validation (variable expansion happens there)
    - applying CLI flag overrides
    - building typed Settings

Inputs:
  - YAML config paths, argparse namespaces

Outputs:
  - Normalized config dicts and Settings instances
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .config_schema import is_var_key, validate_config
from .settings import DiscoveryConfig, OutputConfig, Settings

# Environment variables with this prefix feed config variables, e.g.
# LANBEACON_SAVE_DIR=/srv/eps defines SAVE_DIR.
ENV_PREFIX = "LANBEACON_"


def _parse_yaml_value(text: str) -> Any:
    """Brief: Parse a CLI/environment variable value as YAML.

    Inputs:
      - text: String containing a YAML scalar/list/mapping.

    Outputs:
      - Any: Parsed value, or the original string when it is not valid YAML.
    """

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['variables'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI ``KEY=YAML`` assignments.
      - environ: Optional environment mapping (defaults to os.environ); only
        ``LANBEACON_<KEY>`` entries are considered.

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['variables'].

    Precedence:
      - CLI (-v/--var) overrides environment overrides config-file variables.

    Example:
      >>> cfg = {'variables': {'INTERVAL': 5}}
      >>> parse_config_variables(cfg, cli_vars=['INTERVAL=30'], environ={})['INTERVAL']
      30
    """

    base = cfg.get("variables")
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ValueError("config.variables must be a mapping when present")

    env = os.environ if environ is None else environ
    for k, v in env.items():
        if not k.startswith(ENV_PREFIX):
            continue
        name = k[len(ENV_PREFIX) :]
        if is_var_key(name):
            merged[name] = _parse_yaml_value(str(v))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ValueError(
                "Invalid -v/--var value (expected KEY=YAML), got: %r" % assignment
            )
        k, raw = assignment.split("=", 1)
        k = k.strip()
        if not is_var_key(k):
            raise ValueError(
                "Invalid variable name %r (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
                % k
            )
        merged[k] = _parse_yaml_value(raw)

    if merged:
        cfg["variables"] = merged
    return merged


def parse_config_file(
    config_path: Optional[str],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    unknown_keys: str = "warn",
) -> Dict[str, Any]:
    """Brief: Read, variable-merge, and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML file, or None for an empty config.
      - cli_vars: Optional list of ``KEY=YAML`` assignments (from -v/--var).
      - environ: Optional environment mapping for variable lookup.
      - unknown_keys: Extra-key policy passed to validate_config().

    Outputs:
      - dict: Validated configuration mapping with variables expanded.

    Raises:
      - OSError: when the file cannot be read.
      - ValueError: when the YAML is not a mapping, variables are invalid, or
        schema validation fails.
    """

    cfg: Any = {}
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            try:
                cfg = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    parse_config_variables(cfg, cli_vars=cli_vars, environ=environ)
    validate_config(cfg, config_path=config_path, unknown_keys=unknown_keys)
    return cfg


def apply_cli_overrides(cfg: Dict[str, Any], args: Any) -> Dict[str, Any]:
    """Brief: Overlay explicitly given CLI flags onto the config mapping.

    Inputs:
      - cfg: Validated configuration mapping (mutated in-place).
      - args: argparse Namespace; attributes left as None are not applied.
        Recognized: query_interval, passive, address, save_path, display,
        log_level.

    Outputs:
      - dict: The same cfg for chaining.
    """

    discovery = cfg.setdefault("discovery", {}) or {}
    output = cfg.setdefault("output", {}) or {}
    log_cfg = cfg.setdefault("logging", {}) or {}
    cfg["discovery"], cfg["output"], cfg["logging"] = discovery, output, log_cfg

    for attr in ("query_interval", "passive", "address"):
        value = getattr(args, attr, None)
        if value is not None:
            discovery[attr] = value
    for attr in ("save_path", "display"):
        value = getattr(args, attr, None)
        if value is not None:
            output[attr] = value
    level = getattr(args, "log_level", None)
    if level is not None:
        log_cfg["level"] = level
    return cfg


def build_settings(cfg: Dict[str, Any]) -> Settings:
    """Brief: Build typed Settings from a validated configuration mapping.

    Inputs:
      - cfg: Mapping with optional discovery/output/logging sections.

    Outputs:
      - Settings.

    Raises:
      - ValueError: when a section fails pydantic validation (pydantic's
        ValidationError is a ValueError).
    """

    return Settings(
        discovery=DiscoveryConfig(**(cfg.get("discovery") or {})),
        output=OutputConfig(**(cfg.get("output") or {})),
        logging=dict(cfg.get("logging") or {}),
    )
