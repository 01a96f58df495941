"""Brief: Unit tests for lanbeacon.config.config_parser helpers.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

import argparse
from typing import Any, Dict

import pytest

from lanbeacon.config import config_parser as cp


def test_parse_config_variables_precedence() -> None:
    """Brief: CLI variables override environment, which overrides the file.

    Inputs:
      - None.

    Outputs:
      - None; asserts merged values and that unprefixed env keys are ignored.
    """

    cfg: Dict[str, Any] = {"variables": {"A": 1, "B": 1, "C": 1}}
    env = {"LANBEACON_B": "2", "LANBEACON_C": "2", "C": "9", "LANBEACON_lower": "x"}
    merged = cp.parse_config_variables(cfg, environ=env, cli_vars=["C=[1, 2]"])
    assert merged == {"A": 1, "B": 2, "C": [1, 2]}
    assert cfg["variables"] is merged


def test_parse_config_variables_rejects_bad_input() -> None:
    """Brief: Non-mapping variables and malformed CLI assignments fail.

    Inputs:
      - None.

    Outputs:
      - None; asserts ValueError for each bad input.
    """

    with pytest.raises(ValueError, match="config.variables must be a mapping"):
        cp.parse_config_variables({"variables": [1, 2]}, environ={})
    with pytest.raises(ValueError):
        cp.parse_config_variables({}, cli_vars=["MISSING_EQUALS"], environ={})
    with pytest.raises(ValueError):
        cp.parse_config_variables({}, cli_vars=["lower=1"], environ={})


def test_parse_config_file_expands_variables(tmp_path) -> None:
    """Brief: parse_config_file loads YAML, merges and expands variables.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None; asserts the validated mapping.
    """

    path = tmp_path / "lanbeacon.yaml"
    path.write_text(
        "variables:\n"
        "  DIR: /srv/eps\n"
        "  INTERVAL: 10\n"
        "discovery:\n"
        "  query_interval: $INTERVAL\n"
        "output:\n"
        "  save_path: ${DIR}/snapshots\n",
        encoding="utf-8",
    )
    cfg = cp.parse_config_file(
        str(path), cli_vars=["INTERVAL=30"], environ={"LANBEACON_DIR": "/data"}
    )
    assert "variables" not in cfg
    assert cfg["discovery"]["query_interval"] == 30
    assert cfg["output"]["save_path"] == "/data/snapshots"


def test_parse_config_file_without_path_is_empty() -> None:
    """Brief: No config path means an empty, valid configuration.

    Inputs:
      - None.

    Outputs:
      - None.
    """

    assert cp.parse_config_file(None, environ={}) == {}


def test_parse_config_file_non_mapping_root_raises(tmp_path) -> None:
    """Brief: parse_config_file enforces a mapping root.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None.
    """

    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must be a mapping"):
        cp.parse_config_file(str(path), environ={})


def test_parse_config_file_invalid_yaml_raises(tmp_path) -> None:
    """Brief: YAML syntax errors surface as ValueError.

    Inputs:
      - tmp_path: pytest temporary directory.

    Outputs:
      - None.
    """

    path = tmp_path / "bad.yaml"
    path.write_text("discovery: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid YAML"):
        cp.parse_config_file(str(path), environ={})


def test_apply_cli_overrides_and_build_settings() -> None:
    """Brief: Explicit CLI flags override file values; None flags do not.

    Inputs:
      - None.

    Outputs:
      - None; asserts the resulting Settings.
    """

    cfg: Dict[str, Any] = {
        "discovery": {"query_interval": 10, "passive": True},
        "output": {"save_path": "  "},
    }
    args = argparse.Namespace(
        query_interval=None,
        passive=None,
        address=" 10.0.0.5 ",
        save_path=None,
        display=False,
        log_level="debug",
    )
    settings = cp.build_settings(cp.apply_cli_overrides(cfg, args))
    assert settings.discovery.query_interval == 10
    assert settings.discovery.passive is True
    assert settings.discovery.address == "10.0.0.5"
    assert settings.discovery.receive_timeout == 1.0
    assert settings.output.save_path is None
    assert settings.output.display is False
    assert settings.logging == {"level": "debug"}


def test_build_settings_rejects_bad_values() -> None:
    """Brief: pydantic validation errors are ValueErrors.

    Inputs:
      - None.

    Outputs:
      - None.
    """

    with pytest.raises(ValueError):
        cp.build_settings({"discovery": {"query_interval": 0}})
    with pytest.raises(ValueError):
        cp.build_settings({"discovery": {"receive_timeout": -1}})
