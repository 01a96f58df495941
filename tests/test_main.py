"""
Brief: Tests for lanbeacon.main CLI wiring with a fake Agent.

Inputs:
  - None

Outputs:
  - None
"""

import io
import ipaddress

import pytest

import lanbeacon.main as main_mod
from lanbeacon.mdns.agent import SharedEndpoints
from lanbeacon.mdns.channel import ChannelError
from lanbeacon.mdns.models import Endpoint
from lanbeacon.utils.netinfo import InterfaceLookupError


class FakeAgent:
    instances = []
    start_error = None

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.closed = False
        self.endpoints = SharedEndpoints()
        FakeAgent.instances.append(self)

    def start(self, cb=None, stop_event=None):
        if FakeAgent.start_error is not None:
            raise FakeAgent.start_error
        addr = ipaddress.ip_address("10.0.0.5")
        with self.endpoints as endpoints:
            endpoints[addr] = Endpoint(address=addr, name="tv.local")
        cb(self.endpoints)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_agent(monkeypatch):
    FakeAgent.instances = []
    FakeAgent.start_error = None
    monkeypatch.setattr(main_mod, "Agent", FakeAgent)
    monkeypatch.setattr(main_mod, "init_logging", lambda cfg: None)
    monkeypatch.setattr(main_mod.signal, "signal", lambda sig, handler: None)
    return FakeAgent


def test_main_runs_agent_with_cli_settings(fake_agent, tmp_path, capsys):
    """
    Brief: CLI flags reach the Agent; the observer prints and saves.

    Inputs:
      - fake_agent: Agent stub
      - tmp_path: save directory

    Outputs:
      - None: Asserts exit code, agent kwargs, output and saved file
    """
    save_dir = tmp_path / "eps"
    rc = main_mod.main(
        [
            "--passive",
            "--query-interval",
            "7",
            "--address",
            "10.0.0.5",
            "--save-path",
            str(save_dir),
        ]
    )
    assert rc == 0
    agent = fake_agent.instances[0]
    assert agent.kwargs == {
        "query_interval": 7,
        "passive": True,
        "filter_for": "10.0.0.5",
        "receive_timeout": 1.0,
    }
    assert agent.closed is True
    assert "<10.0.0.5> (tv.local)" in capsys.readouterr().out
    assert (save_dir / "10.0.0.5.json").is_file()


def test_main_reads_config_file(fake_agent, tmp_path, capsys):
    """
    Brief: Values come from the YAML file and --no-display silences output.

    Inputs:
      - fake_agent: Agent stub
      - tmp_path: config location

    Outputs:
      - None
    """
    cfg = tmp_path / "lanbeacon.yaml"
    cfg.write_text(
        "variables:\n  EVERY: 12\n"
        "discovery:\n  query_interval: $EVERY\n  receive_timeout: 0.25\n",
        encoding="utf-8",
    )
    rc = main_mod.main(["--config", str(cfg), "--no-display"])
    assert rc == 0
    kwargs = fake_agent.instances[0].kwargs
    assert kwargs["query_interval"] == 12
    assert kwargs["passive"] is False
    assert kwargs["receive_timeout"] == 0.25
    assert capsys.readouterr().out == ""


def test_main_invalid_config_returns_one(fake_agent, tmp_path, capsys):
    """
    Brief: Schema violations print the error and exit 1 before any agent.

    Inputs:
      - fake_agent: Agent stub
      - tmp_path: config location

    Outputs:
      - None
    """
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("discovery:\n  query_interval: zero\n", encoding="utf-8")
    assert main_mod.main(["--config", str(cfg)]) == 1
    assert "query_interval" in capsys.readouterr().err
    assert fake_agent.instances == []


def test_main_missing_config_returns_one(fake_agent, tmp_path):
    """
    Brief: An unreadable config file exits 1.

    Inputs:
      - fake_agent: Agent stub
      - tmp_path: directory without the file

    Outputs:
      - None
    """
    assert main_mod.main(["--config", str(tmp_path / "absent.yaml")]) == 1


def test_main_channel_error_returns_one(monkeypatch, fake_agent):
    """
    Brief: Socket setup failure exits 1.

    Inputs:
      - monkeypatch: Agent constructor raising ChannelError

    Outputs:
      - None
    """

    def _broken(**kwargs):
        raise ChannelError("could not bind on mDNS socket")

    monkeypatch.setattr(main_mod, "Agent", _broken)
    assert main_mod.main(["--no-display"]) == 1


@pytest.mark.parametrize(
    "error",
    [InterfaceLookupError("no interfaces"), OSError("socket closed")],
)
def test_main_fatal_loop_errors_return_one(fake_agent, error):
    """
    Brief: Fatal errors from the discovery loop exit 1 and close the agent.

    Inputs:
      - fake_agent: Agent stub
      - error: exception raised by start()

    Outputs:
      - None
    """
    fake_agent.start_error = error
    assert main_mod.main(["--no-display"]) == 1
    assert fake_agent.instances[0].closed is True


def test_observer_save_failure_is_logged(tmp_path, caplog):
    """
    Brief: A failing save is logged and does not stop the observer.

    Inputs:
      - tmp_path: a file used where a directory is expected
      - caplog: log capture

    Outputs:
      - None
    """
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    shared = SharedEndpoints()
    addr = ipaddress.ip_address("10.0.0.5")
    with shared as endpoints:
        endpoints[addr] = Endpoint(address=addr)

    out = io.StringIO()
    observer = main_mod.make_observer(True, str(blocker / "eps"), stream=out)
    with caplog.at_level("ERROR"):
        observer(shared)
    assert out.getvalue() == "<10.0.0.5>\n"
    assert "Failed to save endpoints" in caplog.text


def test_main_logging_setup_failure_returns_one(monkeypatch, fake_agent, capsys):
    """
    Brief: An unwritable log destination exits 1 before any agent starts.

    Inputs:
      - monkeypatch: init_logging raising OSError
      - fake_agent: Agent stub

    Outputs:
      - None
    """

    def _broken(cfg):
        raise PermissionError(13, "Permission denied", "/var/log/lanbeacon.log")

    monkeypatch.setattr(main_mod, "init_logging", _broken)
    assert main_mod.main(["--no-display"]) == 1
    assert "Could not initialize logging" in capsys.readouterr().err
    assert fake_agent.instances == []
