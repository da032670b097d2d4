from __future__ import annotations

import json
import os

import pytest
from click.testing import CliRunner

from pgnavctl.cli import cli

DSN = os.environ.get("PGNAV_TEST_DSN")


@pytest.fixture
def integration_config(tmp_path, monkeypatch):
    """Point the CLI at a fresh config holding the test database as 'it'."""
    if not DSN:
        pytest.skip("PGNAV_TEST_DSN is not set")
    monkeypatch.setenv("PGNAV_CONFIG", str(tmp_path / "config.yaml"))
    res = CliRunner().invoke(cli, ["add", DSN, "--name", "it"])
    assert res.exit_code == 0, res.output
    yield tmp_path / "config.yaml"


@pytest.mark.integration
def test_ping_integration(integration_config):
    runner = CliRunner()
    res = runner.invoke(cli, ["ping", "it"])
    assert res.exit_code == 0, res.output
    assert res.output.startswith("Ping successful.")


@pytest.mark.integration
def test_ping_integration_json(integration_config):
    runner = CliRunner()
    res = runner.invoke(cli, ["--json-output", "ping", "it"])
    assert res.exit_code == 0, res.output
    data = json.loads(res.output)
    assert data["ok"] is True
    assert isinstance(data["tables"], int)


@pytest.mark.integration
def test_list_integration_table(integration_config):
    runner = CliRunner()
    res = runner.invoke(cli, ["list"])
    assert res.exit_code == 0, res.output
    assert "NAME" in res.output and "it" in res.output
