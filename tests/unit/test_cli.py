"""Unit tests for CLI wiring."""

from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from armada.cli import app
from armada.commands import create_cmd, deploy_cmd, destroy_cmd, export_cmd, load_cmd
from armada.config import CreateFlags
from armada.constants import CniKind
from armada.exceptions import ConfigurationError

runner = CliRunner()


@pytest.fixture
def fake_orchestrator(monkeypatch):
    orchestrator = MagicMock()
    orchestrator.settings.default_cluster_wait = 300.0
    for module in (create_cmd, deploy_cmd, destroy_cmd, export_cmd, load_cmd):
        monkeypatch.setattr(module, "build_orchestrator", lambda debug=False: orchestrator)
    return orchestrator


def test_help_lists_verbs():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for verb in ("create", "destroy", "deploy", "export", "load", "version"):
        assert verb in result.stdout


def test_create_help():
    result = runner.invoke(app, ["create", "clusters", "--help"])
    assert result.exit_code == 0
    assert "--overlap" in result.stdout
    assert "--calico" in result.stdout


def test_create_passes_flags(fake_orchestrator):
    result = runner.invoke(app, ["create", "clusters", "-n", "3", "--flannel", "--overlap", "--wait", "90s"])

    assert result.exit_code == 0, result.output
    fake_orchestrator.create.assert_called_once_with(
        CreateFlags(num_clusters=3, cni=CniKind.FLANNEL, overlap=True, wait=90.0)
    )


def test_create_defaults(fake_orchestrator):
    result = runner.invoke(app, ["create", "clusters"])

    assert result.exit_code == 0, result.output
    flags = fake_orchestrator.create.call_args.args[0]
    assert flags.num_clusters == 2
    assert flags.cni is CniKind.KINDNET
    assert flags.retain is True
    assert flags.wait == 300.0


def test_create_rejects_two_cnis(fake_orchestrator):
    result = runner.invoke(app, ["create", "clusters", "--weave", "--calico"])
    assert result.exit_code != 0
    assert isinstance(result.exception, ConfigurationError)
    fake_orchestrator.create.assert_not_called()


def test_create_rejects_bad_wait(fake_orchestrator):
    result = runner.invoke(app, ["create", "clusters", "--wait", "soon"])
    assert isinstance(result.exception, ConfigurationError)


def test_destroy_with_cluster_list(fake_orchestrator):
    result = runner.invoke(app, ["destroy", "clusters", "--cluster", "cl1,cl2"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.destroy.assert_called_once_with(["cl1", "cl2"])


def test_destroy_everything(fake_orchestrator):
    result = runner.invoke(app, ["destroy", "clusters"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.destroy.assert_called_once_with(None)


def test_deploy_netshoot(fake_orchestrator):
    result = runner.invoke(app, ["deploy", "netshoot", "--host-network", "-c", "cl2"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.deploy_netshoot.assert_called_once_with(True, ["cl2"])


def test_deploy_nginx_demo(fake_orchestrator):
    result = runner.invoke(app, ["deploy", "nginx-demo"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.deploy_nginx_demo.assert_called_once_with(None)


def test_export_logs(fake_orchestrator):
    result = runner.invoke(app, ["export", "logs", "--cluster", "cl1"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.export_logs.assert_called_once_with(["cl1"])


def test_load_docker_images(fake_orchestrator):
    result = runner.invoke(app, ["load", "docker-images", "--image", "nginx:latest,busybox:1.36"])
    assert result.exit_code == 0, result.output
    fake_orchestrator.load_images.assert_called_once_with(["nginx:latest", "busybox:1.36"], None)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "armada version" in result.stdout
