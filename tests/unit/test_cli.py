"""Unit tests for the cluster-report CLI."""

import json
import subprocess
from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from cluster_reporter.cli import app
from cluster_reporter.exceptions import PowerShellError
from cluster_reporter.models import ValidationEntry

runner = CliRunner()

PASSED = [ValidationEntry(name="Inventory", status="Passed", message="ok")]


def _write_config(tmp_path, sample_config_data):
    data = dict(sample_config_data)
    data["report_path"] = str(tmp_path / "report.txt")
    data["log_destination"] = str(tmp_path / "logs")
    path = tmp_path / "cluster.yml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_run_help():
    result = runner.invoke(app, ["run", "--help"])
    assert result.exit_code == 0
    assert "--config" in result.stdout
    assert "--node" in result.stdout
    assert "--witness" in result.stdout


def test_run_success_writes_report(tmp_path, sample_config_data, fake_client_factory):
    config_path = _write_config(tmp_path, sample_config_data)
    fake = fake_client_factory(entries=PASSED)

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(app, ["run", "--config", str(config_path)])

    assert result.exit_code == 0
    assert "Completed successfully" in result.stdout
    report = (tmp_path / "report.txt").read_text(encoding="utf-8")
    assert "No validation errors found." in report
    assert fake.calls[0] == "validate"


def test_run_validation_failure_exit_code(tmp_path, sample_config_data, fake_client_factory):
    config_path = _write_config(tmp_path, sample_config_data)
    fake = fake_client_factory(
        entries=[ValidationEntry(name="Storage", status="Failed", message="No shared disk")]
    )

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(app, ["run", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "No shared disk" in result.stdout
    assert "create_cluster" not in fake.calls
    report = (tmp_path / "report.txt").read_text(encoding="utf-8")
    assert "Errors found in cluster validation:" in report


def test_options_override_config(tmp_path, sample_config_data, fake_client_factory):
    config_path = _write_config(tmp_path, sample_config_data)
    fake = fake_client_factory(entries=PASSED)
    report_path = tmp_path / "other.txt"

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(
            app,
            [
                "provision",
                "--config",
                str(config_path),
                "--node",
                "NodeA",
                "--node",
                "NodeB",
                "--report",
                str(report_path),
            ],
        )

    assert result.exit_code == 0
    assert fake.calls == ["validate", "create_cluster", "configure_quorum"]
    assert "Nodes:     NodeA, NodeB" in report_path.read_text(encoding="utf-8")


def test_collect_event_failure_keeps_exit_code(tmp_path, sample_config_data, fake_client_factory):
    config_path = _write_config(tmp_path, sample_config_data)
    fake = fake_client_factory(failures={"query_recent_events": PowerShellError("No access")})

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(app, ["collect", "--config", str(config_path)])

    assert result.exit_code == 0
    assert fake.calls == ["query_group_status", "export_logs", "query_recent_events"]
    report = (tmp_path / "report.txt").read_text(encoding="utf-8")
    assert "Error querying recent events: No access" in report


def test_invalid_configuration(tmp_path):
    result = runner.invoke(
        app,
        [
            "run",
            "--cluster-name",
            "Cluster1",
            "--static-ip",
            "not-an-ip",
            "--node",
            "Node1",
            "--report",
            str(tmp_path / "r.txt"),
        ],
    )

    assert result.exit_code == 1
    assert "Configuration Error" in result.stdout
    assert not (tmp_path / "r.txt").exists()


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "missing.yml")])

    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_report_write_failure(tmp_path, sample_config_data, fake_client_factory):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    config_path = _write_config(tmp_path, sample_config_data)
    fake = fake_client_factory(entries=PASSED)

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(
            app, ["run", "--config", str(config_path), "--report", str(blocker / "r.txt")]
        )

    assert result.exit_code == 1
    assert "Report Error" in result.stdout


def test_init_config_writes_loadable_template(tmp_path):
    from cluster_reporter.models import ReporterConfig

    target = tmp_path / "cluster.yml"
    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 0
    config = ReporterConfig.load(target)
    assert config.cluster.nodes == ("Node1", "Node2")


def test_init_config_refuses_overwrite(tmp_path):
    target = tmp_path / "cluster.yml"
    target.write_text("keep me")

    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 1
    assert target.read_text() == "keep me"


def _powershell_output(stdout):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


def test_collect_undecodable_event_output_still_writes_report(tmp_path, sample_config_data):
    config_path = _write_config(tmp_path, sample_config_data)
    groups = json.dumps([{"Name": "Cluster Group", "State": "Online", "OwnerNode": "Node1"}])

    def fake_run(command, **kwargs):
        script = command[4]
        if "Get-WinEvent" in script:
            raise UnicodeDecodeError("cp1252", b"\x81", 0, 1, "character maps to <undefined>")
        if "Get-ClusterGroup" in script:
            return _powershell_output(groups)
        return _powershell_output("[]")

    with patch("subprocess.run", side_effect=fake_run):
        result = runner.invoke(app, ["collect", "--config", str(config_path)])

    assert result.exit_code == 0
    report = (tmp_path / "report.txt").read_text(encoding="utf-8")
    assert "Cluster Group" in report
    assert "Error querying recent events: PowerShell output could not be decoded" in report


def test_collect_needs_only_cluster_name(tmp_path, fake_client_factory):
    fake = fake_client_factory()
    report_path = tmp_path / "r.txt"

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(
            app,
            [
                "collect",
                "--cluster-name",
                "Cluster1",
                "--report",
                str(report_path),
                "--log-dir",
                str(tmp_path / "logs"),
            ],
        )

    assert result.exit_code == 0
    assert fake.calls == ["query_group_status", "export_logs", "query_recent_events"]
    report = report_path.read_text(encoding="utf-8")
    assert "Cluster:   Cluster1" in report
    assert "Static IP: n/a" in report


def test_provision_requires_address_and_nodes(tmp_path, fake_client_factory):
    fake = fake_client_factory()

    with patch("cluster_reporter.clustering.FailoverClusterClient", return_value=fake):
        result = runner.invoke(
            app, ["provision", "--cluster-name", "Cluster1", "--report", str(tmp_path / "r.txt")]
        )

    assert result.exit_code == 1
    assert "Configuration Error" in result.stdout
    assert "static IP" in result.stdout
    assert fake.calls == []
