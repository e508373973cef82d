from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from linkdoctor.cli.app import app
from linkdoctor.cli.commands.config import format_config_value, mask_sensitive_value
from linkdoctor.cli.commands.repair import EXIT_PARTIAL

API_KEY = "AIzaSyTESTKEY1234567890"

runner = CliRunner()


def _invoke(config_file: Path, *args: str, input: str | None = None):  # noqa: A002, ANN202
    return runner.invoke(
        app, ["--config", str(config_file), "--log-level", "ERROR", *args], input=input
    )


@pytest.mark.usefixtures("use_fake_backend")
def test_check_connected_exits_zero(config_file: Path) -> None:
    result = _invoke(config_file, "check")

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines == ["initializing", "connecting (attempt 1 / 2)", "connected"]


@pytest.mark.usefixtures("use_fake_backend")
def test_check_watch_reports_failure_with_diagnostics(
    config_file: Path, fake_backend  # noqa: ANN001
) -> None:
    fake_backend.offline_hosts = {"gateway.test", "internet.test"}

    result = _invoke(config_file, "check", "--watch")

    assert result.exit_code == 1
    assert "connecting (attempt 2 / 2)" in result.stdout
    assert "failed (attempt 2 / 2)" in result.stdout
    assert "== Recommendations ==" in result.stdout
    assert "  No internet connectivity detected." in result.stdout


@pytest.mark.usefixtures("use_fake_backend")
def test_check_once_still_explains_the_failure(config_file: Path, fake_backend) -> None:  # noqa: ANN001
    fake_backend.offline_hosts = {"gateway.test"}

    result = _invoke(config_file, "check", "--once")

    assert result.exit_code == 1
    assert "Backend: FAIL" in result.stdout
    assert "Internet: PASS" in result.stdout


@pytest.mark.usefixtures("use_fake_backend")
def test_diagnose_prints_json(config_file: Path, fake_backend) -> None:  # noqa: ANN001
    fake_backend.denied_collections = {"packages"}

    result = _invoke(config_file, "diagnose", "--format", "json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["connectivity"]["internet"] is True
    assert payload["connectivity"]["specific_resource"] is False
    assert payload["connectivity"]["resources"] == [
        {"name": "users", "reachable": True},
        {"name": "packages", "reachable": False},
    ]
    assert "packages" in payload["recommendations"][0]


@pytest.mark.usefixtures("use_fake_backend")
def test_diagnose_exports_report(config_file: Path, tmp_path: Path) -> None:
    output_dir = tmp_path / "reports"

    result = _invoke(config_file, "diagnose", "--output", str(output_dir))

    assert result.exit_code == 0, result.output
    assert "== Connectivity ==" in result.stdout
    exported = list(output_dir.glob("backend-diagnostics-*.txt"))
    assert len(exported) == 1
    assert "Report written to" in result.stderr
    assert "All connectivity and configuration checks passed." in exported[0].read_text(
        encoding="utf-8"
    )


def test_diagnose_rejects_unknown_format(config_file: Path) -> None:
    result = _invoke(config_file, "diagnose", "--format", "xml")

    assert result.exit_code == 2


@pytest.mark.usefixtures("use_fake_backend")
def test_repair_access_creates_missing_record(config_file: Path, fake_backend) -> None:  # noqa: ANN001
    result = _invoke(
        config_file, "repair-access", "--email", "owner@example.com", "--password", "secret", "--yes"
    )

    assert result.exit_code == 0, result.output
    assert "Authorization record created" in result.stdout
    stored = fake_backend.documents[("users", "uid-owner")]
    assert stored["role"] == {"stringValue": "admin"}
    assert stored["auto_created"] == {"booleanValue": True}


@pytest.mark.usefixtures("use_fake_backend")
def test_repair_access_leaves_existing_record_alone(
    config_file: Path, fake_backend  # noqa: ANN001
) -> None:
    fake_backend.documents[("users", "uid-owner")] = {
        "role": {"stringValue": "viewer"},
        "is_active": {"booleanValue": True},
    }

    result = _invoke(
        config_file, "repair-access", "--email", "owner@example.com", "--password", "secret", "-y"
    )

    assert result.exit_code == 0, result.output
    assert "already present" in result.stdout
    assert fake_backend.documents[("users", "uid-owner")]["role"] == {"stringValue": "viewer"}
    assert not [r for r in fake_backend.requests if r.method == "POST" and "documents" in r.url.path]


@pytest.mark.usefixtures("use_fake_backend")
def test_repair_access_partial_when_resources_still_denied(
    config_file: Path, fake_backend  # noqa: ANN001
) -> None:
    fake_backend.denied_collections = {"billing"}

    result = _invoke(
        config_file, "repair-access", "--email", "owner@example.com", "--password", "secret", "--yes"
    )

    assert result.exit_code == EXIT_PARTIAL
    assert "billing" in result.stdout
    assert "denied" in result.stdout


@pytest.mark.usefixtures("use_fake_backend")
def test_repair_access_requires_confirmation(config_file: Path, fake_backend) -> None:  # noqa: ANN001
    result = _invoke(
        config_file,
        "repair-access",
        "--email",
        "owner@example.com",
        "--password",
        "secret",
        input="n\n",
    )

    assert result.exit_code == 1
    assert "Aborted" in result.output
    assert fake_backend.requests == []


@pytest.mark.usefixtures("use_fake_backend")
def test_repair_access_reports_rejected_sign_in(
    config_file: Path, fake_backend  # noqa: ANN001
) -> None:
    fake_backend.sign_in_status = 400

    result = _invoke(
        config_file, "repair-access", "--email", "owner@example.com", "--password", "wrong", "--yes"
    )

    assert result.exit_code == 1
    assert "INVALID_PASSWORD" in result.stderr
    assert "LD_AUTHENTICATION_FAILED" in result.stderr
    assert fake_backend.documents == {}


def test_config_show_masks_the_api_key(config_file: Path) -> None:
    result = _invoke(config_file, "config", "show")

    assert result.exit_code == 0, result.output
    assert "Configuration files" in result.stdout
    assert "demo-project" in result.stdout
    assert API_KEY not in result.stdout
    assert "AIza" in result.stdout


def test_config_value_formatting() -> None:
    assert format_config_value("backend.project_id", None) == "<unset>"
    assert format_config_value("backend.use_emulator", True) == "true"
    assert format_config_value("backend.api_key", "AIzaSyTESTKEY") == "AIza*****TKEY"
    assert mask_sensitive_value("short") == "*****"


def test_invalid_log_format_is_a_usage_error(config_file: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_file), "--log-format", "xml", "check"])

    assert result.exit_code == 2


def test_non_positive_poll_interval_is_rejected(config_file: Path) -> None:
    result = runner.invoke(app, ["--config", str(config_file), "--poll-interval", "0", "check"])

    assert result.exit_code == 2
