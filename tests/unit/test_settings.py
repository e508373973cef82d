from __future__ import annotations

import logging
from pathlib import Path

import pytest

from linkdoctor.config.constants import DEFAULT_CONFIG_FILENAME
from linkdoctor.config.settings import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    BackendInputs,
    ConnectionInputs,
    LoggingInputs,
    LoggingSettings,
    RuntimeInputs,
    RuntimeSettings,
    TlsInputs,
    apply_cli_overrides,
    load_settings,
    logging_from_settings,
    resolve_application_settings,
    runtime_from_settings,
    settings_snapshot,
)


def _write_base_config(path: Path) -> None:
    path.write_text(
        "\n".join(
            [
                "[backend]",
                'api_key = "file-key-1234567890"',
                'project_id = "file-project"',
                'auth_domain = "file-project.firebaseapp.com"',
                "use_emulator = false",
                "",
                "[connection]",
                "max_attempts = 4",
                "poll_interval = 1.5",
                "",
                "[diagnostics]",
                'resource_collections = ["users", "orders"]',
                "",
                "[runtime]",
                "debug = false",
                "allow_insecure_tls = false",
                'ca_bundle_path = ""',
                "",
                "[logging]",
                'level = "INFO"',
                'format = "text"',
                'file = ""',
                "max_bytes = 10000000",
                "backup_count = 5",
            ]
        )
        + "\n",
        encoding="utf-8",
    )


def test_runtime_values_from_config(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert isinstance(runtime, RuntimeSettings)
    assert runtime.api_key == "file-key-1234567890"
    assert runtime.project_id == "file-project"
    assert runtime.auth_domain == "file-project.firebaseapp.com"
    assert runtime.max_attempts == 4
    assert runtime.poll_interval == 1.5
    assert runtime.resource_collections == ("users", "orders")
    assert runtime.use_emulator is False
    assert runtime.debug is False
    assert runtime.warnings == ()


def test_missing_backend_values_do_not_abort_loading(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    config_path.write_text('[backend]\napi_key = ""\n', encoding="utf-8")

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert runtime.api_key is None
    assert runtime.project_id is None
    assert runtime.max_attempts == DEFAULT_MAX_ATTEMPTS
    assert runtime.poll_interval == DEFAULT_POLL_INTERVAL


def test_environment_overrides_take_precedence(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    monkeypatch.setenv("FIREBASE_API_KEY", "env-key-1234567890")
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "env-project")
    monkeypatch.setenv("LINKDOCTOR_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("LINKDOCTOR_USE_EMULATOR", "yes")
    monkeypatch.setenv("LINKDOCTOR_ALLOW_INSECURE_TLS", "true")
    monkeypatch.setenv("LINKDOCTOR_CA_BUNDLE", " /tmp/custom.pem ")

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert runtime.api_key == "env-key-1234567890"
    assert runtime.project_id == "env-project"
    assert runtime.max_attempts == 7
    assert runtime.use_emulator is True
    assert runtime.allow_insecure_tls is True
    assert runtime.ca_bundle_path is None
    assert runtime.warnings == (
        "allow_insecure_tls takes precedence over ca_bundle_path; "
        "HTTPS verification will be disabled",
    )


def test_documented_environment_variables_reach_nested_keys(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    monkeypatch.setenv("LINKDOCTOR_EMULATOR_HOST", "emulators.local")
    monkeypatch.setenv("LINKDOCTOR_PROBE_TIMEOUT", "7.5")
    monkeypatch.setenv("LINKDOCTOR_LOG_BACKUP_COUNT", "2")
    monkeypatch.setenv("LINKDOCTOR_RESOURCE_COLLECTIONS", '["ignored"]')

    settings = load_settings(str(config_path))
    runtime = runtime_from_settings(settings)

    assert runtime.emulator_host == "emulators.local"
    assert runtime.probe_timeout == 7.5
    assert logging_from_settings(settings).backup_count == 2
    assert runtime.resource_collections == ("users", "orders")


def test_cli_overrides_supersede_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    monkeypatch.setenv("FIREBASE_API_KEY", "env-key-1234567890")
    monkeypatch.setenv("LINKDOCTOR_DEBUG", "false")

    settings_obj = load_settings(str(config_path))
    apply_cli_overrides(
        settings_obj,
        backend_inputs=BackendInputs(api_key=" cli-key-1234567890 ", auth_domain="   "),
        connection_inputs=ConnectionInputs(max_attempts=2, poll_interval=0.5),
        runtime_inputs=RuntimeInputs(debug=True),
        tls_inputs=TlsInputs(allow_insecure=False, ca_bundle_path=" /etc/ssl/custom.pem "),
    )

    runtime = runtime_from_settings(settings_obj)
    assert runtime.api_key == "cli-key-1234567890"
    assert runtime.auth_domain == "file-project.firebaseapp.com"
    assert runtime.max_attempts == 2
    assert runtime.poll_interval == 0.5
    assert runtime.debug is True
    assert runtime.ca_bundle_path == "/etc/ssl/custom.pem"


def test_blank_environment_values_are_ignored(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    monkeypatch.setenv("FIREBASE_PROJECT_ID", "   ")
    monkeypatch.setenv("LINKDOCTOR_MAX_ATTEMPTS", "")

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert runtime.project_id == "file-project"
    assert runtime.max_attempts == 4
    assert runtime.warnings == ()


def test_invalid_values_fall_back_with_warnings(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    config_path.write_text(
        "\n".join(
            [
                "[connection]",
                "max_attempts = 0",
                'poll_interval = "soon"',
                "",
                "[diagnostics]",
                "internet_endpoints = []",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert runtime.max_attempts == DEFAULT_MAX_ATTEMPTS
    assert runtime.poll_interval == DEFAULT_POLL_INTERVAL
    assert runtime.warnings == (
        "Invalid connection.max_attempts value 0; using default 3",
        "Invalid connection.poll_interval value 'soon'; using default 2.0",
        "Empty diagnostics.internet_endpoints override; falling back to defaults",
    )


def test_local_overlay_overrides_base_file(tmp_path: Path) -> None:
    config_path = tmp_path / "custom.toml"
    _write_base_config(config_path)
    config_path.with_name("custom.local.toml").write_text(
        '[backend]\nproject_id = "local-project"\n\n[runtime]\ndebug = true\n',
        encoding="utf-8",
    )

    runtime = runtime_from_settings(load_settings(str(config_path)))

    assert runtime.project_id == "local-project"
    assert runtime.api_key == "file-key-1234567890"
    assert runtime.debug is True


def test_emulator_switches_endpoints() -> None:
    runtime = RuntimeSettings(project_id="demo", use_emulator=True, emulator_host="127.0.0.1")

    assert runtime.firestore_base_url == (
        "http://127.0.0.1:8080/v1/projects/demo/databases/(default)/documents"
    )
    assert runtime.identity_base_url == "http://127.0.0.1:9099/identitytoolkit.googleapis.com/v1"
    assert runtime.effective_backend_endpoints == ("http://127.0.0.1:8080", "http://127.0.0.1:9099")


def test_logging_overrides_follow_cli(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    settings_obj = load_settings(str(config_path))
    apply_cli_overrides(
        settings_obj,
        logging_inputs=LoggingInputs(
            level="DEBUG",
            format="json",
            file_path=str(tmp_path / "linkdoctor.log"),
            max_bytes=2048,
            backup_count=2,
        ),
    )

    logging_settings = logging_from_settings(settings_obj)
    assert isinstance(logging_settings, LoggingSettings)
    assert logging_settings.level == logging.DEBUG
    assert logging_settings.level_name == "DEBUG"
    assert logging_settings.format == "json"
    assert logging_settings.file_path and logging_settings.file_path.endswith("linkdoctor.log")
    assert logging_settings.max_bytes == 2048
    assert logging_settings.backup_count == 2


def test_unsupported_log_format_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    config_path.write_text('[logging]\nformat = "xml"\n', encoding="utf-8")

    with pytest.raises(ValueError):
        logging_from_settings(load_settings(str(config_path)))


def test_debug_forces_debug_logging(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    runtime, logging_settings = resolve_application_settings(
        config_path=str(config_path),
        backend_inputs=BackendInputs(project_id="cli-project"),
        runtime_inputs=RuntimeInputs(debug=True),
        logging_inputs=LoggingInputs(level="WARNING"),
    )

    assert runtime.project_id == "cli-project"
    assert runtime.debug is True
    assert logging_settings.level == logging.DEBUG
    assert logging_settings.format == DEFAULT_LOG_FORMAT


def test_snapshot_uses_dotted_keys(tmp_path: Path) -> None:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    _write_base_config(config_path)

    snapshot = settings_snapshot(load_settings(str(config_path)))

    assert snapshot["backend.project_id"] == "file-project"
    assert snapshot["connection.max_attempts"] == 4
    assert snapshot["diagnostics.resource_collections"] == "users, orders"
    assert snapshot["runtime.ca_bundle_path"] is None
