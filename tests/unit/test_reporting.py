from __future__ import annotations

import json
import string
from datetime import datetime, timezone
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from linkdoctor.application.reporting import (
    EXPORT_FORMAT_JSON,
    EXPORT_FORMAT_TEXT,
    export_filename,
    export_report,
    parse_text_report,
    render_text_report,
    report_from_dict,
    report_to_dict,
    report_to_json,
)
from linkdoctor.domain.models import (
    ConfigurationChecks,
    ConnectivityChecks,
    DiagnosticsReport,
    EnvironmentChecks,
    NetworkQuality,
    ResourceStatus,
)
from linkdoctor.domain.recommendations import INTERNET_UNREACHABLE

SAMPLE = DiagnosticsReport(
    timestamp=datetime(2026, 2, 3, 4, 5, 6, tzinfo=timezone.utc),
    connectivity=ConnectivityChecks(
        internet=False,
        backend=False,
        specific_resource=False,
        resources=(ResourceStatus("users", False), ResourceStatus("packages", True)),
    ),
    configuration=ConfigurationChecks(
        variables_present=True,
        valid_config=True,
        project_id="demo-project",
        auth_domain="demo-project.firebaseapp.com",
    ),
    environment=EnvironmentChecks(
        online=True, cookies_enabled=True, local_storage_available=False, runtime="CPython 3.12"
    ),
    network_quality=None,
    recommendations=INTERNET_UNREACHABLE,
)


def test_text_report_has_sections_in_fixed_order() -> None:
    text = render_text_report(SAMPLE)

    headers = [line for line in text.splitlines() if line.startswith("== ")]
    assert headers == [
        "== Connectivity ==",
        "== Configuration ==",
        "== Browser / Environment ==",
        "== Network ==",
        "== Recommendations ==",
    ]
    assert "Generated: 2026-02-03T04:05:06+00:00" in text
    assert "Internet: FAIL" in text
    assert "Resource packages: PASS" in text
    assert "Network information unavailable" in text
    assert "  No internet connectivity detected." in text


def test_text_report_round_trips() -> None:
    assert parse_text_report(render_text_report(SAMPLE)) == SAMPLE


def test_unknown_network_fields_render_as_unknown() -> None:
    report = DiagnosticsReport(
        timestamp=SAMPLE.timestamp,
        connectivity=SAMPLE.connectivity,
        configuration=SAMPLE.configuration,
        environment=SAMPLE.environment,
        network_quality=NetworkQuality(effective_type="4g", rtt_ms=42.5),
        recommendations=(),
    )

    text = render_text_report(report)

    assert "Downlink (Mbps): unknown" in text
    assert "RTT (ms): 42.5" in text
    assert text.rstrip().endswith("None")
    assert parse_text_report(text) == report


def test_parse_rejects_reports_without_timestamp() -> None:
    text = render_text_report(SAMPLE).replace("Generated: ", "Created: ")

    with pytest.raises(ValueError):
        parse_text_report(text)


def test_json_payload_shape_and_round_trip() -> None:
    payload = report_to_dict(SAMPLE)

    assert payload["timestamp"] == "2026-02-03T04:05:06Z"
    assert payload["connectivity"]["resources"][0] == {"name": "users", "reachable": False}
    assert payload["network_quality"] is None
    assert report_from_dict(payload) == SAMPLE
    assert report_from_dict(json.loads(report_to_json(SAMPLE))) == SAMPLE


def test_export_filename_uses_report_date() -> None:
    assert export_filename(SAMPLE) == "backend-diagnostics-2026-02-03.txt"
    assert export_filename(SAMPLE, EXPORT_FORMAT_JSON) == "backend-diagnostics-2026-02-03.json"


@pytest.mark.parametrize("fmt", [EXPORT_FORMAT_TEXT, EXPORT_FORMAT_JSON])
def test_export_writes_artifact(tmp_path: Path, fmt: str) -> None:
    path = export_report(SAMPLE, tmp_path / "reports", fmt)

    assert path.parent == tmp_path / "reports"
    content = path.read_text(encoding="utf-8")
    if fmt == EXPORT_FORMAT_JSON:
        assert report_from_dict(json.loads(content)) == SAMPLE
    else:
        assert parse_text_report(content) == SAMPLE


def test_export_rejects_unknown_format(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        export_report(SAMPLE, tmp_path, "xml")


_line_text = st.text(alphabet=string.ascii_letters + string.digits + " .,;()*-'!?", max_size=60)
_names = st.text(alphabet=string.ascii_lowercase + "_", min_size=1, max_size=12)
_floats = st.none() | st.floats(min_value=0, max_value=10_000, allow_nan=False)

reports = st.builds(
    DiagnosticsReport,
    timestamp=st.datetimes(timezones=st.just(timezone.utc)),
    connectivity=st.builds(
        ConnectivityChecks,
        internet=st.booleans(),
        backend=st.booleans(),
        specific_resource=st.booleans(),
        resources=st.lists(st.builds(ResourceStatus, name=_names, reachable=st.booleans()), max_size=4).map(tuple),
    ),
    configuration=st.builds(
        ConfigurationChecks,
        variables_present=st.booleans(),
        valid_config=st.booleans(),
        project_id=_names,
        auth_domain=_names,
    ),
    environment=st.builds(
        EnvironmentChecks,
        online=st.booleans(),
        cookies_enabled=st.booleans(),
        local_storage_available=st.booleans(),
        runtime=_line_text,
    ),
    network_quality=st.none()
    | st.builds(
        NetworkQuality,
        effective_type=st.none() | st.sampled_from(["slow-2g", "2g", "3g", "4g"]),
        downlink_mbps=_floats,
        rtt_ms=_floats,
    ),
    recommendations=st.lists(_line_text, max_size=6).map(tuple),
)


@pytest.mark.offline
@given(reports)
def test_text_rendering_is_reversible(report: DiagnosticsReport) -> None:
    assert parse_text_report(render_text_report(report)) == report
