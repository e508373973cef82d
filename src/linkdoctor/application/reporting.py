"""Render diagnostics reports as flat text or structured payloads.

The text form keeps a fixed section order (connectivity, configuration,
browser/environment, network, recommendations) and can be parsed back into
a :class:`DiagnosticsReport`. Recommendation lines carry a two-space indent
which :func:`parse_text_report` strips, so their text survives verbatim.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from linkdoctor.domain.models import (
    ConfigurationChecks,
    ConnectivityChecks,
    DiagnosticsReport,
    EnvironmentChecks,
    NetworkQuality,
    ResourceStatus,
)

REPORT_TITLE = "Backend Connectivity Diagnostics Report"
SECTION_CONNECTIVITY = "Connectivity"
SECTION_CONFIGURATION = "Configuration"
SECTION_ENVIRONMENT = "Browser / Environment"
SECTION_NETWORK = "Network"
SECTION_RECOMMENDATIONS = "Recommendations"

EXPORT_FORMAT_TEXT = "text"
EXPORT_FORMAT_JSON = "json"

PASS = "PASS"
FAIL = "FAIL"
UNKNOWN = "unknown"
RECOMMENDATION_INDENT = "  "
NO_NETWORK_INFORMATION = "Network information unavailable"
NO_RECOMMENDATIONS = "None"
_RESOURCE_PREFIX = "Resource "


class ResourceStatusModel(BaseModel):
    name: str
    reachable: bool


class ConnectivityModel(BaseModel):
    internet: bool
    backend: bool
    specific_resource: bool
    resources: list[ResourceStatusModel] = Field(default_factory=list)


class ConfigurationModel(BaseModel):
    variables_present: bool
    valid_config: bool
    project_id: str
    auth_domain: str


class EnvironmentModel(BaseModel):
    online: bool
    cookies_enabled: bool
    local_storage_available: bool
    runtime: str = ""


class NetworkQualityModel(BaseModel):
    effective_type: str | None = None
    downlink_mbps: float | None = None
    rtt_ms: float | None = None


class DiagnosticsReportModel(BaseModel):
    timestamp: datetime
    connectivity: ConnectivityModel
    configuration: ConfigurationModel
    environment: EnvironmentModel
    network_quality: NetworkQualityModel | None = None
    recommendations: list[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: DiagnosticsReport) -> "DiagnosticsReportModel":
        connectivity = report.connectivity
        quality = report.network_quality
        return cls(
            timestamp=report.timestamp,
            connectivity=ConnectivityModel(
                internet=connectivity.internet,
                backend=connectivity.backend,
                specific_resource=connectivity.specific_resource,
                resources=[
                    ResourceStatusModel(name=item.name, reachable=item.reachable)
                    for item in connectivity.resources
                ],
            ),
            configuration=ConfigurationModel(
                variables_present=report.configuration.variables_present,
                valid_config=report.configuration.valid_config,
                project_id=report.configuration.project_id,
                auth_domain=report.configuration.auth_domain,
            ),
            environment=EnvironmentModel(
                online=report.environment.online,
                cookies_enabled=report.environment.cookies_enabled,
                local_storage_available=report.environment.local_storage_available,
                runtime=report.environment.runtime,
            ),
            network_quality=(
                None
                if quality is None
                else NetworkQualityModel(
                    effective_type=quality.effective_type,
                    downlink_mbps=quality.downlink_mbps,
                    rtt_ms=quality.rtt_ms,
                )
            ),
            recommendations=list(report.recommendations),
        )

    def to_report(self) -> DiagnosticsReport:
        quality = self.network_quality
        return DiagnosticsReport(
            timestamp=self.timestamp,
            connectivity=ConnectivityChecks(
                internet=self.connectivity.internet,
                backend=self.connectivity.backend,
                specific_resource=self.connectivity.specific_resource,
                resources=tuple(
                    ResourceStatus(name=item.name, reachable=item.reachable)
                    for item in self.connectivity.resources
                ),
            ),
            configuration=ConfigurationChecks(**self.configuration.model_dump()),
            environment=EnvironmentChecks(**self.environment.model_dump()),
            network_quality=None if quality is None else NetworkQuality(**quality.model_dump()),
            recommendations=tuple(self.recommendations),
        )


def report_to_dict(report: DiagnosticsReport) -> dict[str, Any]:
    return DiagnosticsReportModel.from_report(report).model_dump(mode="json")


def report_from_dict(data: dict[str, Any]) -> DiagnosticsReport:
    return DiagnosticsReportModel.model_validate(data).to_report()


def report_to_json(report: DiagnosticsReport, *, indent: int | None = 2) -> str:
    return DiagnosticsReportModel.from_report(report).model_dump_json(indent=indent)


def _flag(value: bool) -> str:
    return PASS if value else FAIL


def _optional(value: object | None) -> str:
    return UNKNOWN if value is None else str(value)


def _header(title: str) -> str:
    return f"== {title} =="


def render_text_report(report: DiagnosticsReport) -> str:
    connectivity = report.connectivity
    configuration = report.configuration
    environment = report.environment

    lines = [REPORT_TITLE, f"Generated: {report.timestamp.isoformat()}", ""]

    lines.append(_header(SECTION_CONNECTIVITY))
    lines.append(f"Internet: {_flag(connectivity.internet)}")
    lines.append(f"Backend: {_flag(connectivity.backend)}")
    lines.append(f"Specific resource: {_flag(connectivity.specific_resource)}")
    for resource in connectivity.resources:
        lines.append(f"{_RESOURCE_PREFIX}{resource.name}: {_flag(resource.reachable)}")
    lines.append("")

    lines.append(_header(SECTION_CONFIGURATION))
    lines.append(f"Variables present: {_flag(configuration.variables_present)}")
    lines.append(f"Valid config: {_flag(configuration.valid_config)}")
    lines.append(f"Project ID: {configuration.project_id}")
    lines.append(f"Auth domain: {configuration.auth_domain}")
    lines.append("")

    lines.append(_header(SECTION_ENVIRONMENT))
    lines.append(f"Online: {_flag(environment.online)}")
    lines.append(f"Cookies enabled: {_flag(environment.cookies_enabled)}")
    lines.append(f"Local storage available: {_flag(environment.local_storage_available)}")
    lines.append(f"Runtime: {environment.runtime}")
    lines.append("")

    lines.append(_header(SECTION_NETWORK))
    quality = report.network_quality
    if quality is None:
        lines.append(NO_NETWORK_INFORMATION)
    else:
        lines.append(f"Effective type: {_optional(quality.effective_type)}")
        lines.append(f"Downlink (Mbps): {_optional(quality.downlink_mbps)}")
        lines.append(f"RTT (ms): {_optional(quality.rtt_ms)}")
    lines.append("")

    lines.append(_header(SECTION_RECOMMENDATIONS))
    if report.recommendations:
        lines.extend(f"{RECOMMENDATION_INDENT}{item}" for item in report.recommendations)
    else:
        lines.append(NO_RECOMMENDATIONS)

    return "\n".join(lines) + "\n"


def _parse_flag(value: str) -> bool:
    if value == PASS:
        return True
    if value == FAIL:
        return False
    raise ValueError(f"Expected {PASS} or {FAIL}, got {value!r}")


def _parse_float(value: str) -> float | None:
    return None if value == UNKNOWN else float(value)


def parse_text_report(text: str) -> DiagnosticsReport:
    """Rebuild a report from :func:`render_text_report` output."""

    timestamp: datetime | None = None
    section: str | None = None
    fields: dict[str, dict[str, str]] = {}
    resources: list[ResourceStatus] = []
    recommendations: list[str] = []
    network_missing = False

    for line in text.splitlines():
        if line.startswith("== ") and line.endswith(" =="):
            section = line[3:-3]
            fields.setdefault(section, {})
            continue
        if section is None:
            if line.startswith("Generated: "):
                timestamp = datetime.fromisoformat(line[len("Generated: ") :])
            continue
        if section == SECTION_RECOMMENDATIONS:
            if line.startswith(RECOMMENDATION_INDENT):
                recommendations.append(line[len(RECOMMENDATION_INDENT) :])
            continue
        if not line:
            continue
        if section == SECTION_NETWORK and line == NO_NETWORK_INFORMATION:
            network_missing = True
            continue
        key, separator, value = line.partition(": ")
        if not separator:
            raise ValueError(f"Malformed report line in {section}: {line!r}")
        if section == SECTION_CONNECTIVITY and key.startswith(_RESOURCE_PREFIX):
            resources.append(
                ResourceStatus(name=key[len(_RESOURCE_PREFIX) :], reachable=_parse_flag(value))
            )
            continue
        fields[section][key] = value

    if timestamp is None:
        raise ValueError("Report is missing its Generated timestamp")
    try:
        connectivity = fields[SECTION_CONNECTIVITY]
        configuration = fields[SECTION_CONFIGURATION]
        environment = fields[SECTION_ENVIRONMENT]
        network = fields[SECTION_NETWORK]
    except KeyError as exc:
        raise ValueError(f"Report is missing the {exc.args[0]} section") from exc

    network_quality = None
    if not network_missing:
        effective_type = network.get("Effective type", UNKNOWN)
        network_quality = NetworkQuality(
            effective_type=None if effective_type == UNKNOWN else effective_type,
            downlink_mbps=_parse_float(network.get("Downlink (Mbps)", UNKNOWN)),
            rtt_ms=_parse_float(network.get("RTT (ms)", UNKNOWN)),
        )

    return DiagnosticsReport(
        timestamp=timestamp,
        connectivity=ConnectivityChecks(
            internet=_parse_flag(connectivity["Internet"]),
            backend=_parse_flag(connectivity["Backend"]),
            specific_resource=_parse_flag(connectivity["Specific resource"]),
            resources=tuple(resources),
        ),
        configuration=ConfigurationChecks(
            variables_present=_parse_flag(configuration["Variables present"]),
            valid_config=_parse_flag(configuration["Valid config"]),
            project_id=configuration["Project ID"],
            auth_domain=configuration["Auth domain"],
        ),
        environment=EnvironmentChecks(
            online=_parse_flag(environment["Online"]),
            cookies_enabled=_parse_flag(environment["Cookies enabled"]),
            local_storage_available=_parse_flag(environment["Local storage available"]),
            runtime=environment.get("Runtime", ""),
        ),
        network_quality=network_quality,
        recommendations=tuple(recommendations),
    )


def export_filename(report: DiagnosticsReport, fmt: str = EXPORT_FORMAT_TEXT) -> str:
    extension = "json" if fmt == EXPORT_FORMAT_JSON else "txt"
    return f"backend-diagnostics-{report.timestamp:%Y-%m-%d}.{extension}"


def export_report(
    report: DiagnosticsReport, directory: str | Path, fmt: str = EXPORT_FORMAT_TEXT
) -> Path:
    """Write the report into ``directory`` and return the artifact path."""

    if fmt not in (EXPORT_FORMAT_TEXT, EXPORT_FORMAT_JSON):
        raise ValueError(f"Unsupported export format: {fmt}")
    target_dir = Path(directory).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / export_filename(report, fmt)
    content = report_to_json(report) if fmt == EXPORT_FORMAT_JSON else render_text_report(report)
    path.write_text(content, encoding="utf-8")
    return path


__all__ = [
    "DiagnosticsReportModel",
    "render_text_report",
    "parse_text_report",
    "report_to_dict",
    "report_from_dict",
    "report_to_json",
    "export_filename",
    "export_report",
    "EXPORT_FORMAT_TEXT",
    "EXPORT_FORMAT_JSON",
]
