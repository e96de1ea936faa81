"""
Domain models for the GeoSentinel integration.

This module contains pure data classes representing positions, risks and the
per-mode tracking parameters. These classes have no dependencies on HTTP, API
logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import enum
import logging

_LOGGER = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# The API reports severities in French; English values are accepted as-is.
_SEVERITY_ALIASES: dict[str, Severity] = {
    "faible": Severity.LOW,
    "modéré": Severity.MEDIUM,
    "modere": Severity.MEDIUM,
    "élevé": Severity.HIGH,
    "eleve": Severity.HIGH,
    "critique": Severity.CRITICAL,
}


def parse_severity(value) -> Severity:
    """Map an API severity string onto Severity, defaulting to MEDIUM."""
    if value is None:
        return Severity.MEDIUM
    text = str(value).strip().lower()
    if text in _SEVERITY_ALIASES:
        return _SEVERITY_ALIASES[text]
    try:
        return Severity(text)
    except ValueError:
        _LOGGER.debug("Unknown risk severity %r, using medium", value)
        return Severity.MEDIUM


@dataclasses.dataclass(frozen=True)
class Position:
    """A single fix from the positioning source."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp_ms: int


@dataclasses.dataclass(frozen=True)
class Risk:
    """Representation of a single geolocated risk as returned by the API."""

    id: str
    title: str
    category: str
    severity: Severity
    latitude: float
    longitude: float
    description: str | None = None

    @classmethod
    def from_json(cls, json: dict) -> Risk:
        category = json.get("category") or json.get("categoryLabel") or "unknown"
        return cls(
            id=str(json["id"]),
            title=json.get("title") or "",
            category=category,
            severity=parse_severity(json.get("severity")),
            latitude=float(json["latitude"]),
            longitude=float(json["longitude"]),
            description=json.get("description"),
        )


@dataclasses.dataclass(frozen=True)
class NearbyRisk:
    """A cached risk together with its distance from the current position."""

    risk: Risk
    distance: float

    @property
    def id(self) -> str:
        return self.risk.id


@dataclasses.dataclass(frozen=True)
class TourneeConfig:
    """Cadence and radius parameters for one travel mode."""

    mode: str
    search_radius_km: float
    alert_radius_meters: float
    refresh_interval_ms: int
    position_poll_interval_ms: int


@dataclasses.dataclass
class SessionState:
    start_time_ms: int
    last_run_ms: int | None = None
    warning_sent: bool = False


@dataclasses.dataclass
class Credentials:
    access_token: str | None = None
    refresh_token: str | None = None


class SystemSetting:
    """Representation of one row of the public system settings endpoint."""

    tournee_type: str
    label: str
    api_call_delay_minutes: float
    position_test_delay_seconds: float
    risk_load_zone_km: float
    alert_radius_meters: float
    dashboard_message: str | None = None

    def __init__(self, json: dict) -> None:
        self.tournee_type = json["tourneeType"]
        self.label = json.get("label", self.tournee_type)
        self.api_call_delay_minutes = float(json["apiCallDelayMinutes"])
        self.position_test_delay_seconds = float(json["positionTestDelaySeconds"])
        self.risk_load_zone_km = float(json["riskLoadZoneKm"])
        self.alert_radius_meters = float(json["alertRadiusMeters"])
        self.dashboard_message = json.get("dashboardMessage")

    def __str__(self) -> str:
        return (
            f"{self.tournee_type}: refresh {self.api_call_delay_minutes}min, "
            f"alert {self.alert_radius_meters}m, zone {self.risk_load_zone_km}km, "
            f"poll {self.position_test_delay_seconds}s"
        )


@dataclasses.dataclass(frozen=True)
class Notification:
    """Payload handed to the notification sink."""

    title: str
    body: str
    channel: str
    importance: str
    data: dict[str, str] = dataclasses.field(default_factory=dict)
