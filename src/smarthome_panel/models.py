"""Data models for smarthome_panel."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any, Dict, Mapping, Optional, Tuple

# Dynamic parameter source resolved from a fresh device-list refresh
DEVICE_SOURCE = "device"


@dataclass
class DeviceSnapshot:
    """The backend's current view of one controllable device."""

    id: str
    is_on: bool = False
    power: Optional[float] = None
    info: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    raw_data: Dict[str, Any] = None  # Store the raw dictionary

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["DeviceSnapshot"]:
        """Build a snapshot from a backend payload, or None without an id."""
        if not isinstance(data, Mapping) or not data.get("id"):
            return None
        power = data.get("power")
        # bool is an int subclass but never a power reading
        if isinstance(power, bool) or not isinstance(power, (int, float)):
            power = None
        return cls(
            id=str(data["id"]),
            is_on=bool(data.get("isOn")),
            power=power,
            info=data.get("info"),
            type=data.get("type"),
            location=data.get("location"),
            raw_data=dict(data),
        )


@dataclass(frozen=True)
class DynamicParam:
    """A parameter whose value is looked up when the action is dispatched.

    ``source`` is either ``DEVICE_SOURCE`` or a page selector whose first
    match's value is used. ``fallback`` applies when the source yields nothing.
    """

    name: str
    source: str
    fallback: Any = None


@dataclass(frozen=True)
class ActionDescriptor:
    """Catalog entry binding an action to its method, endpoint and parameters."""

    method: str
    endpoint: str
    params: Mapping[str, Any] = field(default_factory=dict)
    dynamic: Tuple[DynamicParam, ...] = ()


@dataclass(frozen=True)
class ApiResponse:
    """Status and decoded body of a successful request."""

    status: int
    body: Any


@dataclass(frozen=True)
class TraceEntry:
    """One timestamped line of the interaction log."""

    timestamp: str
    message: str
    payload: Any = None
    has_payload: bool = False

    def render(self) -> str:
        """Return ``[time] message`` followed by the pretty-printed payload."""
        if not self.has_payload:
            return f"[{self.timestamp}] {self.message}"
        return f"[{self.timestamp}] {self.message}\n{format_payload(self.payload)}"


def format_payload(payload: Any) -> str:
    """Pretty-print a payload the way the panel displays it."""
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
