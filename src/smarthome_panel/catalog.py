"""Catalog of pattern demo actions and form endpoint overrides."""

from __future__ import annotations

from typing import Mapping, Optional

from .const import PATTERNS_ENDPOINT, STATUS_ENDPOINT
from .models import DEVICE_SOURCE, ActionDescriptor, DynamicParam

# Listing every pattern is what an unknown pattern id runs
LIST_PATTERNS = ActionDescriptor("GET", PATTERNS_ENDPOINT)

PATTERN_ACTIONS: Mapping[str, ActionDescriptor] = {
    # Creational
    "singleton": ActionDescriptor("GET", STATUS_ENDPOINT),
    "factory": ActionDescriptor(
        "POST",
        "/patterns/factory/create",
        {"type": "LIGHT", "name": "New Light", "location": "Demo Room"},
    ),
    "abstract-factory": ActionDescriptor(
        "POST",
        "/patterns/abstract-factory/create",
        {"ecosystem": "SMARTTHINGS", "location": "Demo Room"},
    ),
    "builder": ActionDescriptor(
        "POST",
        "/patterns/builder/rule",
        {
            "name": "Motion Lights",
            "trigger": "motion",
            "condition": "night",
            "action": "light on",
        },
    ),
    "prototype": ActionDescriptor("GET", "/patterns/prototype/templates"),
    # Structural
    "adapter": ActionDescriptor(
        "POST",
        "/patterns/adapter/legacy",
        {"name": "Old Thermostat", "location": "Basement"},
    ),
    "bridge": ActionDescriptor("GET", "/patterns/bridge/demo"),
    "composite": ActionDescriptor("GET", "/patterns/composite/rooms"),
    "decorator": ActionDescriptor(
        "POST",
        "/patterns/decorator/wrap",
        {"decorators": "LOGGING,SECURITY,CACHING"},
        (DynamicParam("deviceId", DEVICE_SOURCE, "living-light-1"),),
    ),
    "facade": ActionDescriptor("POST", "/patterns/facade/scene/movie"),
    "flyweight": ActionDescriptor("GET", "/patterns/flyweight/demo"),
    "proxy": ActionDescriptor(
        "POST",
        "/patterns/proxy/remote",
        {"name": "Remote Camera", "address": "192.168.1.100"},
    ),
    # Behavioral
    "chain": ActionDescriptor(
        "POST",
        "/patterns/chain/alert",
        {"level": "WARNING", "message": "Motion detected at front door"},
        (DynamicParam("deviceId", DEVICE_SOURCE, "sensor-1"),),
    ),
    "command": ActionDescriptor(
        "POST",
        "/patterns/command/execute",
        {"command": "ON"},
        (DynamicParam("deviceId", DEVICE_SOURCE, "living-light-1"),),
    ),
    "interpreter": ActionDescriptor(
        "POST",
        "/patterns/interpreter/evaluate",
        {"rule": "motion AND hour >= 18", "motion": True, "hour": 20},
    ),
    "iterator": ActionDescriptor(
        "GET",
        "/patterns/iterator/demo",
        {"filterType": "ROOM", "filterValue": "Living Room"},
    ),
    "mediator": ActionDescriptor("GET", "/patterns/mediator/demo"),
    "memento": ActionDescriptor(
        "POST", "/patterns/memento/save", {"sceneName": "Demo Scene"}
    ),
    "observer": ActionDescriptor(
        "POST",
        "/patterns/observer/register",
        {"observerType": "MOBILE"},
        (DynamicParam("deviceId", DEVICE_SOURCE, "sensor-1"),),
    ),
    "state": ActionDescriptor("GET", "/patterns/state/demo"),
    "strategy": ActionDescriptor(
        "POST", "/patterns/strategy/apply", {"strategy": "ECO"}
    ),
    "template": ActionDescriptor(
        "GET", "/patterns/template/demo", {"deviceType": "LIGHT"}
    ),
    "visitor": ActionDescriptor(
        "GET", "/patterns/visitor/audit", {"type": "SECURITY"}
    ),
    # Patterns lab extras
    "command-undo": ActionDescriptor("POST", "/patterns/command/undo"),
    "command-redo": ActionDescriptor("POST", "/patterns/command/redo"),
    "memento-list": ActionDescriptor("GET", "/patterns/memento/list"),
    "memento-restore": ActionDescriptor(
        "POST",
        "/patterns/memento/restore",
        dynamic=(
            DynamicParam("sceneName", '#memento input[name="sceneName"]', "My Snapshot"),
        ),
    ),
    "observer-trigger": ActionDescriptor(
        "POST",
        "/patterns/observer/trigger",
        {"eventType": "MOTION"},
        (
            DynamicParam(
                "deviceId", '#observer input[name="deviceId"]', "living-thermostat"
            ),
        ),
    ),
}


# Form endpoints redirected to the backend operation that serves them.
# Values are (method, endpoint); a None method keeps the form's method.
FORM_ENDPOINT_OVERRIDES: Mapping[str, tuple] = {
    "/patterns/observer/register": ("POST", "/patterns/observer/subscribe"),
    "/patterns/mediator/notify": ("POST", "/patterns/mediator/notify"),
    "/patterns/template/init": ("POST", "/patterns/template/init"),
}


def resolve_pattern(
    pattern_id: Optional[str],
    catalog: Mapping[str, ActionDescriptor] = PATTERN_ACTIONS,
) -> ActionDescriptor:
    """Return the catalog entry for ``pattern_id``, or the pattern listing."""
    return catalog.get(pattern_id or "", LIST_PATTERNS)


def resolve_form_endpoint(
    method: str,
    endpoint: str,
    overrides: Mapping[str, tuple] = FORM_ENDPOINT_OVERRIDES,
) -> tuple:
    """Apply the override table to a form's method and endpoint."""
    override = overrides.get(endpoint)
    if override is None:
        return method, endpoint
    override_method, override_endpoint = override
    return override_method or method, override_endpoint
