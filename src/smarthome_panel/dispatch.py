"""Delegated event dispatch: page interactions to API calls.

One listener per event type is bound on the page. For every event the
target's ancestry is searched for the nearest element carrying a role marker,
the element's data attributes are turned into a tagged intent, and the intent
is executed as an asyncio task so the page stays interactive while the
request is in flight. Concurrent dispatches are neither ordered nor
deduplicated.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from .catalog import (
    FORM_ENDPOINT_OVERRIDES,
    PATTERN_ACTIONS,
    resolve_form_endpoint,
    resolve_pattern,
)
from .client import PanelClient
from .const import (
    API_FORM_SELECTOR,
    CLICK_EVENT,
    DATA_ACTION,
    DATA_API_ENDPOINT,
    DATA_API_METHOD,
    DATA_DEVICE_ID,
    DATA_MODE,
    DATA_PATTERN,
    DATA_REFRESH,
    DATA_ROOM,
    DATA_SCENE,
    DEFAULT_FORM_METHOD,
    DEVICE_CONTROL_SELECTOR,
    MODE_SELECTOR,
    PATTERN_LIST_ITEM_SELECTOR,
    PATTERN_RUN_SELECTOR,
    PATTERN_SECTION_SELECTOR,
    RELOAD_EVENT,
    ROOM_CONTROL_SELECTOR,
    SCENE_SELECTOR,
    SUBMIT_EVENT,
)
from .exceptions import RequestFailed
from .models import DEVICE_SOURCE, ActionDescriptor
from .page import Element, Event, Page, form_params
from .presenter import ResultPresenter
from .sync import DeviceStateSynchronizer

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceControl:
    device_id: str
    action: str


@dataclass(frozen=True)
class RoomControl:
    room_id: str
    action: str


@dataclass(frozen=True)
class ModeSelect:
    mode: str


@dataclass(frozen=True)
class SceneSelect:
    scene: str


@dataclass(frozen=True)
class PatternRun:
    pattern_id: str
    # "run-button" or "list-item"
    source: str = "run-button"


@dataclass(frozen=True)
class FormSubmit:
    form: Element
    endpoint: str
    method: str = DEFAULT_FORM_METHOD
    refresh: bool = False


Intent = Union[DeviceControl, RoomControl, ModeSelect, SceneSelect, PatternRun, FormSubmit]


def _required(element: Element, *keys: str) -> Optional[List[str]]:
    """Return the dataset values for ``keys``, or None if any is missing."""
    dataset = element.dataset
    values = [dataset.get(key) for key in keys]
    if not all(values):
        return None
    return values


def _device_control(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_DEVICE_ID, DATA_ACTION)
    return DeviceControl(*values) if values else None


def _room_control(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_ROOM, DATA_ACTION)
    return RoomControl(*values) if values else None


def _mode_select(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_MODE)
    return ModeSelect(*values) if values else None


def _scene_select(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_SCENE)
    return SceneSelect(*values) if values else None


def _pattern_run(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_PATTERN)
    return PatternRun(values[0]) if values else None


def _pattern_list_item(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_PATTERN)
    return PatternRun(values[0], source="list-item") if values else None


def _form_submit(element: Element) -> Optional[Intent]:
    values = _required(element, DATA_API_ENDPOINT)
    if not values:
        return None
    dataset = element.dataset
    return FormSubmit(
        form=element,
        endpoint=values[0],
        method=(dataset.get(DATA_API_METHOD) or DEFAULT_FORM_METHOD).upper(),
        refresh=dataset.get(DATA_REFRESH, "").lower() == "true",
    )


@dataclass(frozen=True)
class Role:
    """A role marker and how to read an intent from the marked element."""

    name: str
    event_type: str
    selector: str
    build: Callable[[Element], Optional[Intent]]


# Priority order: at the same element, the first matching role wins
ROLES: List[Role] = [
    Role("device-control", CLICK_EVENT, DEVICE_CONTROL_SELECTOR, _device_control),
    Role("room-control", CLICK_EVENT, ROOM_CONTROL_SELECTOR, _room_control),
    Role("mode-select", CLICK_EVENT, MODE_SELECTOR, _mode_select),
    Role("scene-select", CLICK_EVENT, SCENE_SELECTOR, _scene_select),
    Role("pattern-run", CLICK_EVENT, PATTERN_RUN_SELECTOR, _pattern_run),
    Role("pattern-list-item", CLICK_EVENT, PATTERN_LIST_ITEM_SELECTOR, _pattern_list_item),
    Role("form-with-endpoint", SUBMIT_EVENT, API_FORM_SELECTOR, _form_submit),
]


def resolve_intent(event: Event, roles: List[Role] = ROLES) -> Optional[Intent]:
    """Find the intent of the nearest marked ancestor of the event target.

    Once an element with a marker is found the search stops: if its required
    data attributes are missing the event is ignored rather than handed to a
    farther ancestor.
    """
    candidates = [role for role in roles if role.event_type == event.type]
    if not candidates:
        return None
    for node in event.target.ancestors():
        for role in candidates:
            if node.matches(role.selector):
                intent = role.build(node)
                if intent is None:
                    _LOGGER.debug(
                        "Ignoring %s on %r: missing data attributes", role.name, node
                    )
                return intent
    return None


class ActionDispatcher:
    """Executes intents and records their outcome on the page."""

    def __init__(
        self,
        client: PanelClient,
        presenter: ResultPresenter,
        synchronizer: DeviceStateSynchronizer,
        page: Page,
        catalog: Mapping[str, ActionDescriptor] = PATTERN_ACTIONS,
        overrides: Mapping[str, tuple] = FORM_ENDPOINT_OVERRIDES,
    ) -> None:
        self._client = client
        self._presenter = presenter
        self._sync = synchronizer
        self._page = page
        self._catalog = catalog
        self._overrides = overrides
        self._bound = False
        # Strong references to in-flight tasks
        self._pending: Set[asyncio.Task] = set()
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            DeviceControl: lambda i: self.control_device(i.device_id, i.action),
            RoomControl: lambda i: self.control_room(i.room_id, i.action),
            ModeSelect: lambda i: self.set_home_mode(i.mode),
            SceneSelect: lambda i: self.activate_scene(i.scene),
            PatternRun: lambda i: self.run_pattern(i.pattern_id),
            FormSubmit: self.submit_form,
        }

    def bind(self) -> None:
        """Register the delegated listeners on the page, once."""
        if self._bound:
            return
        self._page.add_event_listener(CLICK_EVENT, self)
        self._page.add_event_listener(SUBMIT_EVENT, self)
        self._bound = True

    def __call__(self, event: Event) -> Optional[asyncio.Task]:
        """Listener entry point: resolve now, execute in the background."""
        intent = self.prepare(event)
        if intent is None:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _LOGGER.warning(
                "Ignoring %s event on <%s>: no running event loop",
                event.type,
                event.target.tag,
            )
            return None
        task = loop.create_task(self.perform(intent))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def prepare(self, event: Event) -> Optional[Intent]:
        """Resolve the event's intent; cancel native form submission."""
        intent = resolve_intent(event)
        if isinstance(intent, FormSubmit):
            event.prevent_default()
        return intent

    async def handle_event(self, event: Event) -> Any:
        """Resolve and execute an event, waiting for the outcome."""
        intent = self.prepare(event)
        if intent is None:
            return None
        return await self.perform(intent)

    async def perform(self, intent: Intent) -> Any:
        return await self._handlers[type(intent)](intent)

    async def drain(self) -> None:
        """Wait until every background dispatch has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def refresh_devices(self) -> Optional[List[Dict[str, Any]]]:
        """Fetch all devices and re-sync every card and the active counter."""
        try:
            devices = await self._client.async_get_devices()
        except RequestFailed as err:
            self._presenter.present("Error refreshing devices", {"error": err.message})
            return None
        devices = devices if isinstance(devices, list) else []
        self._sync.sync_active_count(devices)
        for device in devices:
            self._sync.sync(device)
        return devices

    async def set_home_mode(self, mode: str) -> Any:
        try:
            result = await self._client.async_set_mode(mode)
        except RequestFailed as err:
            self._presenter.present("Failed to set home mode", {"error": err.message})
            return None
        self._sync.sync_home_mode(result)
        self._presenter.present(f"Home Mode -> {mode}", result)
        return result

    async def control_device(self, device_id: str, action: str) -> Any:
        try:
            result = await self._client.async_control_device(device_id, action)
        except RequestFailed as err:
            self._presenter.present("Device control failed", {"error": err.message})
            return None
        self._presenter.present(f"Device Control: {device_id} -> {action}", result)
        self._sync.sync(result)
        await self.refresh_devices()
        return result

    async def control_room(self, room_id: str, action: str) -> Any:
        try:
            result = await self._client.async_control_room(room_id, action)
        except RequestFailed as err:
            self._presenter.present("Room control failed", {"error": err.message})
            return None
        self._presenter.present(f"Room Control: {room_id} -> {action}", result)
        await self.refresh_devices()
        return result

    async def activate_scene(self, scene_name: str) -> Any:
        try:
            result = await self._client.async_activate_scene(scene_name)
        except RequestFailed as err:
            self._presenter.present("Scene activation failed", {"error": err.message})
            return None
        self._presenter.present(f"Scene Activated: {scene_name}", result)
        await self.refresh_devices()
        return result

    async def _any_device_id(self) -> Optional[str]:
        devices = await self.refresh_devices()
        for device in devices or ():
            if isinstance(device, dict) and device.get("id"):
                return str(device["id"])
        return None

    async def resolve_params(self, action: ActionDescriptor) -> Dict[str, Any]:
        """Refresh the device list, then merge static and dispatch-time parameters."""
        params = dict(action.params)
        device_id = await self._any_device_id()
        for param in action.dynamic:
            if param.source == DEVICE_SOURCE:
                value = device_id
            else:
                field = self._page.select_one(param.source)
                value = field.value if field is not None else None
            params[param.name] = value or param.fallback
        return params

    async def run_pattern(self, pattern_id: str) -> Any:
        """Run one catalog action; unknown ids list the patterns instead."""
        action = resolve_pattern(pattern_id, self._catalog)
        result_id = pattern_id or "patterns"
        try:
            params = await self.resolve_params(action)
            result = await self._client.async_request(action.method, action.endpoint, params)
        except RequestFailed as err:
            error = {"error": err.message}
            self._presenter.present(f"Pattern demo failed: {pattern_id}", error)
            self._presenter.show_result(result_id, error, trace=False)
            return None
        self._presenter.present(f"Pattern Demo: {pattern_id}", result)
        self._presenter.show_result(result_id, result, trace=False)
        return result

    async def submit_form(self, intent: FormSubmit) -> Any:
        """Send a form's fields to its endpoint, then refresh the devices."""
        params = form_params(intent.form)
        method, endpoint = resolve_form_endpoint(
            intent.method, intent.endpoint, self._overrides
        )
        section = intent.form.closest(PATTERN_SECTION_SELECTOR)
        section_id = section.id if section is not None else None
        try:
            result = await self._client.async_request(method, endpoint, params)
        except RequestFailed as err:
            error = {"error": err.message}
            self._presenter.present(f"Request failed: {method} {endpoint}", error)
            if section_id:
                self._presenter.show_result(section_id, error, trace=False)
            return None
        self._presenter.present(f"{method} {endpoint}", result)
        if section_id:
            self._presenter.show_result(section_id, result, trace=False)
        await self.refresh_devices()
        if intent.refresh:
            self._page.dispatch_event(Event(RELOAD_EVENT, intent.form))
        return result
