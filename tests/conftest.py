from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import copy
from typing import Any, Dict, List, Optional, Tuple

from aiohttp import web
from aiohttp.test_utils import TestServer
import pytest

from smarthome_panel import Page, PanelClient

DEFAULT_DEVICES = [
    {"id": "living-light-1", "info": "Living light", "type": "LIGHT",
     "location": "Living Room", "isOn": False, "power": 0},
    {"id": "sensor-1", "info": "Door sensor", "type": "SENSOR",
     "location": "Hall", "isOn": True, "power": 2},
]

PANEL_HTML = """
<html><body>
  <span id="activeDevices">0</span>
  <span id="homeMode">HOME</span>
  <div class="device-card" data-device-id="living-light-1">
    <span class="device-status status-off">OFF</span>
    <div class="power-indicator"><span class="value">0W</span></div>
    <button class="device-control-btn" data-device-id="living-light-1" data-action="on">
      <i class="icon">on</i>
    </button>
  </div>
  <div class="device-card" data-device-id="sensor-1">
    <span class="device-status">?</span>
    <div class="power-indicator"><span class="value">?</span></div>
  </div>
  <button class="room-control-btn" data-room="Living Room" data-action="off">Room off</button>
  <button class="mode-btn" data-mode="AWAY">Away</button>
  <button class="scene-btn" data-scene="movie night">Movie</button>
  <ul>
    <li class="pattern-list-item" data-pattern="builder"><span>Builder</span></li>
  </ul>
  <section class="pattern-section" id="observer">
    <form class="demo-form" data-api-endpoint="/patterns/observer/register" data-api-method="POST">
      <input name="deviceId" value="sensor-1">
      <input type="checkbox" name="channels" value="PUSH" checked>
      <input type="checkbox" name="channels" value="EMAIL" checked>
      <input type="checkbox" name="channels" value="SMS">
      <button type="submit" name="go" value="1">Go</button>
    </form>
    <pre id="observer-result"></pre>
  </section>
  <pre id="output"></pre>
</body></html>
"""


class FakeBackend:
    """In-process stand-in for the smart-home backend API."""

    def __init__(self, devices: Optional[List[Dict[str, Any]]] = None) -> None:
        self.devices = copy.deepcopy(DEFAULT_DEVICES if devices is None else devices)
        self.requests: List[Tuple[str, str]] = []
        # Seconds to wait before handling a device action, keyed by action
        self.delays: Dict[str, float] = {}
        # Raw text/plain body served with a 500 by the mode endpoint
        self.mode_failure: Optional[bytes] = None

    def _device(self, device_id: str) -> Optional[Dict[str, Any]]:
        for device in self.devices:
            if device["id"] == device_id:
                return device
        return None

    @web.middleware
    async def _record(self, request: web.Request, handler):
        self.requests.append((request.method, request.raw_path))
        return await handler(request)

    async def get_devices(self, request: web.Request) -> web.Response:
        return web.json_response(self.devices)

    async def get_status(self, request: web.Request) -> web.Response:
        active = sum(1 for d in self.devices if d["isOn"])
        return web.json_response(
            {"systemStatus": "OK", "homeMode": "HOME", "activeDevices": active}
        )

    async def set_mode(self, request: web.Request) -> web.Response:
        if self.mode_failure is not None:
            return web.Response(
                status=500, body=self.mode_failure, content_type="text/plain"
            )
        return web.json_response(
            {"systemStatus": "OK", "homeMode": request.match_info["mode"], "activeDevices": 0}
        )

    async def control_device(self, request: web.Request) -> web.Response:
        action = request.query.get("action", "")
        await asyncio.sleep(self.delays.get(action, 0))
        device = self._device(request.match_info["id"])
        if device is None:
            return web.json_response(
                {"status": 404, "error": "BAD_REQUEST",
                 "message": f"Device not found: {request.match_info['id']}"},
                status=404,
            )
        device["isOn"] = action == "on"
        device["power"] = 60 if device["isOn"] else 0
        return web.json_response(device)

    async def control_room(self, request: web.Request) -> web.Response:
        room = request.match_info["room"]
        changed = [d for d in self.devices if d["location"] == room]
        for device in changed:
            device["isOn"] = request.query.get("action") == "on"
        return web.json_response(changed)

    async def scene(self, request: web.Request) -> web.Response:
        return web.json_response({"scene": request.match_info["name"], "activated": True})

    async def text_error(self, request: web.Request) -> web.Response:
        return web.Response(status=500, text="boom")

    async def empty_error(self, request: web.Request) -> web.Response:
        return web.Response(status=500)

    async def latin1_error(self, request: web.Request) -> web.Response:
        return web.Response(status=500, body=b"caf\xe9 down", content_type="text/plain")

    async def plain_text(self, request: web.Request) -> web.Response:
        return web.Response(text="pong")

    async def echo(self, request: web.Request) -> web.Response:
        return web.json_response(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
            }
        )

    def make_app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get("/api/devices", self.get_devices)
        app.router.add_get("/api/status", self.get_status)
        app.router.add_post("/api/mode/{mode}", self.set_mode)
        app.router.add_post("/api/devices/{id}/control", self.control_device)
        app.router.add_post("/api/patterns/composite/rooms/{room}/control", self.control_room)
        app.router.add_post("/api/patterns/facade/scene/{name}", self.scene)
        app.router.add_get("/api/errors/text", self.text_error)
        app.router.add_get("/api/errors/empty", self.empty_error)
        app.router.add_get("/api/errors/latin1", self.latin1_error)
        app.router.add_get("/api/ping", self.plain_text)
        app.router.add_route("*", "/api/{tail:.*}", self.echo)
        return app


Scenario = Callable[[PanelClient, FakeBackend], Awaitable[Any]]


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def run_scenario(backend: FakeBackend) -> Callable[[Scenario], Any]:
    """Run an async scenario against the fake backend and return its result."""

    def _run(scenario: Scenario) -> Any:
        async def _main() -> Any:
            async with TestServer(backend.make_app()) as server:
                async with PanelClient(str(server.make_url("/"))) as client:
                    return await scenario(client, backend)

        return asyncio.run(_main())

    return _run


@pytest.fixture()
def page() -> Page:
    return Page.from_html(PANEL_HTML)
