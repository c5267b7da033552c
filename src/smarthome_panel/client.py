"""Async client for the smart-home backend API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from yarl import URL

from .const import (
    API_BASE,
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_SERVER_URL,
    DEVICE_CONTROL_ENDPOINT,
    DEVICES_ENDPOINT,
    JSON_CONTENT_TYPE,
    MODE_ENDPOINT,
    PATTERNS_ENDPOINT,
    ROOM_CONTROL_ENDPOINT,
    SCENE_ENDPOINT,
    STATUS_ENDPOINT,
)
from .exceptions import RequestFailed
from .models import ApiResponse
from .templating import build_url

_LOGGER = logging.getLogger(__name__)


def error_message(body: Any) -> str:
    """Pick the message of a failed response body."""
    if isinstance(body, str):
        return body or DEFAULT_ERROR_MESSAGE
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return DEFAULT_ERROR_MESSAGE


class PanelClient:
    """Performs templated requests against the backend API.

    Each call is independent: the only shared state is the aiohttp session,
    so calls may run concurrently on the same client.
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the client."""
        self._server_url = server_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        # Use provided session or create one on first request
        self._session = session
        self._managed_session = session is None

    async def __aenter__(self) -> "PanelClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close_session()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            _LOGGER.debug("Creating new aiohttp ClientSession for PanelClient.")
            self._session = aiohttp.ClientSession()
            self._managed_session = True
        return self._session

    async def close_session(self) -> None:
        """Close the aiohttp session if it's managed by this instance."""
        if self._session and not self._session.closed and self._managed_session:
            await self._session.close()
            self._session = None
            _LOGGER.debug("Managed aiohttp session closed by PanelClient.")
        elif self._session and not self._managed_session:
            _LOGGER.debug("Session provided externally, not closing.")

    def build_request_url(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> str:
        """Return the absolute, already percent-encoded request URL."""
        path, query = build_url(endpoint, params)
        return f"{self._server_url}{API_BASE}{path}{query}"

    async def async_execute(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        """Send a request and return its status and decoded body.

        Raises:
            RequestFailed: If the response status is 400 or above, the body
                cannot be decoded, or no response arrives at all.

        """
        method = method.upper()
        url = self.build_request_url(endpoint, params)
        session = await self._get_session()

        _LOGGER.debug("Making %s request to %s", method, url)
        try:
            # encoded=True keeps yarl from re-quoting the templated path
            async with session.request(
                method, URL(url, encoded=True), timeout=self._timeout
            ) as response:
                _LOGGER.debug("Response status code: %s", response.status)
                content_type = response.headers.get("Content-Type", "")
                # Undecodable bytes are replaced so error bodies still surface
                text = await response.text(errors="replace")
        except asyncio.TimeoutError as timeout_err:
            _LOGGER.error("Request timed out: %s %s", method, url)
            raise RequestFailed(0, "Request timed out") from timeout_err
        except aiohttp.ClientError as req_err:
            _LOGGER.error("Request error during %s %s: %s", method, url, req_err)
            raise RequestFailed(0, f"Request error: {req_err}") from req_err

        body: Any = text
        if JSON_CONTENT_TYPE in content_type:
            try:
                body = json.loads(text) if text else None
            except ValueError as decode_err:
                _LOGGER.error("Invalid JSON from %s %s: %s", method, url, text)
                raise RequestFailed(
                    response.status, f"Invalid JSON response: {decode_err}"
                ) from decode_err

        if response.status >= 400:
            message = error_message(body)
            _LOGGER.warning(
                "API Error Response (%s) for %s %s: %s",
                response.status,
                method,
                url,
                message,
            )
            raise RequestFailed(response.status, message)

        return ApiResponse(status=response.status, body=body)

    async def async_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return only the decoded body."""
        response = await self.async_execute(method, endpoint, params)
        return response.body

    async def async_get_devices(self) -> List[Dict[str, Any]]:
        """Return the backend's device list."""
        return await self.async_request("GET", DEVICES_ENDPOINT) or []

    async def async_get_status(self) -> Dict[str, Any]:
        """Return the home status (system status, mode, active devices)."""
        return await self.async_request("GET", STATUS_ENDPOINT)

    async def async_set_mode(self, mode: str) -> Dict[str, Any]:
        """Switch the home mode."""
        return await self.async_request("POST", MODE_ENDPOINT, {"mode": mode})

    async def async_control_device(self, device_id: str, action: str) -> Any:
        """Send a control action to one device."""
        return await self.async_request(
            "POST",
            DEVICE_CONTROL_ENDPOINT,
            {"deviceId": device_id, "action": action},
        )

    async def async_control_room(self, room_id: str, action: str) -> Any:
        """Send a control action to every device of a room."""
        return await self.async_request(
            "POST", ROOM_CONTROL_ENDPOINT, {"roomId": room_id, "action": action}
        )

    async def async_activate_scene(self, scene_name: str) -> Any:
        """Activate a scene through the facade."""
        return await self.async_request(
            "POST", SCENE_ENDPOINT, {"sceneName": scene_name}
        )

    async def async_list_patterns(self) -> Any:
        """Return the catalog of demonstrable patterns."""
        return await self.async_request("GET", PATTERNS_ENDPOINT)
