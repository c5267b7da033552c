"""Reconciles backend device state into the page."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from .const import (
    ACTIVE_DEVICES_ELEMENT_ID,
    DEVICE_CARD_ATTRIBUTE,
    DEVICE_STATUS_SELECTOR,
    HOME_MODE_ELEMENT_ID,
    POWER_VALUE_SELECTOR,
    STATUS_OFF_CLASS,
    STATUS_OFF_LABEL,
    STATUS_ON_CLASS,
    STATUS_ON_LABEL,
)
from .models import DeviceSnapshot
from .page import Element, Page, css_escape

_LOGGER = logging.getLogger(__name__)


def _snapshot(device: Union[DeviceSnapshot, Mapping[str, Any], None]) -> Optional[DeviceSnapshot]:
    if isinstance(device, DeviceSnapshot):
        return device if device.id else None
    return DeviceSnapshot.from_dict(device) if device else None


def _format_power(power: float) -> str:
    if isinstance(power, float) and power.is_integer():
        power = int(power)
    return f"{power}W"


class DeviceStateSynchronizer:
    """Writes device snapshots into their existing device cards.

    Only existing nodes are updated; nothing is created or removed, and
    repeating a sync with the same snapshot leaves the page unchanged.
    """

    def __init__(self, page: Page) -> None:
        self._page = page

    def find_card(self, device_id: str) -> Optional[Element]:
        return self._page.select_one(
            f'[{DEVICE_CARD_ATTRIBUTE}="{css_escape(device_id)}"]'
        )

    def sync(self, device: Union[DeviceSnapshot, Mapping[str, Any], None]) -> None:
        """Reflect one device's on/off state and power on its card."""
        snapshot = _snapshot(device)
        if snapshot is None:
            return
        card = self.find_card(snapshot.id)
        if card is None:
            _LOGGER.debug("No card on the page for device %s", snapshot.id)
            return

        status = card.select_one(DEVICE_STATUS_SELECTOR)
        if status is not None:
            status.text = STATUS_ON_LABEL if snapshot.is_on else STATUS_OFF_LABEL
            status.toggle_class(STATUS_ON_CLASS, snapshot.is_on)
            status.toggle_class(STATUS_OFF_CLASS, not snapshot.is_on)

        power = card.select_one(POWER_VALUE_SELECTOR)
        if power is not None and snapshot.power is not None:
            power.text = _format_power(snapshot.power)

    def sync_active_count(self, devices: Iterable[Mapping[str, Any]]) -> int:
        """Show how many devices are switched on; return the count."""
        count = sum(
            1 for device in devices if isinstance(device, Mapping) and device.get("isOn")
        )
        element = self._page.get_element_by_id(ACTIVE_DEVICES_ELEMENT_ID)
        if element is not None:
            element.text = str(count)
        return count

    def sync_home_mode(self, status: Any) -> None:
        if not isinstance(status, Mapping) or not status.get("homeMode"):
            return
        element = self._page.get_element_by_id(HOME_MODE_ELEMENT_ID)
        if element is not None:
            element.text = str(status["homeMode"])
