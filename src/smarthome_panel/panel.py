"""Wires the client, presenter, synchronizer and dispatcher to a page."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .client import PanelClient
from .const import OUTPUT_ELEMENT_ID, UI_LOADED_MESSAGE
from .dispatch import ActionDispatcher
from .page import Page
from .presenter import ElementSink, ResultPresenter, TraceSink
from .sync import DeviceStateSynchronizer

_LOGGER = logging.getLogger(__name__)


class ControlPanel:
    """A control panel bound to one page.

    By default the trace goes to the page's ``#output`` element; pass
    ``sinks`` to record it elsewhere (for example a ``MemorySink``).
    """

    def __init__(
        self,
        page: Page,
        client: Optional[PanelClient] = None,
        sinks: Optional[Iterable[TraceSink]] = None,
    ) -> None:
        """Initialize the panel."""
        self.page = page
        self.client = client if client is not None else PanelClient()
        if sinks is None:
            sinks = [ElementSink(page, OUTPUT_ELEMENT_ID)]
        self.presenter = ResultPresenter(sinks, page=page)
        self.synchronizer = DeviceStateSynchronizer(page)
        self.dispatcher = ActionDispatcher(
            self.client, self.presenter, self.synchronizer, page
        )

    def bind(self) -> None:
        self.dispatcher.bind()

    async def async_load(self) -> None:
        """Bind the listeners and run the page-load sequence."""
        self.bind()
        devices = await self.dispatcher.refresh_devices()
        _LOGGER.info(
            "Panel loaded with %s devices.", len(devices) if devices is not None else "no"
        )
        if self.page.get_element_by_id(OUTPUT_ELEMENT_ID) is not None:
            self.presenter.present(UI_LOADED_MESSAGE)

    async def async_close(self) -> None:
        """Wait for in-flight dispatches, then release the client session."""
        await self.dispatcher.drain()
        await self.client.close_session()
