"""Timestamped request/response trace for the panel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime
import logging
from typing import Any, List, Optional

from .const import OUTPUT_ELEMENT_ID, RESULT_ELEMENT_SUFFIX
from .models import TraceEntry, format_payload
from .page import Page

_LOGGER = logging.getLogger(__name__)

_NO_PAYLOAD = object()


def local_time() -> str:
    """Return the current local wall-clock time."""
    return datetime.now().strftime("%X")


class TraceSink(ABC):
    """Destination of trace entries."""

    @abstractmethod
    def write(self, entry: TraceEntry) -> None:
        """Record one entry ahead of everything written before."""


class MemorySink(TraceSink):
    """Append-only log of entries, kept in memory."""

    def __init__(self) -> None:
        self._entries: List[TraceEntry] = []

    def write(self, entry: TraceEntry) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> List[TraceEntry]:
        """Entries newest-first, the order they are displayed in."""
        return list(reversed(self._entries))

    @property
    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries]


class ElementSink(TraceSink):
    """Prepends rendered entries to the text of a page element.

    The element is looked up on every write, so a missing element simply
    makes the sink a no-op.
    """

    def __init__(self, page: Page, element_id: str = OUTPUT_ELEMENT_ID) -> None:
        self._page = page
        self._element_id = element_id

    def write(self, entry: TraceEntry) -> None:
        element = self._page.get_element_by_id(self._element_id)
        if element is None:
            return
        element.text = f"{entry.render()}\n\n{element.text}"


class ResultPresenter:
    """Renders every request/response pair into the configured sinks."""

    def __init__(
        self,
        sinks: Optional[Iterable[TraceSink]] = None,
        page: Optional[Page] = None,
        clock: Callable[[], str] = local_time,
    ) -> None:
        self._sinks = list(sinks or ())
        self._page = page
        self._clock = clock

    def present(self, message: str, payload: Any = _NO_PAYLOAD) -> Optional[TraceEntry]:
        """Record ``message`` (and ``payload`` when given) in every sink."""
        if not self._sinks:
            return None
        if payload is _NO_PAYLOAD:
            entry = TraceEntry(self._clock(), message)
        else:
            entry = TraceEntry(self._clock(), message, payload, has_payload=True)
        _LOGGER.debug("Trace: %s", message)
        for sink in self._sinks:
            sink.write(entry)
        return entry

    def show_result(self, pattern_id: str, data: Any, trace: bool = True) -> None:
        """Replace the pattern's own result box and trace the data globally."""
        if self._page is not None:
            element = self._page.get_element_by_id(f"{pattern_id}{RESULT_ELEMENT_SUFFIX}")
            if element is not None:
                text = data if isinstance(data, str) else format_payload(data)
                element.text = f"[{self._clock()}] {text}"
        if trace:
            self.present(f"[{pattern_id.upper()}]", data)
