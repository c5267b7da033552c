"""Async control panel for the smart-home design patterns backend."""

# Import main classes for easier access
from .client import PanelClient
from .dispatch import ActionDispatcher, resolve_intent
from .models import ActionDescriptor, DeviceSnapshot, DynamicParam, TraceEntry
from .page import Element, Event, Page
from .panel import ControlPanel
from .presenter import ElementSink, MemorySink, ResultPresenter
from .sync import DeviceStateSynchronizer

# Import exceptions for easier handling
from .exceptions import PanelException, RequestFailed

__version__ = "0.1.0"

__all__ = [
    "ActionDescriptor",
    "ActionDispatcher",
    "ControlPanel",
    "DeviceSnapshot",
    "DeviceStateSynchronizer",
    "DynamicParam",
    "Element",
    "ElementSink",
    "Event",
    "MemorySink",
    "Page",
    "PanelClient",
    "PanelException",
    "RequestFailed",
    "ResultPresenter",
    "TraceEntry",
    "resolve_intent",
    "__version__",
]
