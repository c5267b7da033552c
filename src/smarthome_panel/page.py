"""In-memory page model: elements, selectors, forms and events.

The panel reads and writes a small subset of the DOM: ``data-*`` attributes,
class lists, text, form field values, and event listeners registered on the
document. Selectors support tag names, ``#id``, ``.class``, ``[attr]``,
``[attr="value"]`` and the descendant combinator, which covers every lookup
the panel performs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from html.parser import HTMLParser
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .const import CLICK_EVENT, MULTI_VALUE_SEPARATOR, SUBMIT_EVENT

_LOGGER = logging.getLogger(__name__)

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta",
     "source", "track", "wbr"}
)
FIELD_TAGS = frozenset({"input", "select", "textarea"})
NON_VALUE_INPUT_TYPES = frozenset({"submit", "button", "reset", "image", "file"})

_CSS_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_-]")
_HEX_DIGITS = "0123456789abcdefABCDEF"


def css_escape(value: Any) -> str:
    """Backslash-escape every character that is unsafe in a selector."""
    return _CSS_UNSAFE_RE.sub(lambda match: "\\" + match.group(0), str(value))


def _dataset_key(attr_name: str) -> str:
    """Convert ``data-device-id`` to ``deviceId``."""
    return re.sub(r"-([a-z])", lambda m: m.group(1).upper(), attr_name[5:])


class SelectorError(ValueError):
    """Raised for selectors outside the supported grammar."""


@dataclass
class _Compound:
    tag: Optional[str]
    ids: List[str]
    classes: List[str]
    attrs: List[Tuple[str, Optional[str]]]

    def matches(self, element: "Element") -> bool:
        if self.tag and self.tag != "*" and element.tag != self.tag:
            return False
        if any(element.id != ident for ident in self.ids):
            return False
        classes = element.classes
        if any(name not in classes for name in self.classes):
            return False
        for name, value in self.attrs:
            if name not in element.attrs:
                return False
            if value is not None and element.attrs[name] != value:
                return False
        return True


class _SelectorParser:
    """Recursive-descent parser for the supported selector grammar."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def parse(self) -> List[_Compound]:
        chain = []
        self._skip_space()
        while self._pos < len(self._text):
            chain.append(self._compound())
            self._skip_space()
        if not chain:
            raise SelectorError(f"Empty selector: {self._text!r}")
        return chain

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _skip_space(self) -> None:
        while self._peek().isspace():
            self._pos += 1

    def _escape(self) -> str:
        # Called with the position just after a backslash
        hex_digits = ""
        while len(hex_digits) < 6 and self._peek() and self._peek() in _HEX_DIGITS:
            hex_digits += self._peek()
            self._pos += 1
        if hex_digits:
            if self._peek().isspace():
                self._pos += 1
            return chr(int(hex_digits, 16))
        char = self._peek()
        if not char:
            raise SelectorError(f"Dangling escape in {self._text!r}")
        self._pos += 1
        return char

    def _ident(self) -> str:
        out = []
        while True:
            char = self._peek()
            if char == "\\":
                self._pos += 1
                out.append(self._escape())
            elif char and (char.isalnum() or char in "-_" or ord(char) > 127):
                out.append(char)
                self._pos += 1
            else:
                break
        if not out:
            raise SelectorError(
                f"Expected identifier at {self._pos} in {self._text!r}"
            )
        return "".join(out)

    def _string(self, quote: str) -> str:
        self._pos += 1
        out = []
        while True:
            char = self._peek()
            if not char:
                raise SelectorError(f"Unterminated string in {self._text!r}")
            self._pos += 1
            if char == quote:
                return "".join(out)
            out.append(self._escape() if char == "\\" else char)

    def _attribute(self) -> Tuple[str, Optional[str]]:
        self._pos += 1
        self._skip_space()
        name = self._ident().lower()
        self._skip_space()
        value = None
        if self._peek() == "=":
            self._pos += 1
            self._skip_space()
            if self._peek() in ("'", '"'):
                value = self._string(self._peek())
            else:
                value = self._ident()
            self._skip_space()
        if self._peek() != "]":
            raise SelectorError(f"Unsupported attribute selector in {self._text!r}")
        self._pos += 1
        return name, value

    def _compound(self) -> _Compound:
        compound = _Compound(tag=None, ids=[], classes=[], attrs=[])
        if self._peek() == "*":
            compound.tag = "*"
            self._pos += 1
        elif self._peek() and self._peek() not in "#.[":
            compound.tag = self._ident().lower()
        while self._peek() and not self._peek().isspace():
            char = self._peek()
            if char == "#":
                self._pos += 1
                compound.ids.append(self._ident())
            elif char == ".":
                self._pos += 1
                compound.classes.append(self._ident())
            elif char == "[":
                compound.attrs.append(self._attribute())
            else:
                raise SelectorError(
                    f"Unsupported selector syntax {char!r} in {self._text!r}"
                )
        return compound


def parse_selector(selector: str) -> List[_Compound]:
    """Parse a selector into its descendant chain of compound selectors."""
    return _SelectorParser(selector).parse()


def _matches_chain(element: "Element", chain: List[_Compound]) -> bool:
    if not chain[-1].matches(element):
        return False
    index = len(chain) - 2
    node = element.parent
    while index >= 0 and node is not None:
        if chain[index].matches(node):
            index -= 1
        node = node.parent
    return index < 0


class Element:
    """A node of the page: tag, attributes, text and children."""

    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, str]] = None,
        text: str = "",
        children: Optional[List["Element"]] = None,
    ) -> None:
        self.tag = tag.lower()
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.text = text
        self.parent: Optional[Element] = None
        self.children: List[Element] = []
        for child in children or ():
            self.append(child)

    def __repr__(self) -> str:
        return f"<Element {self.tag} {self.attrs!r}>"

    def append(self, child: "Element") -> "Element":
        """Attach a child element and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def id(self) -> Optional[str]:
        return self.attrs.get("id")

    @property
    def classes(self) -> List[str]:
        return self.attrs.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def toggle_class(self, name: str, force: bool) -> None:
        """Add the class when ``force`` is true, remove it otherwise."""
        classes = [cls for cls in self.classes if cls != name]
        if force:
            classes.append(name)
        self.attrs["class"] = " ".join(classes)

    @property
    def dataset(self) -> Dict[str, str]:
        """The ``data-*`` attributes keyed by their camelCase name."""
        return {
            _dataset_key(name): value
            for name, value in self.attrs.items()
            if name.startswith("data-")
        }

    @property
    def value(self) -> str:
        if self.tag == "textarea":
            return self.attrs.get("value", self.text)
        if self.tag == "option":
            return self.attrs.get("value", self.text)
        if self.tag == "select":
            selected = self.selected_values()
            return selected[0] if selected else ""
        return self.attrs.get("value", "")

    @value.setter
    def value(self, new_value: str) -> None:
        self.attrs["value"] = new_value

    def selected_values(self) -> List[str]:
        """Values of the selected options of a ``select`` element."""
        options = [node for node in self.iter_descendants() if node.tag == "option"]
        selected = [opt.value for opt in options if "selected" in opt.attrs]
        if not selected and options and "multiple" not in self.attrs:
            selected = [options[0].value]
        return selected

    def ancestors(self) -> Iterator["Element"]:
        """Yield this element, then its parent, up to the root."""
        node: Optional[Element] = self
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator["Element"]:
        """Yield all descendants in document order."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def matches(self, selector: str) -> bool:
        return _matches_chain(self, parse_selector(selector))

    def closest(self, selector: str) -> Optional["Element"]:
        """Return the nearest inclusive ancestor matching ``selector``."""
        chain = parse_selector(selector)
        for node in self.ancestors():
            if _matches_chain(node, chain):
                return node
        return None

    def select_all(self, selector: str) -> List["Element"]:
        chain = parse_selector(selector)
        return [node for node in self.iter_descendants() if _matches_chain(node, chain)]

    def select_one(self, selector: str) -> Optional["Element"]:
        chain = parse_selector(selector)
        for node in self.iter_descendants():
            if _matches_chain(node, chain):
                return node
        return None


def form_params(form: Element) -> Dict[str, str]:
    """Collect a form's field values, joining repeated names with commas."""
    collected: Dict[str, List[str]] = {}
    for field in form.iter_descendants():
        name = field.attrs.get("name")
        if field.tag not in FIELD_TAGS or not name or "disabled" in field.attrs:
            continue
        if field.tag == "select":
            values = field.selected_values()
        elif field.tag == "input":
            input_type = field.attrs.get("type", "text").lower()
            if input_type in NON_VALUE_INPUT_TYPES:
                continue
            if input_type in ("checkbox", "radio"):
                if "checked" not in field.attrs:
                    continue
                values = [field.attrs.get("value", "on")]
            else:
                values = [field.value]
        else:
            values = [field.value]
        collected.setdefault(name, []).extend(values)
    return {
        name: MULTI_VALUE_SEPARATOR.join(values)
        for name, values in collected.items()
        if values
    }


@dataclass
class Event:
    """An interaction event targeted at one element."""

    type: str
    target: Element
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


Listener = Callable[[Event], Any]


class Page:
    """The document: element lookups plus document-level event listeners."""

    def __init__(self, document: Optional[Element] = None) -> None:
        self.document = document if document is not None else Element("html")
        self._listeners: Dict[str, List[Listener]] = {}

    @classmethod
    def from_html(cls, markup: str) -> "Page":
        """Parse HTML markup into a page."""
        builder = _TreeBuilder()
        builder.feed(markup)
        builder.close()
        return cls(builder.root)

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        for node in self.document.iter_descendants():
            if node.id == element_id:
                return node
        return None

    def select_one(self, selector: str) -> Optional[Element]:
        return self.document.select_one(selector)

    def select_all(self, selector: str) -> List[Element]:
        return self.document.select_all(selector)

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event: Event) -> List[Any]:
        """Call every listener for the event type and return their results."""
        _LOGGER.debug("Dispatching %s event on %r", event.type, event.target)
        return [listener(event) for listener in list(self._listeners.get(event.type, []))]

    def click(self, element: Element) -> Event:
        event = Event(CLICK_EVENT, element)
        self.dispatch_event(event)
        return event

    def submit(self, form: Element) -> Event:
        event = Event(SUBMIT_EVENT, form)
        self.dispatch_event(event)
        return event


class _TreeBuilder(HTMLParser):
    """Builds an ``Element`` tree from markup."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = Element("#document")
        self._stack = [self.root]

    def handle_starttag(self, tag, attrs):
        element = Element(tag, {name: value or "" for name, value in attrs})
        self._stack[-1].append(element)
        if element.tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._stack[-1].append(Element(tag, {name: value or "" for name, value in attrs}))

    def handle_endtag(self, tag):
        tag = tag.lower()
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == tag:
                del self._stack[index:]
                return
        _LOGGER.debug("Ignoring unmatched end tag </%s>", tag)

    def handle_data(self, data):
        data = data.strip()
        if not data:
            return
        current = self._stack[-1]
        current.text = f"{current.text} {data}" if current.text else data
