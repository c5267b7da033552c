"""Endpoint template expansion and query-string building."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from .const import MULTI_VALUE_SEPARATOR, URI_COMPONENT_SAFE

_LOGGER = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def stringify(value: Any) -> str:
    """Return the wire form of a parameter value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return MULTI_VALUE_SEPARATOR.join(stringify(item) for item in value)
    return str(value)


def encode_component(value: Any) -> str:
    """Percent-encode a value like ``encodeURIComponent``."""
    return quote(stringify(value), safe=URI_COMPONENT_SAFE)


def expand_template(
    template: str, params: Dict[str, Any]
) -> Tuple[str, Dict[str, Any]]:
    """Substitute ``{name}`` placeholders from ``params``.

    Every key that fills a placeholder is removed from ``params`` (the dict is
    mutated and also returned), so a key used by two placeholders only fills
    the first one. Placeholders without a value (absent or None) become an
    empty string and leave ``params`` untouched.
    """

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if params.get(key) is None:
            _LOGGER.debug("No value for placeholder {%s} in %s", key, template)
            return ""
        return encode_component(params.pop(key))

    return PLACEHOLDER_RE.sub(_replace, template), params


def build_query(params: Dict[str, Any]) -> str:
    """Serialize params to a query string, skipping None values."""
    return "&".join(
        f"{encode_component(key)}={encode_component(value)}"
        for key, value in params.items()
        if value is not None
    )


def build_url(
    endpoint: str, params: Optional[Dict[str, Any]] = None
) -> Tuple[str, str]:
    """Return ``(path, query)`` for an endpoint template and its parameters.

    ``query`` includes the leading ``?`` or is empty. The caller's dict is not
    modified.
    """
    path, residual = expand_template(endpoint, dict(params or {}))
    query = build_query(residual)
    return path, f"?{query}" if query else ""
