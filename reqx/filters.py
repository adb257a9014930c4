"""reqx filters - path lookups into parsed JSON response bodies."""

from __future__ import annotations

import json
import re
from typing import Any

# ---------------------------------------------------------------------------
# A path compiles to a list of segments:
#   str              → object key (case-insensitive)
#   int              → list index (negative counts from the end)
#   None             → every element of a list
#   (start, stop)    → list slice
# ---------------------------------------------------------------------------

_INT_RE = re.compile(r"^-?\d+$")
_SLICE_RE = re.compile(r"^(-?\d*):(-?\d*)$")
_BRACKETS_RE = re.compile(r"^([^\[]*)((?:\[[^\]]*\])+)$")


def parse_path(path: str) -> list[Any]:
    """Split an extraction path into typed segments.

      token              → "token"
      user.id            → "user", "id"
      items[0].id        → "items", 0, "id"
      items.0.id         → "items", 0, "id"
      items[-1]          → "items", -1
      items[].id         → "items", None, "id"
      items[1:3]         → "items", (1, 3)
      headers[X-Trace]   → "headers", "X-Trace"

    A leading ``body.`` is dropped so ``body.token`` and ``token`` agree.
    """
    path = path.strip()
    if path.lower().startswith("body."):
        path = path[5:]

    segments: list[Any] = []
    for part in path.split("."):
        part = part.strip()
        if not part:
            continue
        m = _BRACKETS_RE.match(part)
        if m:
            if m.group(1).strip():
                segments.append(m.group(1).strip())
            for inner in re.findall(r"\[([^\]]*)\]", m.group(2)):
                segments.append(_bracket_segment(inner.strip()))
        elif _INT_RE.match(part):
            segments.append(int(part))
        else:
            segments.append(part)
    return segments


def _bracket_segment(content: str) -> Any:
    if not content:
        return None
    sm = _SLICE_RE.match(content)
    if sm:
        start = int(sm.group(1)) if sm.group(1) else None
        stop = int(sm.group(2)) if sm.group(2) else None
        return (start, stop)
    if _INT_RE.match(content):
        return int(content)
    return content


def _ci_get(d: dict[str, Any], key: str) -> tuple[bool, Any]:
    """Exact key first, then a case-insensitive scan."""
    if key in d:
        return True, d[key]
    lower = key.lower()
    for k, v in d.items():
        if k.lower() == lower:
            return True, v
    return False, None


def _walk(data: Any, segments: list[Any]) -> tuple[bool, Any]:
    """Follow segments through dicts and lists. Returns (found, value)."""
    current = data
    for i, seg in enumerate(segments):
        if isinstance(seg, str):
            if not isinstance(current, dict):
                return False, None
            found, current = _ci_get(current, seg)
            if not found:
                return False, None
        elif isinstance(seg, int):
            if not isinstance(current, list):
                return False, None
            try:
                current = current[seg]
            except IndexError:
                return False, None
        else:
            # [] or [a:b]: fan out over the selected elements
            if not isinstance(current, list):
                return False, None
            items = current if seg is None else current[slice(*seg)]
            rest = segments[i + 1 :]
            values = []
            for item in items:
                found, value = _walk(item, rest)
                if found:
                    values.append(value)
            return True, values
    return True, current


def extract_value(data: Any, path: str) -> tuple[bool, Any]:
    """Resolve ``path`` against parsed JSON ``data``.

    Returns (found, value). ``found`` is False when a key is missing, an
    index is out of range, or the path runs through a scalar.
    """
    return _walk(data, parse_path(path))


def stringify(value: Any) -> str:
    """Render an extracted JSON value as a variable string.

    Strings are used verbatim; everything else is its compact JSON text
    (``42``, ``true``, ``null``, ``{"a":1}``).
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
