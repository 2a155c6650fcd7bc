"""Dot-path accessors for nested property bags.

Editor field ids address values inside a section's properties, e.g.
``title.text`` or ``content.buttons.0.text``. Numeric segments index
into lists; ``buttons[0]`` is accepted as an alias for ``buttons.0``.
"""

import re
from typing import Any, Union

Segment = Union[str, int]

_BRACKET_INDEX = re.compile(r"\[(\d+)\]")

_MISSING = object()


def split_path(path: str) -> list[Segment]:
    """Split a dot-path into key and index segments."""
    if not path:
        raise ValueError("Path must not be empty")
    normalized = _BRACKET_INDEX.sub(r".\1", path)
    segments: list[Segment] = []
    for part in normalized.split("."):
        if part == "":
            raise ValueError(f"Invalid path: '{path}'")
        segments.append(int(part) if part.isdigit() else part)
    return segments


def _step(current: Any, segment: Segment) -> Any:
    if isinstance(current, list):
        if isinstance(segment, int) and 0 <= segment < len(current):
            return current[segment]
        return _MISSING
    if isinstance(current, dict):
        if segment in current:
            return current[segment]
        # JSON objects keep numeric keys as strings
        if isinstance(segment, int) and str(segment) in current:
            return current[str(segment)]
    return _MISSING


def get_path(data: Any, path: str, default: Any = None) -> Any:
    """Read the value at ``path``, or ``default`` if any segment is missing."""
    current = data
    for segment in split_path(path):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def has_path(data: Any, path: str) -> bool:
    """Check whether every segment of ``path`` exists."""
    current = data
    for segment in split_path(path):
        current = _step(current, segment)
        if current is _MISSING:
            return False
    return True


def set_path(data: dict, path: str, value: Any) -> dict:
    """Write ``value`` at ``path``, creating missing intermediate containers.

    An intermediate is created as a list when the following segment is an
    index, otherwise as a dict. Lists are padded with None up to the index.
    Mutates and returns ``data``.
    """
    segments = split_path(path)
    current: Any = data
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        if last:
            _assign(current, segment, value)
            break

        next_segment = segments[position + 1]
        child = _step(current, segment)
        if child is _MISSING or not isinstance(child, (dict, list)):
            child = [] if isinstance(next_segment, int) else {}
            _assign(current, segment, child)
        current = child
    return data


def _assign(container: Any, segment: Segment, value: Any) -> None:
    if isinstance(container, list):
        if not isinstance(segment, int):
            raise TypeError(f"Cannot use key '{segment}' on a list")
        while len(container) <= segment:
            container.append(None)
        container[segment] = value
    elif isinstance(container, dict):
        container[segment if isinstance(segment, str) else str(segment)] = value
    else:
        raise TypeError(f"Cannot set '{segment}' on {type(container).__name__}")
