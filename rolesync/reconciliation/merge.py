"""Metadata map merging."""

from __future__ import annotations

from typing import Mapping


def merge_maps(*maps: Mapping[str, str] | None) -> dict[str, str] | None:
    """Combine maps, later arguments taking precedence on key conflicts.

    Returns ``None`` when every input is ``None``. If any input is present,
    even an empty one, the result is a (possibly empty) dict.
    """
    output: dict[str, str] | None = None
    for m in maps:
        if m is None:
            continue
        if output is None:
            output = {}
        output.update(m)
    return output


def maps_equal(a: Mapping[str, str] | None, b: Mapping[str, str] | None) -> bool:
    """Field-wise comparison that treats unset and empty as different."""
    if a is None or b is None:
        return a is None and b is None
    return a.keys() == b.keys() and all(a[k] == b[k] for k in a)
