"""Normalization helpers.

Centralizes defensive parsing of region memberships so the tracker never
has to look at raw payload shapes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def region_name(membership: Any) -> str | None:
    """Return the trimmed region name carried by *membership*, if any.

    Accepts plain strings, mappings with a ``name`` key and objects with a
    ``name`` attribute (e.g. :class:`~bluepresence.models.RegionMembership`).
    Anything else, and blank names, yield ``None``.
    """
    if isinstance(membership, str):
        candidate: Any = membership
    elif isinstance(membership, Mapping):
        candidate = membership.get("name")
    else:
        candidate = getattr(membership, "name", None)

    if not isinstance(candidate, str):
        return None
    name = candidate.strip()
    return name or None


def region_names(memberships: Iterable[Any] | None) -> tuple[str, ...]:
    """Ordered, de-duplicated, non-blank region names of *memberships*.

    ``None`` and non-iterable inputs are treated as "no regions". A bare
    string is a single membership, not a sequence of characters.
    """
    if memberships is None:
        return ()
    if isinstance(memberships, (str, Mapping)):
        memberships = (memberships,)
    try:
        iterator = iter(memberships)
    except TypeError:
        return ()

    names: dict[str, None] = {}
    for membership in iterator:
        name = region_name(membership)
        if name is not None:
            names.setdefault(name, None)
    return tuple(names)
