"""
How an approved quantity is spread over locations.

Greedy fill in ascending location id order: each location takes
min(headroom, remaining). Same inputs, same split.
"""

from collections.abc import Iterable
from typing import Protocol, TypeVar


class HasHeadroom(Protocol):
    pk: int

    @property
    def headroom(self) -> int: ...


L = TypeVar('L', bound=HasHeadroom)


def total_headroom(locations: Iterable[HasHeadroom]) -> int:
    return sum(location.headroom for location in locations)


def greedy_fill(locations: Iterable[L], required: int) -> list[tuple[L, int]]:
    """
    Split ``required`` units over ``locations``.

    Every location gets an entry (possibly 0), in ascending pk order.
    The shares sum to ``required`` and never exceed a location's headroom.

    Raises:
        ValueError: If the locations cannot hold ``required`` units
    """
    ordered = sorted(locations, key=lambda location: location.pk)
    if total_headroom(ordered) < required:
        raise ValueError(f"{required} units do not fit in the given locations")

    remaining = required
    shares = []
    for location in ordered:
        share = min(location.headroom, remaining)
        shares.append((location, share))
        remaining -= share
    return shares
