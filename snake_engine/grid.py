"""Grid predicates shared by placement, the tick engine and the controller."""

from typing import Iterable

from .constants import GRID_SIZE, DIRECTIONS, OPPOSITES
from .models import Coord


def cell_of(item) -> Coord:
    """Foods occupy their position; everything else is a bare coordinate."""
    return getattr(item, "position", item)


def occupies_any(coord: Coord, *collections: Iterable) -> bool:
    for collection in collections:
        for item in collection:
            if cell_of(item) == coord:
                return True
    return False


def is_in_bounds(coord: Coord, grid_size: int = GRID_SIZE) -> bool:
    x, y = coord
    return 0 <= x < grid_size and 0 <= y < grid_size


def next_head(head: Coord, direction: str) -> Coord:
    dx, dy = DIRECTIONS[direction]
    return (head[0] + dx, head[1] + dy)


def is_opposite(current: str, requested: str) -> bool:
    return OPPOSITES.get(current) == requested


def all_cells(grid_size: int = GRID_SIZE) -> list[Coord]:
    return [(x, y) for y in range(grid_size) for x in range(grid_size)]
