"""Random placement of food and obstacles on free grid cells."""

import logging
import random
from typing import Iterable, Optional

from .constants import GRID_SIZE, MAX_PLACEMENT_ATTEMPTS
from .grid import all_cells, cell_of, is_in_bounds
from .models import Coord

logger = logging.getLogger(__name__)


class GridExhausted(Exception):
    """No free cell is left for a new entity."""

    def __init__(self, grid_size: int, requested: int = 1):
        self.grid_size = grid_size
        self.requested = requested
        super().__init__(
            f"No free cell left on {grid_size}x{grid_size} grid "
            f"(requested {requested})"
        )


def place_random(
    exclude_sets: Iterable[Iterable],
    rng: Optional[random.Random] = None,
    grid_size: int = GRID_SIZE,
) -> Coord:
    """
    Pick a uniformly random in-bounds cell not present in any exclusion set.

    Rejection-samples first; once MAX_PLACEMENT_ATTEMPTS draws have been
    rejected the remaining free cells are enumerated and one is chosen from
    them, so the draw stays uniform and always terminates.

    Raises:
        GridExhausted: every cell is already reserved.
    """
    rng = rng or random
    occupied = set()
    for group in exclude_sets:
        for item in group:
            cell = cell_of(item)
            if is_in_bounds(cell, grid_size):
                occupied.add(cell)

    if len(occupied) >= grid_size * grid_size:
        raise GridExhausted(grid_size)

    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        cell = (rng.randrange(grid_size), rng.randrange(grid_size))
        if cell not in occupied:
            return cell

    logger.debug(f"Rejection sampling gave up after {MAX_PLACEMENT_ATTEMPTS} draws, enumerating free cells")
    free = [c for c in all_cells(grid_size) if c not in occupied]
    return rng.choice(free)


def place_n(
    n: int,
    exclude_sets: Iterable[Iterable],
    rng: Optional[random.Random] = None,
    grid_size: int = GRID_SIZE,
) -> list[Coord]:
    """Place n mutually non-overlapping cells, folding each one into the exclusions."""
    exclude_sets = list(exclude_sets)
    placed: list[Coord] = []
    for _ in range(n):
        try:
            placed.append(place_random(exclude_sets + [placed], rng, grid_size))
        except GridExhausted:
            raise GridExhausted(grid_size, requested=n) from None
    return placed
