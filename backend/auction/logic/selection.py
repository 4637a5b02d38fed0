"""Next-item selection: a random position first, then a random unsold player in it."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import random
    from collections.abc import Set

    from auction.logic.pool import PlayerPool, PoolEntry


def pick_position(pool: PlayerPool, rng: random.Random) -> str:
    """Choose uniformly among the distinct positions present in the pool."""
    return rng.choice(pool.positions)


def available_items(pool: PlayerPool, position: str, sold_names: Set[str]) -> list[PoolEntry]:
    return [entry for entry in pool.by_position(position) if entry.name not in sold_names]


def pick_item(pool: PlayerPool, position: str, sold_names: Set[str], rng: random.Random) -> PoolEntry | None:
    """Choose uniformly among unsold players of a position, or None if none are left."""
    candidates = available_items(pool, position, sold_names)
    if not candidates:
        return None
    return rng.choice(candidates)


def has_unsold_items(pool: PlayerPool, sold_names: Set[str]) -> bool:
    return any(entry.name not in sold_names for entry in pool)
