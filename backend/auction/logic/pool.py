"""
Player pool: the immutable list of biddable items, loaded once at startup.

The pool file is a JSON array of ``{"name", "position", "basePrice"}`` records.
A missing or malformed file never blocks startup; the built-in sample set is
used instead.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = structlog.get_logger()


class PoolEntry(BaseModel):
    """A single biddable player."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    position: str = Field(min_length=1)
    base_price: int = Field(gt=0, validation_alias=AliasChoices("base_price", "basePrice"))


SAMPLE_POOL: tuple[PoolEntry, ...] = (
    PoolEntry(name="Luka Modric", position="CM", base_price=50),
    PoolEntry(name="Cristiano Ronaldo", position="CF", base_price=70),
    PoolEntry(name="Manuel Neuer", position="GK", base_price=40),
    PoolEntry(name="Virgil van Dijk", position="CB", base_price=55),
    PoolEntry(name="Mohamed Salah", position="RW", base_price=60),
    PoolEntry(name="Kylian Mbappé", position="CF", base_price=80),
)

_entries_adapter = TypeAdapter(list[PoolEntry])


class PlayerPool:
    """Immutable collection of pool entries keyed by unique name."""

    def __init__(self, entries: Sequence[PoolEntry]) -> None:
        if not entries:
            raise ValueError("player pool must not be empty")
        by_name: dict[str, PoolEntry] = {}
        for entry in entries:
            if entry.name in by_name:
                raise ValueError(f"duplicate player name in pool: {entry.name!r}")
            by_name[entry.name] = entry
        self._entries = tuple(entries)
        self._by_name = by_name
        # distinct positions in first-seen order
        self._positions = tuple(dict.fromkeys(entry.position for entry in entries))

    @property
    def entries(self) -> tuple[PoolEntry, ...]:
        return self._entries

    @property
    def positions(self) -> tuple[str, ...]:
        return self._positions

    def get(self, name: str) -> PoolEntry | None:
        return self._by_name.get(name)

    def by_position(self, position: str) -> list[PoolEntry]:
        return [entry for entry in self._entries if entry.position == position]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PoolEntry]:
        return iter(self._entries)


def sample_pool() -> PlayerPool:
    return PlayerPool(SAMPLE_POOL)


def load_player_pool(path: Path | str | None) -> PlayerPool:
    """Load the pool from a JSON file, falling back to the built-in sample set."""
    if path is None:
        logger.info("no player pool configured, using sample set", size=len(SAMPLE_POOL))
        return sample_pool()

    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
        pool = PlayerPool(_entries_adapter.validate_python(raw))
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.warning("player pool unavailable, using sample set", path=str(file_path), error=str(e))
        return sample_pool()

    logger.info("player pool loaded", path=str(file_path), size=len(pool), positions=len(pool.positions))
    return pool
