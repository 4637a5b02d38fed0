"""Centralized auction rules: budgets, roster limits, bid steps and timer durations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AuctionSettings(BaseModel):
    """
    Configuration for room and auction rules.

    All fields default to the live-room behavior; the server never overrides
    them. Tests build shorter timer durations to exercise the protocol quickly.
    """

    model_config = ConfigDict(frozen=True)

    # --- Room ---
    min_capacity: int = 3
    max_capacity: int = 6
    min_players_to_start: int = 2
    starting_balance: int = 1000
    max_team_size: int = 11

    # --- Bidding ---
    step_threshold: int = 200
    low_step: int = 5
    high_step: int = 10

    # --- Timers (seconds) ---
    initial_countdown_seconds: int = Field(default=45, ge=1)
    tick_seconds: float = Field(default=1.0, gt=0)
    finalize_seconds: float = Field(default=20.0, gt=0)
    next_item_delay_seconds: float = Field(default=1.5, ge=0)

    @model_validator(mode="after")
    def _validate_capacity_bounds(self) -> AuctionSettings:
        if self.min_capacity > self.max_capacity:
            raise ValueError("min_capacity must not exceed max_capacity")
        return self
