"""Tick oracle: a fixed-size ring of cumulative tick observations."""

from __future__ import annotations

from dataclasses import dataclass, field

from clmm.constants import OBSERVATION_NUM, OBSERVATION_UPDATE_DURATION
from clmm.math.checked import saturating_sub, wrapping_add_i64


@dataclass(frozen=True)
class Observation:
    """Sum of ``tick * seconds`` up to ``block_timestamp`` (wraps as i64)."""

    block_timestamp: int
    tick_cumulative: int


@dataclass
class ObservationState:
    """Observation ring of one pool.

    The ring fills up to ``OBSERVATION_NUM`` entries and then overwrites the
    oldest. ``observation_index`` points at the most recent entry.

    Attributes:
        pool_id: Pool the observations belong to
        observation_index: Position of the latest observation in the ring
        observations: Written observations, at most OBSERVATION_NUM
    """

    pool_id: str
    observation_index: int = 0
    observations: list[Observation] = field(default_factory=list)

    @property
    def initialized(self) -> bool:
        return bool(self.observations)

    def update(self, block_timestamp: int, tick: int) -> bool:
        """Record that the pool sat at ``tick`` from the last observation until now.

        The first call only anchors the ring at ``block_timestamp``. Later calls
        within OBSERVATION_UPDATE_DURATION seconds of the latest observation
        are ignored.

        Returns:
            True if an observation was written
        """
        if not self.observations:
            self.observations.append(Observation(block_timestamp, 0))
            self.observation_index = 0
            return True

        last = self.observations[self.observation_index]
        delta_time = saturating_sub(block_timestamp, last.block_timestamp)
        if delta_time < OBSERVATION_UPDATE_DURATION:
            return False

        observation = Observation(
            block_timestamp, wrapping_add_i64(last.tick_cumulative, tick * delta_time)
        )
        next_index = (self.observation_index + 1) % OBSERVATION_NUM
        if next_index == len(self.observations):
            self.observations.append(observation)
        else:
            self.observations[next_index] = observation
        self.observation_index = next_index
        return True

    def latest(self) -> Observation | None:
        if not self.observations:
            return None
        return self.observations[self.observation_index]

    def oldest(self) -> Observation | None:
        if not self.observations:
            return None
        return self.observations[(self.observation_index + 1) % len(self.observations)]


def average_tick(older: Observation, newer: Observation) -> int:
    """Time-weighted average tick between two observations, rounded toward -inf.

    Raises:
        ValueError: If ``newer`` is not strictly later than ``older``
    """
    elapsed = newer.block_timestamp - older.block_timestamp
    if elapsed <= 0:
        raise ValueError(
            f"Observations at {older.block_timestamp} and {newer.block_timestamp} span no time"
        )
    return wrapping_add_i64(newer.tick_cumulative, -older.tick_cumulative) // elapsed


__all__ = ["Observation", "ObservationState", "average_tick"]
