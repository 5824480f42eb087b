"""Ledger records the engine reads and mutates."""

from clmm.state.config import AmmConfig, AmmConfigParam
from clmm.state.observation import Observation, ObservationState, average_tick
from clmm.state.pool import Pool, PoolStatusBit, RewardInfo, RewardState
from clmm.state.position import PersonalPosition, PositionRewardInfo, ProtocolPosition
from clmm.state.tick import Tick

__all__ = [
    # Config
    "AmmConfig",
    "AmmConfigParam",
    # Oracle
    "Observation",
    "ObservationState",
    "average_tick",
    # Pool
    "Pool",
    "PoolStatusBit",
    "RewardInfo",
    "RewardState",
    # Ticks and positions
    "Tick",
    "ProtocolPosition",
    "PersonalPosition",
    "PositionRewardInfo",
]
