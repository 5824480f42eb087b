"""AMM fee-tier configuration shared by pools."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from clmm.constants import FEE_RATE_DENOMINATOR
from clmm.models.types import U16, FeeRate, FeeShare


class AmmConfigParam(str, Enum):
    """Fields an admin may change on an existing config."""

    TRADE_FEE_RATE = "trade_fee_rate"
    PROTOCOL_FEE_RATE = "protocol_fee_rate"
    FUND_FEE_RATE = "fund_fee_rate"
    OWNER = "owner"
    FUND_OWNER = "fund_owner"


class AmmConfig(BaseModel):
    """Fee tier shared by every pool created against it.

    Attributes:
        index: Config identifier
        owner: Account allowed to collect protocol fees
        trade_fee_rate: Fee charged on swap input, parts per million
        protocol_fee_rate: Share of the trade fee kept as protocol fee, parts per million
        fund_fee_rate: Share of the trade fee kept for the fund, parts per million
        tick_spacing: Tick spacing for pools under this config
        fund_owner: Account allowed to collect fund fees
    """

    index: U16
    owner: str
    trade_fee_rate: FeeRate
    protocol_fee_rate: FeeShare = 0
    fund_fee_rate: FeeShare = 0
    tick_spacing: U16 = Field(ge=1)
    fund_owner: str = ""

    model_config = {"validate_assignment": True}

    @model_validator(mode="after")
    def _check_fee_shares(self) -> AmmConfig:
        if self.protocol_fee_rate + self.fund_fee_rate > FEE_RATE_DENOMINATOR:
            raise ValueError(
                f"protocol_fee_rate + fund_fee_rate exceeds {FEE_RATE_DENOMINATOR}: "
                f"{self.protocol_fee_rate} + {self.fund_fee_rate}"
            )
        return self


__all__ = ["AmmConfig", "AmmConfigParam"]
