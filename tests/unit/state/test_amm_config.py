"""Tests for AmmConfig validation."""

import pytest
from pydantic import ValidationError

from clmm.state.config import AmmConfig


class TestAmmConfig:
    """Tests for fee tier validation."""

    def test_valid(self):
        config = AmmConfig(index=1, owner="owner", trade_fee_rate=2500, tick_spacing=60)
        assert config.protocol_fee_rate == 0
        assert config.fund_owner == ""

    def test_decimal_strings_accepted(self):
        config = AmmConfig(index="2", owner="owner", trade_fee_rate="500", tick_spacing="10")
        assert config.trade_fee_rate == 500
        assert config.tick_spacing == 10

    def test_trade_fee_below_one_hundred_percent(self):
        with pytest.raises(ValidationError):
            AmmConfig(index=0, owner="owner", trade_fee_rate=1_000_000, tick_spacing=60)

    def test_zero_tick_spacing_rejected(self):
        with pytest.raises(ValidationError):
            AmmConfig(index=0, owner="owner", trade_fee_rate=2500, tick_spacing=0)

    def test_fee_shares_capped(self):
        with pytest.raises(ValidationError, match="exceeds"):
            AmmConfig(
                index=0,
                owner="owner",
                trade_fee_rate=2500,
                protocol_fee_rate=600_000,
                fund_fee_rate=500_000,
                tick_spacing=60,
            )

    def test_assignment_validated(self):
        config = AmmConfig(index=0, owner="owner", trade_fee_rate=2500, tick_spacing=60)
        with pytest.raises(ValidationError):
            config.trade_fee_rate = -1

    def test_boolean_rejected(self):
        with pytest.raises(ValidationError):
            AmmConfig(index=0, owner="owner", trade_fee_rate=True, tick_spacing=60)
