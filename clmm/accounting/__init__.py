"""Fee and reward growth accounting."""

from clmm.accounting.fees import (
    calculate_latest_token_fees,
    get_fee_growth_inside,
    settle_personal_fees,
    update_protocol_position,
)
from clmm.accounting.rewards import (
    get_reward_growths_inside,
    update_personal_rewards,
    update_reward_infos,
)

__all__ = [
    # Fees
    "get_fee_growth_inside",
    "calculate_latest_token_fees",
    "update_protocol_position",
    "settle_personal_fees",
    # Rewards
    "update_reward_infos",
    "get_reward_growths_inside",
    "update_personal_rewards",
]
