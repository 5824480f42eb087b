"""Privileged commands, as a tagged union of pydantic models.

Each command carries a ``kind`` literal; ``parse_command`` turns a raw payload
(ints or decimal strings for amounts) into the matching model.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, Field, Tag, TypeAdapter

from clmm.constants import REWARD_NUM
from clmm.models.types import U16, U64, U128, FeeRate, FeeShare
from clmm.state.config import AmmConfigParam


class CreateAmmConfig(BaseModel):
    """Create a new fee tier."""

    kind: Literal["create_amm_config"] = "create_amm_config"
    index: U16
    owner: str
    trade_fee_rate: FeeRate
    protocol_fee_rate: FeeShare = 0
    fund_fee_rate: FeeShare = 0
    tick_spacing: U16 = Field(ge=1)
    fund_owner: str = ""


class UpdateAmmConfig(BaseModel):
    """Change one field of an existing fee tier."""

    kind: Literal["update_amm_config"] = "update_amm_config"
    index: U16
    param: AmmConfigParam
    value: int | str = Field(description="New value; ints for fee rates, account ids for owners")


class UpdatePoolStatus(BaseModel):
    """Replace a pool's disabled-operation bits."""

    kind: Literal["update_pool_status"] = "update_pool_status"
    pool_id: str
    status: int = Field(ge=0, le=0xFF)


class CollectProtocolFee(BaseModel):
    """Withdraw accrued protocol fees."""

    kind: Literal["collect_protocol_fee"] = "collect_protocol_fee"
    pool_id: str
    recipient: str
    amount_0_requested: U64
    amount_1_requested: U64


class CollectFundFee(BaseModel):
    """Withdraw accrued fund fees."""

    kind: Literal["collect_fund_fee"] = "collect_fund_fee"
    pool_id: str
    recipient: str
    amount_0_requested: U64
    amount_1_requested: U64


class InitializeReward(BaseModel):
    """Start a reward schedule, funded by the actor."""

    kind: Literal["initialize_reward"] = "initialize_reward"
    pool_id: str
    token_mint: str
    open_time: U64
    end_time: U64
    emissions_per_second_x64: U128


class SetRewardParams(BaseModel):
    """Change a reward schedule; zeros leave a field unchanged.

    ``admin=True`` requests the admin rules, which need the admin capability.
    """

    kind: Literal["set_reward_params"] = "set_reward_params"
    pool_id: str
    reward_index: int = Field(ge=0, lt=REWARD_NUM)
    emissions_per_second_x64: U128 = 0
    open_time: U64 = 0
    end_time: U64 = 0
    admin: bool = False


class CollectRemainingRewards(BaseModel):
    """Withdraw an ended reward's unowed balance."""

    kind: Literal["collect_remaining_rewards"] = "collect_remaining_rewards"
    pool_id: str
    reward_index: int = Field(ge=0, lt=REWARD_NUM)
    recipient: str


class TransferRewardOwner(BaseModel):
    """Hand pool ownership (and reward management) to another account."""

    kind: Literal["transfer_reward_owner"] = "transfer_reward_owner"
    pool_id: str
    new_owner: str = Field(min_length=1)


AdminCommandModel = (
    CreateAmmConfig
    | UpdateAmmConfig
    | UpdatePoolStatus
    | CollectProtocolFee
    | CollectFundFee
    | InitializeReward
    | SetRewardParams
    | CollectRemainingRewards
    | TransferRewardOwner
)


def _get_command_kind(v: dict[str, Any] | BaseModel) -> str | None:
    """Discriminator function for the AdminCommand union."""
    if isinstance(v, dict):
        kind = v.get("kind")
        return None if kind is None else str(kind)
    return getattr(v, "kind", None)


AdminCommand = Annotated[
    Annotated[CreateAmmConfig, Tag("create_amm_config")]
    | Annotated[UpdateAmmConfig, Tag("update_amm_config")]
    | Annotated[UpdatePoolStatus, Tag("update_pool_status")]
    | Annotated[CollectProtocolFee, Tag("collect_protocol_fee")]
    | Annotated[CollectFundFee, Tag("collect_fund_fee")]
    | Annotated[InitializeReward, Tag("initialize_reward")]
    | Annotated[SetRewardParams, Tag("set_reward_params")]
    | Annotated[CollectRemainingRewards, Tag("collect_remaining_rewards")]
    | Annotated[TransferRewardOwner, Tag("transfer_reward_owner")],
    Discriminator(_get_command_kind),
]

_command_adapter: TypeAdapter[AdminCommandModel] = TypeAdapter(AdminCommand)


def parse_command(payload: dict[str, Any]) -> AdminCommandModel:
    """Validate a raw payload into its command model.

    Raises:
        pydantic.ValidationError: If the kind is unknown or a field is invalid
    """
    return _command_adapter.validate_python(payload)


__all__ = [
    "AdminCommand",
    "AdminCommandModel",
    "CollectFundFee",
    "CollectProtocolFee",
    "CollectRemainingRewards",
    "CreateAmmConfig",
    "InitializeReward",
    "SetRewardParams",
    "TransferRewardOwner",
    "UpdateAmmConfig",
    "UpdatePoolStatus",
    "parse_command",
]
