"""Capability checks and dispatch for privileged commands.

Every privileged mutation goes through ``AdminDispatcher.dispatch``: it looks
up the handler for the command's type, and each handler asks the
``AccessPolicy`` for the capability it needs before touching any state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from pydantic import ValidationError

from clmm.accounting.rewards import get_reward_info
from clmm.engine.commands import (
    AdminCommandModel,
    CollectFundFee,
    CollectProtocolFee,
    CollectRemainingRewards,
    CreateAmmConfig,
    InitializeReward,
    SetRewardParams,
    TransferRewardOwner,
    UpdateAmmConfig,
    UpdatePoolStatus,
    parse_command,
)
from clmm.engine.pool import collect_fund_fee, collect_protocol_fee, update_pool_status
from clmm.engine.rewards import (
    collect_remaining_rewards,
    initialize_reward,
    set_reward_params,
    transfer_reward_owner,
)
from clmm.errors import InvalidConfig, NotApproved
from clmm.ledger.interfaces import Ledger
from clmm.settings import EngineSettings
from clmm.state.config import AmmConfig
from clmm.state.pool import Pool, RewardInfo

logger = structlog.get_logger()


class Capability(str, Enum):
    """Privileged actions an account may be granted."""

    CREATE_AMM_CONFIG = "create_amm_config"
    UPDATE_AMM_CONFIG = "update_amm_config"
    UPDATE_POOL_STATUS = "update_pool_status"
    COLLECT_PROTOCOL_FEE = "collect_protocol_fee"
    COLLECT_FUND_FEE = "collect_fund_fee"
    INITIALIZE_REWARD = "initialize_reward"
    SET_REWARD_PARAMS = "set_reward_params"
    ADMIN_SET_REWARD_PARAMS = "admin_set_reward_params"
    COLLECT_REMAINING_REWARDS = "collect_remaining_rewards"
    TRANSFER_REWARD_OWNER = "transfer_reward_owner"


@dataclass(frozen=True)
class PolicySubject:
    """Records a capability is exercised on; owner checks read these."""

    config: AmmConfig | None = None
    pool: Pool | None = None
    reward: RewardInfo | None = None


def _is_config_owner(actor: str, subject: PolicySubject) -> bool:
    return subject.config is not None and actor == subject.config.owner


def _is_fund_owner(actor: str, subject: PolicySubject) -> bool:
    return (
        subject.config is not None
        and subject.config.fund_owner != ""
        and actor == subject.config.fund_owner
    )


def _is_pool_owner(actor: str, subject: PolicySubject) -> bool:
    return subject.pool is not None and actor == subject.pool.owner


def _is_reward_manager(actor: str, subject: PolicySubject) -> bool:
    if _is_pool_owner(actor, subject):
        return True
    return subject.reward is not None and actor == subject.reward.authority


class AccessPolicy:
    """Single source of truth for who may do what.

    Admins hold every capability. Other accounts are granted capabilities
    by ownership of the record involved; capabilities without an ownership
    rule are admin-only.
    """

    def __init__(self, admins: Iterable[str] = ()):
        self.admins = frozenset(admins)
        self._rules: dict[Capability, Callable[[str, PolicySubject], bool]] = {
            Capability.COLLECT_PROTOCOL_FEE: _is_config_owner,
            Capability.COLLECT_FUND_FEE: _is_fund_owner,
            Capability.INITIALIZE_REWARD: _is_pool_owner,
            Capability.SET_REWARD_PARAMS: _is_reward_manager,
            Capability.COLLECT_REMAINING_REWARDS: _is_reward_manager,
            Capability.TRANSFER_REWARD_OWNER: _is_pool_owner,
        }

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> AccessPolicy:
        return cls(settings.admins)

    def is_allowed(
        self, actor: str, capability: Capability, subject: PolicySubject | None = None
    ) -> bool:
        if actor in self.admins:
            return True
        rule = self._rules.get(capability)
        return rule is not None and rule(actor, subject or PolicySubject())

    def require(
        self, actor: str, capability: Capability, subject: PolicySubject | None = None
    ) -> None:
        """Raise NotApproved unless actor holds the capability."""
        if not self.is_allowed(actor, capability, subject):
            logger.warning("capability_denied", actor=actor, capability=capability.value)
            raise NotApproved(f"{actor} lacks {capability.value}")


class AdminDispatcher:
    """Routes each command type to its handler."""

    def __init__(self, ledger: Ledger, policy: AccessPolicy):
        self.ledger = ledger
        self.policy = policy
        self._handlers: dict[type, Callable[[str, Any, int], Any]] = {
            CreateAmmConfig: self._create_amm_config,
            UpdateAmmConfig: self._update_amm_config,
            UpdatePoolStatus: self._update_pool_status,
            CollectProtocolFee: self._collect_protocol_fee,
            CollectFundFee: self._collect_fund_fee,
            InitializeReward: self._initialize_reward,
            SetRewardParams: self._set_reward_params,
            CollectRemainingRewards: self._collect_remaining_rewards,
            TransferRewardOwner: self._transfer_reward_owner,
        }

    def dispatch(self, actor: str, command: AdminCommandModel, now: int) -> Any:
        """Check and execute one command.

        Returns:
            The handler's result (e.g. amounts collected, reward index)

        Raises:
            NotApproved: If the actor lacks the command's capability
            InvalidConfig: If no handler is registered for the command type
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise InvalidConfig(f"No handler for command {type(command).__name__}")
        logger.debug("admin_command", kind=command.kind, actor=actor)
        return handler(actor, command, now)

    def dispatch_payload(self, actor: str, payload: dict[str, Any], now: int) -> Any:
        """Parse a raw payload and dispatch it.

        Raises:
            pydantic.ValidationError: If the payload is not a valid command
        """
        return self.dispatch(actor, parse_command(payload), now)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _create_amm_config(self, actor: str, command: CreateAmmConfig, now: int) -> AmmConfig:
        self.policy.require(actor, Capability.CREATE_AMM_CONFIG)
        if self.ledger.configs.exists(command.index):
            raise InvalidConfig(f"AMM config {command.index} already exists")
        try:
            config = AmmConfig.model_validate(command.model_dump(exclude={"kind"}))
        except ValidationError as err:
            raise InvalidConfig(str(err)) from err
        self.ledger.configs.save(config)
        logger.info(
            "amm_config_created",
            index=config.index,
            trade_fee_rate=config.trade_fee_rate,
            protocol_fee_rate=config.protocol_fee_rate,
            fund_fee_rate=config.fund_fee_rate,
            tick_spacing=config.tick_spacing,
        )
        return config

    def _update_amm_config(self, actor: str, command: UpdateAmmConfig, now: int) -> AmmConfig:
        self.policy.require(actor, Capability.UPDATE_AMM_CONFIG)
        config = self.ledger.configs.load(command.index)
        data = config.model_dump()
        data[command.param.value] = command.value
        try:
            updated = AmmConfig.model_validate(data)
        except ValidationError as err:
            raise InvalidConfig(str(err)) from err
        self.ledger.configs.save(updated)
        logger.info(
            "amm_config_updated",
            index=command.index,
            param=command.param.value,
            value=command.value,
        )
        return updated

    def _update_pool_status(self, actor: str, command: UpdatePoolStatus, now: int) -> Pool:
        self.policy.require(actor, Capability.UPDATE_POOL_STATUS)
        return update_pool_status(self.ledger, command.pool_id, command.status)

    def _collect_protocol_fee(
        self, actor: str, command: CollectProtocolFee, now: int
    ) -> tuple[int, int]:
        pool = self.ledger.pools.load(command.pool_id)
        config = self.ledger.configs.load(pool.amm_config_index)
        self.policy.require(
            actor, Capability.COLLECT_PROTOCOL_FEE, PolicySubject(config=config, pool=pool)
        )
        return collect_protocol_fee(
            self.ledger,
            command.pool_id,
            command.recipient,
            command.amount_0_requested,
            command.amount_1_requested,
        )

    def _collect_fund_fee(self, actor: str, command: CollectFundFee, now: int) -> tuple[int, int]:
        pool = self.ledger.pools.load(command.pool_id)
        config = self.ledger.configs.load(pool.amm_config_index)
        self.policy.require(
            actor, Capability.COLLECT_FUND_FEE, PolicySubject(config=config, pool=pool)
        )
        return collect_fund_fee(
            self.ledger,
            command.pool_id,
            command.recipient,
            command.amount_0_requested,
            command.amount_1_requested,
        )

    def _initialize_reward(self, actor: str, command: InitializeReward, now: int) -> int:
        pool = self.ledger.pools.load(command.pool_id)
        self.policy.require(actor, Capability.INITIALIZE_REWARD, PolicySubject(pool=pool))
        return initialize_reward(
            self.ledger,
            command.pool_id,
            actor,
            command.token_mint,
            command.open_time,
            command.end_time,
            command.emissions_per_second_x64,
            now,
        )

    def _set_reward_params(self, actor: str, command: SetRewardParams, now: int) -> int:
        pool = self.ledger.pools.load(command.pool_id)
        reward = get_reward_info(pool, command.reward_index)
        capability = (
            Capability.ADMIN_SET_REWARD_PARAMS if command.admin else Capability.SET_REWARD_PARAMS
        )
        self.policy.require(actor, capability, PolicySubject(pool=pool, reward=reward))
        return set_reward_params(
            self.ledger,
            command.pool_id,
            command.reward_index,
            command.emissions_per_second_x64,
            command.open_time,
            command.end_time,
            now,
            funder=actor,
            admin=command.admin,
        )

    def _collect_remaining_rewards(
        self, actor: str, command: CollectRemainingRewards, now: int
    ) -> int:
        pool = self.ledger.pools.load(command.pool_id)
        reward = get_reward_info(pool, command.reward_index)
        self.policy.require(
            actor, Capability.COLLECT_REMAINING_REWARDS, PolicySubject(pool=pool, reward=reward)
        )
        return collect_remaining_rewards(
            self.ledger, command.pool_id, command.reward_index, command.recipient, now
        )

    def _transfer_reward_owner(self, actor: str, command: TransferRewardOwner, now: int) -> None:
        pool = self.ledger.pools.load(command.pool_id)
        self.policy.require(actor, Capability.TRANSFER_REWARD_OWNER, PolicySubject(pool=pool))
        transfer_reward_owner(self.ledger, command.pool_id, command.new_owner)


__all__ = ["AccessPolicy", "AdminDispatcher", "Capability", "PolicySubject"]
