"""Engine error classes.

Every error aborts the whole requested operation. Engine operations validate
before they mutate anything, so a raised error never leaves partial state in
the stores.
"""


class ClmmError(Exception):
    """Base error for all engine operations."""

    pass


# --- Arithmetic ---


class ArithmeticOverflow(ClmmError, ArithmeticError):
    """A checked operation exceeded its output width."""

    pass


class ArithmeticUnderflow(ClmmError, ArithmeticError):
    """A checked subtraction went below zero (or below the type minimum)."""

    pass


class LiquidityOverflow(ArithmeticOverflow):
    """Adding a positive liquidity delta did not increase liquidity."""

    pass


class LiquiditySubflow(ArithmeticUnderflow):
    """Removing liquidity would drive it below zero."""

    pass


# --- Input validation ---


class InvalidRange(ClmmError, ValueError):
    """Tick range is empty, off the tick spacing, or out of bounds."""

    pass


class InvalidTickIndex(InvalidRange):
    """Tick is outside [MIN_TICK, MAX_TICK] or not a multiple of the spacing."""

    pass


class InvalidTickSpacing(InvalidRange):
    """Tick is not a multiple of the pool's tick spacing."""

    pass


class InvalidSqrtPrice(ClmmError, ValueError):
    """Sqrt price is outside [MIN_SQRT_PRICE, MAX_SQRT_PRICE)."""

    pass


class InvalidSqrtPriceLimit(ClmmError, ValueError):
    """Swap price limit is on the wrong side of the current price or out of bounds."""

    pass


class ZeroAmountSpecified(ClmmError, ValueError):
    """Swap amount must be non-zero."""

    pass


class InvalidLiquidity(ClmmError, ValueError):
    """Liquidity argument is invalid for the position (e.g. poke of an empty position)."""

    pass


class InvalidConfig(ClmmError, ValueError):
    """AMM config or pool parameters are inconsistent."""

    pass


# --- Execution ---


class InsufficientTickContext(ClmmError):
    """Swap needs a tick-index word the caller did not supply."""

    pass


class SlippageViolation(ClmmError):
    """Realized amounts are worse than the caller's bound."""

    pass


class TooLittleOutputReceived(SlippageViolation):
    """Exact-input swap or withdrawal produced less than the minimum."""

    pass


class TooMuchInputPaid(SlippageViolation):
    """Exact-output swap or deposit required more than the maximum."""

    pass


class InvalidRoute(ClmmError, ValueError):
    """Swap route is empty, revisits a pool or does not connect its mints."""

    pass


class InvariantViolation(ClmmError):
    """An internal post-condition failed. Never expected in correct operation."""

    pass


# --- Rewards ---


class RewardScheduleInvalid(ClmmError):
    """Reward emission/open/end parameters fail sanity bounds."""

    pass


class RewardIndexUnavailable(RewardScheduleInvalid):
    """All reward slots are already initialized, or the index is out of range."""

    pass


class RewardNotInitialized(RewardScheduleInvalid):
    """The reward slot has not been initialized."""

    pass


class RewardTokenAlreadyInUse(RewardScheduleInvalid):
    """Another reward slot already emits this token."""

    pass


class RewardPeriodInvalid(RewardScheduleInvalid):
    """Reward period is shorter than the minimum or longer than the maximum."""

    pass


class RewardEmissionsUpdateNotAllowed(RewardScheduleInvalid):
    """Emissions can only be raised close to the end of the reward period."""

    pass


# --- Ledger and authorization ---


class OperationDisabled(ClmmError):
    """The pool's status bits disable this operation."""

    pass


class NotApproved(ClmmError):
    """Actor lacks the capability required for this operation."""

    pass


class RecordNotFound(ClmmError, KeyError):
    """A store has no record under the requested key."""

    pass


class InsufficientFunds(ClmmError):
    """Token account balance is below the requested debit."""

    pass


__all__ = [
    "ClmmError",
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "LiquidityOverflow",
    "LiquiditySubflow",
    "InvalidRange",
    "InvalidTickIndex",
    "InvalidTickSpacing",
    "InvalidSqrtPrice",
    "InvalidSqrtPriceLimit",
    "ZeroAmountSpecified",
    "InvalidLiquidity",
    "InvalidConfig",
    "InsufficientTickContext",
    "SlippageViolation",
    "TooLittleOutputReceived",
    "TooMuchInputPaid",
    "InvalidRoute",
    "InvariantViolation",
    "RewardScheduleInvalid",
    "RewardIndexUnavailable",
    "RewardNotInitialized",
    "RewardTokenAlreadyInUse",
    "RewardPeriodInvalid",
    "RewardEmissionsUpdateNotAllowed",
    "OperationDisabled",
    "NotApproved",
    "RecordNotFound",
    "InsufficientFunds",
]
