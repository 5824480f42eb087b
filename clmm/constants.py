"""Protocol-wide constants: integer widths, fixed point scale and limits."""

# Fixed-width integer bounds
U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
U256_MAX = 2**256 - 1
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1

# Q64.64 fixed point
RESOLUTION = 64
Q64 = 1 << RESOLUTION

# Fee rates are expressed in parts per million (2500 = 0.25%)
FEE_RATE_DENOMINATOR = 1_000_000

# Number of reward slots per pool
REWARD_NUM = 3

# Reward schedule limits, in seconds
MIN_REWARD_PERIOD = 7 * 24 * 60 * 60
MAX_REWARD_PERIOD = 90 * 24 * 60 * 60
INCREASE_EMISSIONS_PERIOD = 72 * 60 * 60

# Oracle ring size and minimum seconds between observations
OBSERVATION_NUM = 100
OBSERVATION_UPDATE_DURATION = 15

# Tick index layout: 256 compressed ticks per bitmap word. The pool's
# default window covers word positions [-DEFAULT_BITMAP_WORDS, DEFAULT_BITMAP_WORDS).
BITMAP_WORD_BITS = 256
DEFAULT_BITMAP_WORDS = 16

__all__ = [
    "U32_MAX",
    "U64_MAX",
    "U128_MAX",
    "U256_MAX",
    "I32_MIN",
    "I32_MAX",
    "I64_MIN",
    "I64_MAX",
    "I128_MIN",
    "I128_MAX",
    "RESOLUTION",
    "Q64",
    "FEE_RATE_DENOMINATOR",
    "REWARD_NUM",
    "MIN_REWARD_PERIOD",
    "MAX_REWARD_PERIOD",
    "INCREASE_EMISSIONS_PERIOD",
    "OBSERVATION_NUM",
    "OBSERVATION_UPDATE_DURATION",
    "BITMAP_WORD_BITS",
    "DEFAULT_BITMAP_WORDS",
]
