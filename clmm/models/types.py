"""Fixed-width integer types for validated models.

Amounts arrive as ints or decimal strings (u128 values do not survive a JSON
float round-trip, so strings are the norm on the wire). Each type validates
the range of its on-ledger width.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from clmm.constants import FEE_RATE_DENOMINATOR, I32_MAX, I32_MIN, U32_MAX, U64_MAX, U128_MAX


def parse_int(value: Any) -> Any:
    """Accept decimal strings as integers; leave everything else to pydantic.

    Raises:
        ValueError: If a string is not a decimal integer
    """
    if isinstance(value, bool):
        raise ValueError("Booleans are not integers here")
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError as err:
            raise ValueError(f"Expected a decimal integer string: '{value}'") from err
    return value


U16 = Annotated[int, BeforeValidator(parse_int), Field(ge=0, le=2**16 - 1)]
U32 = Annotated[int, BeforeValidator(parse_int), Field(ge=0, le=U32_MAX)]
U64 = Annotated[int, BeforeValidator(parse_int), Field(ge=0, le=U64_MAX)]
U128 = Annotated[int, BeforeValidator(parse_int), Field(ge=0, le=U128_MAX)]
I32 = Annotated[int, BeforeValidator(parse_int), Field(ge=I32_MIN, le=I32_MAX)]

# Parts per million, strictly below 100%
FeeRate = Annotated[int, BeforeValidator(parse_int), Field(ge=0, lt=FEE_RATE_DENOMINATOR)]

# Parts per million of the trade fee, up to 100%
FeeShare = Annotated[int, BeforeValidator(parse_int), Field(ge=0, le=FEE_RATE_DENOMINATOR)]

__all__ = ["U16", "U32", "U64", "U128", "I32", "FeeRate", "FeeShare", "parse_int"]
