"""Validated integer types for configs and commands."""

from clmm.models.types import I32, U16, U32, U64, U128, FeeRate, FeeShare

__all__ = ["U16", "U32", "U64", "U128", "I32", "FeeRate", "FeeShare"]
