"""Engine settings."""

import os
from dataclasses import dataclass, field

DEFAULT_SWAP_TICK_WORDS = 3


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class EngineSettings:
    """Process-wide settings for the engine and its entry points.

    Attributes:
        admins: Accounts holding every admin capability
        swap_tick_words: Bitmap words loaded for a swap when the caller
            supplies no tick context
        log_level: Minimum log level for entry points that configure logging
        log_json: Render logs as JSON instead of console output
    """

    admins: frozenset[str] = field(default_factory=frozenset)
    swap_tick_words: int = DEFAULT_SWAP_TICK_WORDS
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Read settings from CLMM_* environment variables."""
        admins = os.environ.get("CLMM_ADMINS", "")
        return cls(
            admins=frozenset(a.strip() for a in admins.split(",") if a.strip()),
            swap_tick_words=int(os.environ.get("CLMM_SWAP_TICK_WORDS", DEFAULT_SWAP_TICK_WORDS)),
            log_level=os.environ.get("CLMM_LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("CLMM_LOG_JSON"),
        )


# Default settings instance
DEFAULT_SETTINGS = EngineSettings()
