"""Runtime configuration for the Bakehouse engine.

Values come from environment variables, falling back to the defaults below:

    BAKEHOUSE_ENV                         development | test | staging | production
    BAKEHOUSE_MAX_JUMP                    forward steps an admin may skip (default 2)
    BAKEHOUSE_REQUIRE_PAYMENT             gate baking on confirmed payment (default true)
    BAKEHOUSE_SHIPPING_FEE                flat fee for shipping orders (default 40)
    BAKEHOUSE_RATE_LIMIT_MAX_ACTIONS      admin actions per window (default 30)
    BAKEHOUSE_RATE_LIMIT_WINDOW_SECONDS   window length (default 60)
    BAKEHOUSE_LOG_DIR                     write rotating log files here when set
"""

import os

from pydantic import BaseModel, ConfigDict, Field

_ENV_PREFIX = "BAKEHOUSE_"


class BakehouseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    env: str = "development"
    max_jump: int = Field(default=2, ge=1)
    require_payment: bool = True
    shipping_fee: float = Field(default=40.0, ge=0.0)
    rate_limit_max_actions: int = Field(default=30, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0.0)
    log_dir: str | None = None

    @classmethod
    def from_env(cls, environ=None) -> "BakehouseConfig":
        """Build a config from ``BAKEHOUSE_*`` variables; unset keys keep defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)


_config_instance = None


def get_config() -> BakehouseConfig:
    """Return the active configuration, read from the environment on first use."""
    global _config_instance
    if _config_instance is None:
        _config_instance = BakehouseConfig.from_env()
    return _config_instance


def set_config(config: BakehouseConfig) -> None:
    global _config_instance
    _config_instance = config


def reset_config() -> None:
    """Forget the active configuration (useful for testing)."""
    global _config_instance
    _config_instance = None
