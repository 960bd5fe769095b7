import pytest
from pydantic import ValidationError

from bakehouse.config import BakehouseConfig, get_config, reset_config, set_config


class TestBakehouseConfig:
    def test_defaults(self):
        config = BakehouseConfig()
        assert config.env == "development"
        assert config.max_jump == 2
        assert config.require_payment is True
        assert config.shipping_fee == 40.0
        assert config.rate_limit_max_actions == 30
        assert config.rate_limit_window_seconds == 60.0
        assert config.log_dir is None

    def test_from_env_reads_prefixed_variables(self):
        config = BakehouseConfig.from_env(
            {
                "BAKEHOUSE_ENV": "production",
                "BAKEHOUSE_MAX_JUMP": "3",
                "BAKEHOUSE_REQUIRE_PAYMENT": "false",
                "BAKEHOUSE_SHIPPING_FEE": "55.5",
            }
        )
        assert config.env == "production"
        assert config.max_jump == 3
        assert config.require_payment is False
        assert config.shipping_fee == 55.5

    def test_from_env_ignores_empty_values(self):
        config = BakehouseConfig.from_env({"BAKEHOUSE_MAX_JUMP": ""})
        assert config.max_jump == 2

    def test_from_env_ignores_unprefixed_variables(self):
        config = BakehouseConfig.from_env({"MAX_JUMP": "4"})
        assert config.max_jump == 2

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            BakehouseConfig.from_env({"BAKEHOUSE_MAX_JUMP": "0"})
        with pytest.raises(ValidationError):
            BakehouseConfig.from_env({"BAKEHOUSE_RATE_LIMIT_WINDOW_SECONDS": "-1"})

    def test_is_frozen(self):
        config = BakehouseConfig()
        with pytest.raises(ValidationError):
            config.max_jump = 5


class TestActiveConfig:
    def test_get_config_reads_environment_once(self, monkeypatch):
        reset_config()
        monkeypatch.setenv("BAKEHOUSE_MAX_JUMP", "4")
        config = get_config()
        assert config.max_jump == 4
        monkeypatch.setenv("BAKEHOUSE_MAX_JUMP", "1")
        assert get_config() is config

    def test_set_config_replaces_active_config(self):
        config = BakehouseConfig(max_jump=3)
        set_config(config)
        assert get_config() is config
        reset_config()
        assert get_config() is not config
