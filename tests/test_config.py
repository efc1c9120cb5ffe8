"""Tests for environment-driven configuration."""

import pytest

from sabre.config import (
    DEFAULT_API_URL,
    MODES,
    TRIAL_PASSWORD,
    TRIAL_USERNAME,
    Config,
    load_config,
    mode_timings,
)
from sabre.errors import ConfigError


def test_defaults_use_trial_account():
    config = load_config({})
    assert config.api_url == DEFAULT_API_URL
    assert config.username == TRIAL_USERNAME
    assert config.password == TRIAL_PASSWORD
    assert config.api_key is None
    assert config.uses_trial_account
    assert config.solc == "solc"


def test_credentials_from_env():
    config = load_config(
        {
            "MYTHX_USERNAME": "0x1234",
            "MYTHX_PASSWORD": "secret",
            "MYTHX_API_URL": "https://staging.example.com/v1/",
            "SOLC": "/opt/solc-0.5.17",
        }
    )
    assert config.username == "0x1234"
    assert config.password == "secret"
    assert config.api_url == "https://staging.example.com/v1"
    assert config.solc == "/opt/solc-0.5.17"
    assert not config.uses_trial_account


def test_eth_address_alias():
    config = load_config({"MYTHX_ETH_ADDRESS": "0xabc", "MYTHX_PASSWORD": "pw"})
    assert config.username == "0xabc"


def test_api_key_alone_skips_trial():
    config = load_config({"MYTHX_API_KEY": "token"})
    assert config.api_key == "token"
    assert config.username is None
    assert not config.uses_trial_account


def test_blank_values_are_unset():
    config = load_config({"MYTHX_API_KEY": "  ", "MYTHX_API_URL": ""})
    assert config.api_key is None
    assert config.uses_trial_account
    assert config.api_url == DEFAULT_API_URL


@pytest.mark.parametrize(
    "env",
    [
        {"MYTHX_USERNAME": "0x1234"},
        {"MYTHX_PASSWORD": "secret"},
        {"MYTHX_API_URL": "ftp://example.com"},
    ],
)
def test_invalid_env(env):
    with pytest.raises(ConfigError):
        load_config(env)


def test_with_overrides_skips_none():
    config = Config().with_overrides(solc="solc-0.4.24", client_tool_name=None)
    assert config.solc == "solc-0.4.24"
    assert config.client_tool_name == "sabre"


def test_mode_timings():
    assert mode_timings("quick").initial_delay == 20
    assert mode_timings("quick").timeout == 180
    assert mode_timings("full") == MODES["standard"]
    assert mode_timings("deep").timeout == 5400


def test_unknown_mode():
    with pytest.raises(ConfigError, match="Invalid analysis mode 'slow'"):
        mode_timings("slow")
