from __future__ import annotations

"""
Client configuration: service endpoint, credentials, compiler binary, and the
polling schedule for each analysis mode.

Settings come from the environment (MYTHX_* and SOLC variables); the CLI may
override individual fields with its options. This module is the single place
that knows the variable names and the per-mode timings.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from sabre.errors import ConfigError

DEFAULT_API_URL = "https://api.mythx.io/v1"
DEFAULT_SOLC = "solc"

# Shared trial account used when no credentials are configured.
TRIAL_USERNAME = "0x0000000000000000000000000000000000000000"
TRIAL_PASSWORD = "trial"


@dataclass(frozen=True)
class ModeTimings:
    """Polling schedule for one analysis mode, in seconds."""

    initial_delay: float
    timeout: float


MODES: dict[str, ModeTimings] = {
    "quick": ModeTimings(initial_delay=20, timeout=180),
    "standard": ModeTimings(initial_delay=900, timeout=1800),
    "full": ModeTimings(initial_delay=900, timeout=1800),
    "deep": ModeTimings(initial_delay=2700, timeout=5400),
}

DEFAULT_MODE = "quick"


@dataclass
class Config:
    """
    Client configuration.

    Either api_key or username/password authenticates against the service;
    the trial account fills in when neither is given.
    """

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    client_tool_name: str = "sabre"
    solc: str = DEFAULT_SOLC

    @property
    def uses_trial_account(self) -> bool:
        return self.api_key is None and self.username == TRIAL_USERNAME

    def with_overrides(self, **overrides: Optional[str]) -> "Config":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)


def _env(env: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = env.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def load_config(env: Mapping[str, str] | None = None) -> Config:
    """
    Build a Config from environment variables.

    MYTHX_API_URL, MYTHX_API_KEY, MYTHX_USERNAME (or the older
    MYTHX_ETH_ADDRESS), MYTHX_PASSWORD, SOLC.
    """
    if env is None:
        env = os.environ

    api_key = _env(env, "MYTHX_API_KEY")
    username = _env(env, "MYTHX_USERNAME", "MYTHX_ETH_ADDRESS")
    password = _env(env, "MYTHX_PASSWORD")

    if (username is None) != (password is None):
        raise ConfigError("MYTHX_USERNAME and MYTHX_PASSWORD must be set together")
    if api_key is None and username is None:
        username, password = TRIAL_USERNAME, TRIAL_PASSWORD

    api_url = _env(env, "MYTHX_API_URL") or DEFAULT_API_URL
    if not api_url.startswith(("http://", "https://")):
        raise ConfigError(f"MYTHX_API_URL must be an http(s) URL, got: {api_url}")

    return Config(
        api_url=api_url.rstrip("/"),
        api_key=api_key,
        username=username,
        password=password,
        solc=_env(env, "SOLC") or DEFAULT_SOLC,
    )


def mode_timings(mode: str) -> ModeTimings:
    """Return the polling schedule for an analysis mode."""
    try:
        return MODES[mode]
    except KeyError:
        raise ConfigError(
            f"Invalid analysis mode {mode!r}. Available modes: {', '.join(MODES)}"
        ) from None
