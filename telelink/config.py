"""Engine parameters and their documented defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Optional, Union

import pandas as pd

from .errors import ConfigurationError

# %% [constants]
MAX_GAP: str = "60min"                    # break a chain after this much silence
MIN_CHAIN_LENGTH: int = 2                 # a lone event is never a chain
TOP_N_HOME_LOCATIONS: int = 3             # home = most frequent cells before a move
FREQUENT_CONTACT_MIN_INTERACTIONS: int = 2

ENV_PREFIX: str = "TELELINK_"


def _to_timedelta(value: Union[str, timedelta, pd.Timedelta]) -> timedelta:
    try:
        td = pd.Timedelta(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"max_gap: cannot interpret {value!r} as a duration") from exc
    if pd.isna(td):
        raise ConfigurationError("max_gap must not be NaT")
    return td.to_pytimedelta()


def check_max_gap(value: Union[str, timedelta, pd.Timedelta]) -> timedelta:
    """Parse *value* as a chain gap; zero or negative raises ``ConfigurationError``."""
    gap = _to_timedelta(value)
    if gap <= timedelta(0):
        raise ConfigurationError(f"max_gap must be positive, got {gap}")
    return gap


def check_positive_int(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class EngineConfig:
    """Validated parameter set passed explicitly to every engine call.

    ``max_gap`` takes a ``timedelta`` or anything ``pd.Timedelta`` parses
    ("60min", "2h", ...). An out-of-range value raises
    :class:`ConfigurationError` on construction.
    """
    max_gap: timedelta = field(default_factory=lambda: _to_timedelta(MAX_GAP))
    min_chain_length: int = MIN_CHAIN_LENGTH
    top_n_home_locations: int = TOP_N_HOME_LOCATIONS
    frequent_contact_min_interactions: int = FREQUENT_CONTACT_MIN_INTERACTIONS

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_gap", check_max_gap(self.max_gap))
        check_positive_int("min_chain_length", self.min_chain_length)
        check_positive_int("top_n_home_locations", self.top_n_home_locations)
        check_positive_int("frequent_contact_min_interactions", self.frequent_contact_min_interactions)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``TELELINK_*`` variables, defaults for the rest."""
        env = os.environ if environ is None else environ
        kwargs = {}
        gap = env.get(ENV_PREFIX + "MAX_GAP")
        if gap:
            kwargs["max_gap"] = gap
        for name, var in (
            ("min_chain_length", "MIN_CHAIN_LENGTH"),
            ("top_n_home_locations", "TOP_N_HOME_LOCATIONS"),
            ("frequent_contact_min_interactions", "FREQUENT_CONTACT_MIN"),
        ):
            raw = env.get(ENV_PREFIX + var)
            if raw:
                try:
                    kwargs[name] = int(raw)
                except ValueError as exc:
                    raise ConfigurationError(f"{ENV_PREFIX}{var}={raw!r} is not an integer") from exc
        return cls(**kwargs)


DEFAULT_CONFIG = EngineConfig()
