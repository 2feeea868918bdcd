"""
systems/session_state.py
========================
Persisted session state and its camelCase save payload.

Responsibilities
----------------
- Hold everything a save slot stores: the world slice (iteration, run seed,
  root-goal flag, deltas), the economy counters and the dev settings.
- Convert to and from the camelCase mapping written by ``SaveStore``.
- Coerce each field on load; a missing, mistyped or out-of-range value falls
  back to its default instead of failing the load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import config
from systems.delta_store import DeltaStore
from systems.economy import EconomyState

log = logging.getLogger(__name__)

SavePayload = dict[str, Any]


@dataclass
class SessionState:
    """Everything a save holds.

    The world slice is ``current_iteration``, ``run_seed``,
    ``is_ascend_root_enabled`` and ``deltas``; the rest is economy and
    settings.  A ``run_seed`` of 0 means "not chosen yet".
    """

    current_iteration:      int          = 1
    high_score:             int          = 1
    run_seed:               int          = 0
    is_ascend_root_enabled: bool         = False
    is_dev_mode_enabled:    bool         = False
    deltas:                 DeltaStore   = field(default_factory=DeltaStore)
    economy:                EconomyState = field(default_factory=EconomyState)

    def to_dict(self) -> SavePayload:
        eco = self.economy
        payload: SavePayload = {
            "currentIteration":      self.current_iteration,
            "highScore":             self.high_score,
            "runSeed":               self.run_seed,
            "isAscendRootEnabled":   self.is_ascend_root_enabled,
            "isDevModeEnabled":      self.is_dev_mode_enabled,
            "dataKB":                eco.data_kb,
            "efficiencyLevel":       eco.efficiency_level,
            "boostBank":             {str(m): ms for m, ms in eco.boost_bank.items()},
            "activeBoostMultiplier": eco.active_boost_multiplier,
            "autoMarkCount":         eco.auto_mark_count,
            "isAutoMarkEnabled":     eco.is_auto_mark_enabled,
            "autoMinerData":         eco.auto_miner_data,
            "autoMinerInterval":     eco.auto_miner_interval,
        }
        payload.update(self.deltas.to_dict())
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SessionState":
        """Rebuild from a save payload.  Missing or mistyped fields fall back
        to their defaults instead of failing the load."""
        defaults = cls()
        eco_defaults = defaults.economy

        iteration = max(1, _int(payload, "currentIteration", defaults.current_iteration))
        economy = EconomyState(
            data_kb                 = _number(payload, "dataKB", eco_defaults.data_kb),
            efficiency_level        = _int(payload, "efficiencyLevel", eco_defaults.efficiency_level),
            boost_bank              = _boost_bank(payload.get("boostBank")),
            active_boost_multiplier = _optional_int(payload.get("activeBoostMultiplier")),
            auto_mark_count         = _int(payload, "autoMarkCount", eco_defaults.auto_mark_count),
            is_auto_mark_enabled    = _bool(payload, "isAutoMarkEnabled", eco_defaults.is_auto_mark_enabled),
            auto_miner_data         = _int(payload, "autoMinerData", eco_defaults.auto_miner_data),
            auto_miner_interval     = _interval(payload, "autoMinerInterval", eco_defaults.auto_miner_interval),
        )
        return cls(
            current_iteration      = iteration,
            high_score             = max(iteration, _int(payload, "highScore", defaults.high_score)),
            run_seed               = _int(payload, "runSeed", defaults.run_seed),
            is_ascend_root_enabled = _bool(payload, "isAscendRootEnabled", False),
            is_dev_mode_enabled    = _bool(payload, "isDevModeEnabled", False),
            deltas                 = DeltaStore.from_dict(payload),
            economy                = economy,
        )


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _int(payload: Mapping[str, Any], key: str, default: int) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


def _number(payload: Mapping[str, Any], key: str, default: float) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _bool(payload: Mapping[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key)
    return value if isinstance(value, bool) else default


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _boost_bank(value: Any) -> dict[int, int]:
    bank = {m: 0 for m in config.BOOST_MULTIPLIERS}
    if not isinstance(value, Mapping):
        return bank
    for key, ms in value.items():
        try:
            multiplier = int(key)
        except (TypeError, ValueError):
            log.warning("Ignoring boost bank entry %r", key)
            continue
        if isinstance(ms, (int, float)) and not isinstance(ms, bool):
            bank[multiplier] = int(ms)
    return bank


def _interval(payload: Mapping[str, Any], key: str, default: int) -> int:
    """Auto-miner interval; values under the floor fall back to *default*."""
    value = _int(payload, key, default)
    if value < config.AUTOMINER_MIN_INTERVAL:
        log.warning("Ignoring %s=%r below the %d ms floor", key, value, config.AUTOMINER_MIN_INTERVAL)
        return default
    return value
