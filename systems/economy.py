"""
systems/economy.py
==================
Currency, upgrades, boosts and the auto-miner.

Responsibilities
----------------
- Own the economy slice of the session (``EconomyState``).
- Apply decoded ``PackageContent`` from opened packages and modules.
- Gate purchases on available data and expose the cost formulas.
- Advance timers (boost drain, auto-miner ticks) on ``tick()``.
- Post ``RESOURCE_CHANGED`` and ``BOOST_EXPIRED`` via event_queue.

All data amounts are in KB.  Boost banks hold milliseconds per multiplier.

Design note
-----------
The world tree never reads these values.  The session hands loot to
``apply_loot()`` and checks ``spend()`` before paid actions; nothing else
writes the counters.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional

import config
from systems.event_queue import EventType, event_queue
from world.node import PackageContent, PackageType

log = logging.getLogger(__name__)


def _empty_boost_bank() -> dict[int, int]:
    return {m: 0 for m in config.BOOST_MULTIPLIERS}


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass
class EconomyState:
    """Persisted economy counters.

    Parameters
    ----------
    data_kb:
        Spendable currency.
    efficiency_level:
        Click upgrade level; each level adds ``CLICK_UPGRADE_INCREMENT``.
    boost_bank:
        Remaining ms of boost per multiplier.
    active_boost_multiplier:
        Multiplier currently draining, or ``None``.
    auto_mark_count:
        Auto-mark units left.
    is_auto_mark_enabled:
        Whether entering an unmarked folder spends a unit to mark it.
    auto_miner_data:
        KB added per auto-miner tick.
    auto_miner_interval:
        ms between auto-miner ticks.
    """

    data_kb:                 float          = 0
    efficiency_level:        int            = 0
    boost_bank:              dict[int, int] = field(default_factory=_empty_boost_bank)
    active_boost_multiplier: Optional[int]  = None
    auto_mark_count:         int            = 0
    is_auto_mark_enabled:    bool           = False
    auto_miner_data:         int            = 0
    auto_miner_interval:     int            = config.AUTOMINER_DEFAULT_INTERVAL


# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------

class Economy:
    """Mediates every change to an ``EconomyState``.

    Parameters
    ----------
    state:
        The counters to operate on (shared with the session state).
    rng:
        Source for the unseeded rolls (speed-module overflow).  Defaults to
        a fresh ``random.Random``.

    Usage
    -----
        eco = Economy(state.economy)
        eco.harvest()
        if eco.spend(config.SCAN_COST, source="trace"):
            ...
        message = eco.apply_loot(node.package_content)
        eco.tick(elapsed_ms=100)
    """

    def __init__(self, state: EconomyState, rng: Optional[random.Random] = None) -> None:
        self._state = state
        self._rng   = rng if rng is not None else random.Random()
        self._miner_elapsed = 0

    @property
    def state(self) -> EconomyState:
        return self._state

    # ------------------------------------------------------------------
    # Formulas
    # ------------------------------------------------------------------

    @property
    def click_value(self) -> float:
        """KB earned per manual harvest, including the active boost."""
        base = config.CLICK_VALUE_BASE + self._state.efficiency_level * config.CLICK_UPGRADE_INCREMENT
        return base * (self._state.active_boost_multiplier or 1)

    @property
    def upgrade_cost(self) -> int:
        return math.floor(
            config.UPGRADE_COST_BASE * config.UPGRADE_COST_GROWTH ** self._state.efficiency_level
        )

    @staticmethod
    def boost_cost(multiplier: int, seconds: int) -> int:
        return seconds * config.BOOST_COST_BASE_PER_SEC * 2 ** (multiplier - 2)

    @staticmethod
    def automark_cost(amount: int) -> int:
        return amount * config.AUTOMARK_COST_PER_UNIT

    # ------------------------------------------------------------------
    # Currency
    # ------------------------------------------------------------------

    def can_afford(self, amount: float) -> bool:
        return self._state.data_kb >= amount

    def earn(self, amount: float, source: str = "") -> None:
        """Add *amount* KB.  Must be non-negative."""
        if amount < 0:
            raise ValueError(f"earn() amount must be non-negative, got {amount}")
        self._state.data_kb += amount
        self._post_changed(amount, source)

    def spend(self, amount: float, source: str = "") -> bool:
        """Spend *amount* KB if available.

        Returns
        -------
        bool
            ``False`` (and no change) when funds are insufficient.
        """
        if amount < 0:
            raise ValueError(f"spend() amount must be non-negative, got {amount}")
        if not self.can_afford(amount):
            log.debug("%s: cannot spend %.0f KB (have %.0f)", source, amount, self._state.data_kb)
            return False
        self._state.data_kb -= amount
        self._post_changed(-amount, source)
        return True

    def drain(self, amount: float, source: str = "") -> float:
        """Take up to *amount* KB, clamping at zero.  Returns what was taken."""
        taken = min(max(0.0, amount), self._state.data_kb)
        self._state.data_kb -= taken
        self._post_changed(-taken, source)
        return taken

    def harvest(self) -> float:
        """Manual mining click."""
        gain = self.click_value
        self.earn(gain, source="harvest")
        return gain

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def purchase_upgrade(self) -> bool:
        if not self.spend(self.upgrade_cost, source="upgrade"):
            return False
        self._state.efficiency_level += 1
        return True

    def purchase_boost(self, multiplier: int, seconds: int) -> bool:
        if multiplier not in config.BOOST_MULTIPLIERS:
            raise ValueError(f"Unknown boost multiplier {multiplier}")
        if not self.spend(self.boost_cost(multiplier, seconds), source="boost"):
            return False
        self._state.boost_bank[multiplier] = self._state.boost_bank.get(multiplier, 0) + seconds * 1000
        return True

    def purchase_auto_mark(self, amount: int) -> bool:
        if not self.spend(self.automark_cost(amount), source="automark"):
            return False
        self._state.auto_mark_count += amount
        return True

    # ------------------------------------------------------------------
    # Toggles and counters
    # ------------------------------------------------------------------

    def toggle_auto_mark(self) -> bool:
        self._state.is_auto_mark_enabled = not self._state.is_auto_mark_enabled
        return self._state.is_auto_mark_enabled

    def use_auto_mark(self) -> bool:
        """Spend one auto-mark unit if auto-mark is on and units remain."""
        if not self._state.is_auto_mark_enabled or self._state.auto_mark_count <= 0:
            return False
        self._state.auto_mark_count -= 1
        return True

    def toggle_boost(self, multiplier: int) -> Optional[int]:
        """Switch *multiplier* off if active, else on if its bank has time.

        Returns the active multiplier afterwards.
        """
        state = self._state
        if state.active_boost_multiplier == multiplier:
            state.active_boost_multiplier = None
        elif state.boost_bank.get(multiplier, 0) > 0:
            state.active_boost_multiplier = multiplier
        return state.active_boost_multiplier

    # ------------------------------------------------------------------
    # Loot
    # ------------------------------------------------------------------

    def apply_loot(self, content: PackageContent) -> str:
        """Apply a package or module payload and return a short message."""
        state = self._state
        kind  = content.kind

        if kind is PackageType.DATA:
            self.earn(content.value, source="package")
            return f"+{content.value / 1024:.1f} MB Data"

        if kind is PackageType.AUTOMARK:
            state.auto_mark_count += content.value
            return f"+{content.value} Auto-Markers"

        if kind is PackageType.BOOST:
            multiplier = content.multiplier or config.BOOST_MULTIPLIERS[0]
            state.boost_bank[multiplier] = state.boost_bank.get(multiplier, 0) + content.value
            return f"+{content.value / 1000:.1f}s of x{multiplier} Boost"

        if kind is PackageType.AUTOMINER_SPEED:
            if state.auto_miner_interval <= config.AUTOMINER_MIN_INTERVAL:
                power = self._rng.randint(*config.SPEED_OVERFLOW_POWER_RANGE)
                state.auto_miner_data += power
                return f"MAX SPEED! Converted to +{power} KB/tick Power"
            state.auto_miner_interval = max(
                config.AUTOMINER_MIN_INTERVAL, state.auto_miner_interval - content.value,
            )
            return f"AutoMiner: -{content.value}ms Interval"

        state.auto_miner_data += content.value
        return f"AutoMiner: +{content.value} KB/tick Power"

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def tick(self, elapsed_ms: int) -> None:
        """Advance boost drain and the auto-miner by *elapsed_ms*."""
        if elapsed_ms <= 0:
            return
        state = self._state

        multiplier = state.active_boost_multiplier
        if multiplier is not None:
            remaining = max(0, state.boost_bank.get(multiplier, 0) - elapsed_ms)
            state.boost_bank[multiplier] = remaining
            if remaining <= 0:
                state.active_boost_multiplier = None
                event_queue.post_immediate(
                    EventType.BOOST_EXPIRED, {"multiplier": multiplier}, source="Economy",
                )

        if state.auto_miner_data > 0 and state.auto_miner_interval > 0:
            self._miner_elapsed += elapsed_ms
            ticks, self._miner_elapsed = divmod(self._miner_elapsed, state.auto_miner_interval)
            if ticks:
                self.earn(ticks * state.auto_miner_data, source="autominer")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _post_changed(self, delta: float, source: str) -> None:
        event_queue.post_immediate(
            EventType.RESOURCE_CHANGED,
            {"delta": delta, "data_kb": self._state.data_kb, "source": source},
            source="Economy",
        )

    def __repr__(self) -> str:
        s = self._state
        return (
            f"<Economy data={s.data_kb:.0f}KB marks={s.auto_mark_count} "
            f"miner={s.auto_miner_data}KB/{s.auto_miner_interval}ms>"
        )
