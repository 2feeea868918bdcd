import math
import random

import pytest

import config
from systems.economy import Economy, EconomyState
from systems.event_queue import EventType, event_queue
from world.node import PackageContent, PackageType


def _economy(**fields) -> Economy:
    return Economy(EconomyState(**fields), rng=random.Random(0))


def test_click_value_scales_with_level_and_boost() -> None:
    eco = _economy(efficiency_level=4)
    assert eco.click_value == config.CLICK_VALUE_BASE + 4 * config.CLICK_UPGRADE_INCREMENT

    eco.state.active_boost_multiplier = 3
    assert eco.click_value == 3 * (config.CLICK_VALUE_BASE + 4 * config.CLICK_UPGRADE_INCREMENT)


def test_cost_formulas() -> None:
    assert _economy().upgrade_cost == 10240
    assert _economy(efficiency_level=1).upgrade_cost == math.floor(10240 * 1.15)
    assert Economy.boost_cost(2, 1) == 5120
    assert Economy.boost_cost(5, 2) == 2 * 5120 * 8
    assert Economy.automark_cost(3) == 3 * 5120


def test_spend_refuses_when_short() -> None:
    eco = _economy(data_kb=100)

    assert eco.spend(101) is False
    assert eco.state.data_kb == 100
    assert eco.spend(100) is True
    assert eco.state.data_kb == 0


def test_negative_amounts_are_programmer_errors() -> None:
    eco = _economy()
    with pytest.raises(ValueError):
        eco.earn(-1)
    with pytest.raises(ValueError):
        eco.spend(-1)


def test_drain_clamps_at_zero() -> None:
    eco = _economy(data_kb=500)

    assert eco.drain(2000) == 500
    assert eco.state.data_kb == 0


def test_purchase_upgrade() -> None:
    eco = _economy(data_kb=20000)

    assert eco.purchase_upgrade() is True
    assert eco.state.efficiency_level == 1
    assert eco.state.data_kb == 20000 - 10240
    assert eco.purchase_upgrade() is False


def test_purchase_boost_and_automark() -> None:
    eco = _economy(data_kb=100000)

    assert eco.purchase_boost(3, 2) is True
    assert eco.state.boost_bank[3] == 2000
    assert eco.purchase_auto_mark(2) is True
    assert eco.state.auto_mark_count == 2
    with pytest.raises(ValueError):
        eco.purchase_boost(7, 1)


def test_apply_loot_messages_and_effects() -> None:
    eco = _economy()

    assert eco.apply_loot(PackageContent(PackageType.DATA, 5 * 1024)) == "+5.0 MB Data"
    assert eco.state.data_kb == 5 * 1024

    assert eco.apply_loot(PackageContent(PackageType.AUTOMARK, 7)) == "+7 Auto-Markers"
    assert eco.state.auto_mark_count == 7

    assert eco.apply_loot(PackageContent(PackageType.BOOST, 3000, 4)) == "+3.0s of x4 Boost"
    assert eco.state.boost_bank[4] == 3000

    assert eco.apply_loot(PackageContent(PackageType.AUTOMINER_POWER, 2)) == "AutoMiner: +2 KB/tick Power"
    assert eco.state.auto_miner_data == 2

    assert eco.apply_loot(PackageContent(PackageType.AUTOMINER_SPEED, 50)) == "AutoMiner: -50ms Interval"
    assert eco.state.auto_miner_interval == config.AUTOMINER_DEFAULT_INTERVAL - 50


def test_speed_module_never_goes_below_floor() -> None:
    eco = _economy(auto_miner_interval=config.AUTOMINER_MIN_INTERVAL + 20)

    eco.apply_loot(PackageContent(PackageType.AUTOMINER_SPEED, 100))

    assert eco.state.auto_miner_interval == config.AUTOMINER_MIN_INTERVAL


def test_speed_module_at_floor_converts_to_power() -> None:
    eco = _economy(auto_miner_interval=config.AUTOMINER_MIN_INTERVAL)

    message = eco.apply_loot(PackageContent(PackageType.AUTOMINER_SPEED, 40))

    assert message.startswith("MAX SPEED!")
    assert 1 <= eco.state.auto_miner_data <= 3
    assert eco.state.auto_miner_interval == config.AUTOMINER_MIN_INTERVAL


def test_use_auto_mark_needs_toggle_and_units() -> None:
    eco = _economy(auto_mark_count=1)
    assert eco.use_auto_mark() is False

    eco.toggle_auto_mark()
    assert eco.use_auto_mark() is True
    assert eco.use_auto_mark() is False
    assert eco.state.auto_mark_count == 0


def test_toggle_boost_requires_banked_time() -> None:
    eco = _economy()
    assert eco.toggle_boost(2) is None

    eco.state.boost_bank[2] = 1000
    assert eco.toggle_boost(2) == 2
    assert eco.toggle_boost(2) is None


def test_tick_drains_boost_and_posts_expiry() -> None:
    expired = []
    event_queue.subscribe(EventType.BOOST_EXPIRED, expired.append)
    eco = _economy()
    eco.state.boost_bank[5] = 1500
    eco.toggle_boost(5)

    eco.tick(1000)
    assert eco.state.boost_bank[5] == 500
    assert eco.state.active_boost_multiplier == 5

    eco.tick(1000)
    event_queue.flush()
    assert eco.state.boost_bank[5] == 0
    assert eco.state.active_boost_multiplier is None
    assert [e.payload["multiplier"] for e in expired] == [5]


def test_tick_runs_auto_miner_per_interval() -> None:
    eco = _economy(auto_miner_data=4, auto_miner_interval=1000)

    eco.tick(2500)
    assert eco.state.data_kb == 8

    eco.tick(500)
    assert eco.state.data_kb == 12


def test_tick_with_zero_interval_does_not_mine() -> None:
    eco = _economy(auto_miner_data=3, auto_miner_interval=0)

    eco.tick(100)

    assert eco.state.data_kb == 0
