"""
world/loot.py
=============
Weighted loot tables for consumable packages and permanent modules.

Each roll draws one float from the generator's ``SeededRandom`` to pick the
category, then draws again for magnitudes.  The boundaries are exclusive on
the upper category: a draw of exactly ``0.90`` on the package table is an
AUTOMARK, not a BOOST.

Package table               Module table
-------------               ------------
r > 0.90         BOOST      r > 0.70   AUTOMINER_SPEED
0.60 < r <= 0.90 AUTOMARK   r <= 0.70  AUTOMINER_POWER
r <= 0.60        DATA

``iteration`` is accepted by both tables but does not bias the weights yet.
"""

from __future__ import annotations

from world.node import PackageContent, PackageType
from world.rng import SeededRandom

_BOOST_THRESHOLD    = 0.90
_AUTOMARK_THRESHOLD = 0.60
_SPEED_THRESHOLD    = 0.70

_KB_PER_MB = 1024
_MS_PER_S  = 1000


def roll_package_content(rng: SeededRandom, iteration: int) -> PackageContent:
    """Roll consumable loot: data, auto-mark units or boost time."""
    roll = rng.random()

    if roll > _BOOST_THRESHOLD:
        multiplier = rng.randint(2, 5)
        seconds    = rng.randint(1, 5)
        return PackageContent(PackageType.BOOST, seconds * _MS_PER_S, multiplier)

    if roll > _AUTOMARK_THRESHOLD:
        return PackageContent(PackageType.AUTOMARK, rng.randint(5, 10))

    megabytes = rng.randint(5, 10)
    return PackageContent(PackageType.DATA, megabytes * _KB_PER_MB)


def roll_module_content(rng: SeededRandom, iteration: int) -> PackageContent:
    """Roll a permanent auto-miner upgrade.

    Speed modules carry an interval reduction in ms (10-100); power modules
    carry extra KB per tick (1-5).
    """
    roll = rng.random()

    if roll > _SPEED_THRESHOLD:
        return PackageContent(PackageType.AUTOMINER_SPEED, rng.randint(10, 100))

    return PackageContent(PackageType.AUTOMINER_POWER, rng.randint(1, 5))
