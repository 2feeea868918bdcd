"""
world/names.py
==============
Name pools and flavour text for generated nodes.

Every helper takes the generator's ``SeededRandom`` so names and lore are
part of the reproducible stream.
"""

from __future__ import annotations

from world.rng import SeededRandom

FOLDER_NAMES = [
    "System", "Bin", "Users", "Local", "Cache", "Temp", "Logs", "Core",
    "Network", "Config", "Driver", "Kernel", "Boot", "Recovery", "Shadow",
    "Nexus", "Void", "Sector", "Grid", "Matrix", "Root",
]

FILE_PREFIXES = ["sys", "log", "err", "data", "dump", "net", "cfg", "run", "batch", "proc"]
FILE_SUFFIXES = ["_bak", "_old", "_v1", "_final", "_tmp", "_01", "_hex"]

LORE_FRAGMENTS = [
    "The system is expanding.",
    "Iteration cycles are stabilizing.",
    "Don't look too deep into the void.",
    "Memory leak detected in sector 7.",
    "The user is watching.",
    "Packet loss at 99%.",
    "Ascension is the only way out.",
    "Recompiling reality...",
    "Error: Success.",
    "Null pointer exception in soul.exe.",
]

MODULE_LABEL  = "ENCRYPTED HARDWARE MODULE"
PACKAGE_LABEL = "ENCRYPTED SUPPLY DROP"


def file_name(rng: SeededRandom) -> str:
    """e.g. ``"dump_old_482"`` or ``"cfg_117"``."""
    prefix = rng.choice(FILE_PREFIXES)
    suffix = rng.choice(FILE_SUFFIXES) if rng.random() > 0.5 else ""
    return f"{prefix}{suffix}_{rng.randint(100, 999)}"


def path_folder_name(rng: SeededRandom) -> str:
    """Winning-path folders use a shorter numeric tag than junk folders."""
    return f"{rng.choice(FOLDER_NAMES)}_{rng.randint(1, 99)}"


def junk_folder_name(rng: SeededRandom) -> str:
    return f"{rng.choice(FOLDER_NAMES)}_{rng.randint(100, 999)}"


def module_name(rng: SeededRandom) -> str:
    return f"hw_mod_{rng.randint(100, 999)}"


def package_name(rng: SeededRandom) -> str:
    return f"supply_{rng.randint(100, 999)}"


def file_content(rng: SeededRandom, iteration: int) -> str:
    """A short lore dump: 2-5 fragments, each followed by a hex tag."""
    lines = [f"// FILE DUMP - ITERATION {iteration}", ""]
    for _ in range(rng.randint(2, 5)):
        lines.append(f"> {rng.choice(LORE_FRAGMENTS)}")
        lines.append(f"> [HEX: {rng.randint(100000, 999999)}]")
    return "\n".join(lines) + "\n"
