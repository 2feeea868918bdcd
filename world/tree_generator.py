"""
world/tree_generator.py
=======================
Procedural generation of Ascend OS world trees.

Responsibilities
----------------
- Build a tree of ``Node`` objects for one iteration of a run.
- Embed a single winning path of folders ending in the goal executable.
- Hang scaled distractor content and loot off every path folder.
- Never post events; never touch session state.

Generation approach
-------------------
A world is a pure function of ``GenerationParameters``.  The PRNG is
reseeded with ``run_seed + iteration * 1337`` at the start of every call,
and ids are derived from each node's position (parent id, loop index and a
role tag), so regenerating the same parameters yields the same tree with the
same ids.  The delta store relies on that to re-find nodes after a reboot.

1. **Path**: a chain of ``5 + ceil(iteration * 0.8)`` folders below the
   root (skipped in root-goal mode), then the goal file at its end.
2. **Distractors**: every path folder (root included) receives
   ``randint(3, 5 + iteration // 2)`` extra children.  Distractor folders
   are filled by ``JunkGenerator`` down to ``2 + iteration // 5`` levels.
3. **Shuffle**: each path folder's children are shuffled so the path
   child is not always first.

Id scheme
---------
    root                           the root folder
    dir_<depth>_<iteration>        winning-path folders
    ascend_exe_<iteration>         the goal
    mod_root_<parent>_<i>          distractor module
    pkg_root_<parent>_<i>          distractor package
    junk_path_sib_<parent>_<i>     distractor folder or file
    mod_<parent>_<i>               junk module
    pkg_<parent>_<i>               junk package
    junk_dir_<parent>_<i>          junk folder
    junk_file_<parent>_<i>         junk file
    junk_file_leaf_<parent>_<i>    file at the junk depth limit

Ids stay stable only while draw order and loop bounds stay unchanged, so
any edit to this module invalidates existing saves of a running iteration.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import config
from world import names
from world.loot import roll_module_content, roll_package_content
from world.node import DirectoryNode, FileExtension, FileNode, NodeType, walk
from world.rng import SeededRandom

log = logging.getLogger(__name__)

# Spawn thresholds shared by junk and distractor rolls
_MODULE_THRESHOLD  = 0.885   # 11.5 %
_PACKAGE_THRESHOLD = 0.735   # 15.0 %

# Folder-vs-file split for the remaining rolls.  Path distractors are
# folders more often than interior junk.
_JUNK_FOLDER_THRESHOLD       = 0.4
_DISTRACTOR_FOLDER_THRESHOLD = 0.3


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GenerationParameters:
    """Inputs that fully determine a raw world tree.

    Parameters
    ----------
    iteration:
        Prestige level, ``>= 1``.  Drives depth and density.
    run_seed:
        Seed chosen once per run.
    force_root_goal:
        Place the goal directly under the root and build no path folders.
    """

    iteration:       int
    run_seed:        int
    force_root_goal: bool = False

    def __post_init__(self) -> None:
        if self.iteration < 1:
            raise ValueError(f"iteration must be >= 1, got {self.iteration}")

    @property
    def seed(self) -> int:
        """Seed for this iteration's stream."""
        return self.run_seed + self.iteration * config.ITERATION_SEED_STRIDE

    @property
    def scaling_iteration(self) -> int:
        """Iteration used by the size formulas, capped."""
        return min(self.iteration, config.MAX_SCALING_ITERATION)

    @property
    def target_depth(self) -> int:
        """Number of winning-path folders below the root."""
        return 5 + math.ceil(self.scaling_iteration * 0.8)

    @property
    def junk_max_depth(self) -> int:
        """Depth limit handed to ``JunkGenerator`` for distractor folders."""
        return 2 + self.scaling_iteration // 5


# ---------------------------------------------------------------------------
# Leaf factories
# ---------------------------------------------------------------------------

def _make_module(node_id: str, parent: DirectoryNode, rng: SeededRandom, iteration: int) -> FileNode:
    name = names.module_name(rng)
    return FileNode(
        node_id         = node_id,
        name            = name,
        parent_id       = parent.node_id,
        node_type       = NodeType.MODULE,
        extension       = FileExtension.MOD,
        content         = names.MODULE_LABEL,
        package_content = roll_module_content(rng, iteration),
    )


def _make_package(node_id: str, parent: DirectoryNode, rng: SeededRandom, iteration: int) -> FileNode:
    name = names.package_name(rng)
    return FileNode(
        node_id         = node_id,
        name            = name,
        parent_id       = parent.node_id,
        node_type       = NodeType.PACKAGE,
        extension       = FileExtension.PKG,
        content         = names.PACKAGE_LABEL,
        package_content = roll_package_content(rng, iteration),
    )


def _make_text_file(node_id: str, parent: DirectoryNode, rng: SeededRandom, iteration: int) -> FileNode:
    name = names.file_name(rng)
    return FileNode(
        node_id   = node_id,
        name      = name,
        parent_id = parent.node_id,
        content   = names.file_content(rng, iteration),
    )


# ---------------------------------------------------------------------------
# Junk subtrees
# ---------------------------------------------------------------------------

class JunkGenerator:
    """Fills a folder with a bounded-depth subtree of junk and loot.

    Parameters
    ----------
    rng:
        The stream owned by the current world generation.
    iteration:
        Real iteration, used for lore text and loot rolls.
    scaling_iteration:
        Capped iteration used for density.
    """

    def __init__(self, rng: SeededRandom, iteration: int, scaling_iteration: int) -> None:
        self._rng               = rng
        self._iteration         = iteration
        self._scaling_iteration = scaling_iteration

    def generate(self, parent: DirectoryNode, current_depth: int, max_depth: int) -> None:
        """Append children to *parent* in place, recursing into new folders.

        At ``current_depth >= max_depth`` only 1-3 text files are added.
        """
        rng = self._rng

        if current_depth >= max_depth:
            for i in range(rng.randint(1, 3)):
                parent.children.append(_make_text_file(
                    f"junk_file_leaf_{parent.node_id}_{i}", parent, rng, self._iteration,
                ))
            return

        density = rng.randint(2, 4 + self._scaling_iteration // 3)

        for i in range(density):
            roll = rng.random()

            if roll > _MODULE_THRESHOLD:
                parent.children.append(_make_module(
                    f"mod_{parent.node_id}_{i}", parent, rng, self._iteration,
                ))
                continue

            if roll > _PACKAGE_THRESHOLD:
                parent.children.append(_make_package(
                    f"pkg_{parent.node_id}_{i}", parent, rng, self._iteration,
                ))
                continue

            if rng.random() > _JUNK_FOLDER_THRESHOLD:
                folder = DirectoryNode(
                    node_id   = f"junk_dir_{parent.node_id}_{i}",
                    name      = names.junk_folder_name(rng),
                    parent_id = parent.node_id,
                )
                parent.children.append(folder)
                self.generate(folder, current_depth + 1, max_depth)
            else:
                parent.children.append(_make_text_file(
                    f"junk_file_{parent.node_id}_{i}", parent, rng, self._iteration,
                ))


# ---------------------------------------------------------------------------
# World generator
# ---------------------------------------------------------------------------

class WorldGenerator:
    """Builds raw world trees from ``GenerationParameters``.

    Usage
    -----
        gen  = WorldGenerator()
        root = gen.generate(GenerationParameters(iteration=1, run_seed=42))

    The generator owns one ``SeededRandom`` and reseeds it on every call, so
    calls never leak state into each other.
    """

    def __init__(self, rng: Optional[SeededRandom] = None) -> None:
        self._rng = rng if rng is not None else SeededRandom()

    def generate(self, params: GenerationParameters) -> DirectoryNode:
        """Return the root of a freshly generated raw tree for *params*."""
        rng = self._rng
        rng.reseed(params.seed)

        log.info(
            "Generating world (iteration=%d, seed=%d, root_goal=%s)",
            params.iteration, params.run_seed, params.force_root_goal,
        )

        root = DirectoryNode(
            node_id         = config.ROOT_ID,
            name            = config.ROOT_NAME,
            is_winning_path = True,
        )
        path = self._build_path(root, params)

        goal_parent = path[-1]
        goal_parent.children.append(FileNode(
            node_id         = f"ascend_exe_{params.iteration}",
            name            = config.GOAL_NAME,
            parent_id       = goal_parent.node_id,
            node_type       = NodeType.FILE,
            extension       = FileExtension.EXE,
            content         = config.GOAL_SENTINEL,
            is_winning_path = True,
        ))

        junk = JunkGenerator(rng, params.iteration, params.scaling_iteration)
        for node in path:
            self._add_distractors(node, params, junk)
            rng.shuffle(node.children)

        if log.isEnabledFor(logging.INFO):
            log.info("World generated: %d nodes total", sum(1 for _ in walk(root)))
        return root

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _build_path(self, root: DirectoryNode, params: GenerationParameters) -> list[DirectoryNode]:
        """Create the winning folder chain and return it, root first."""
        path = [root]
        if params.force_root_goal:
            return path

        current = root
        for depth in range(params.target_depth):
            folder = DirectoryNode(
                node_id         = f"dir_{depth}_{params.iteration}",
                name            = names.path_folder_name(self._rng),
                parent_id       = current.node_id,
                is_winning_path = True,
            )
            current.children.append(folder)
            path.append(folder)
            current = folder
        return path

    def _add_distractors(
        self,
        node:   DirectoryNode,
        params: GenerationParameters,
        junk:   JunkGenerator,
    ) -> None:
        """Append off-path siblings to a path folder."""
        rng       = self._rng
        iteration = params.iteration
        sibling_count = rng.randint(3, 5 + params.scaling_iteration // 2)

        for i in range(sibling_count):
            roll = rng.random()

            if roll > _MODULE_THRESHOLD:
                node.children.append(_make_module(
                    f"mod_root_{node.node_id}_{i}", node, rng, iteration,
                ))
                continue

            if roll > _PACKAGE_THRESHOLD:
                node.children.append(_make_package(
                    f"pkg_root_{node.node_id}_{i}", node, rng, iteration,
                ))
                continue

            if rng.random() > _DISTRACTOR_FOLDER_THRESHOLD:
                folder = DirectoryNode(
                    node_id   = f"junk_path_sib_{node.node_id}_{i}",
                    name      = names.junk_folder_name(rng),
                    parent_id = node.node_id,
                )
                node.children.append(folder)
                junk.generate(folder, 0, params.junk_max_depth)
            else:
                node.children.append(_make_text_file(
                    f"junk_path_sib_{node.node_id}_{i}", node, rng, iteration,
                ))


def generate_world(iteration: int, run_seed: int, force_root_goal: bool = False) -> DirectoryNode:
    """Convenience wrapper: one-shot generation with a private PRNG."""
    params = GenerationParameters(iteration, run_seed, force_root_goal)
    return WorldGenerator().generate(params)
