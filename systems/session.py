"""
systems/session.py
==================
A running game session: world lifecycle plus player edits.

Responsibilities
----------------
- Build the live tree at every (re)start::

      raw  = WorldGenerator().generate(iteration, run_seed, root_goal)
      live = apply_modifications(filter_consumed(raw, consumed), modified)

- Apply player edits twice, once to the live tree (``Filesystem``) and once
  to the delta store, so a reboot reproduces exactly what the player saw.
- Route loot into the ``Economy`` and autosave through the ``SaveStore``.
- Post lifecycle and edit events via event_queue.

Lifecycle triggers
------------------
    boot / reboot       load the slot, regenerate, reapply deltas
    ascend              iteration + 1, deltas cleared, regenerate
    change_seed         storage wiped, fresh state with the new seed
    import_save         validated payload replaces the state, regenerate
    set_ascend_root     DEV slot only; regenerate with the goal at root

Edits on ids that are no longer in the live tree are ignored.
"""

from __future__ import annotations

import copy
import enum
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

import config
from systems.delta_store import NodeModification
from systems.economy import Economy
from systems.event_queue import EventType, event_queue
from systems.filesystem import Filesystem
from systems.reconciler import reconcile
from systems.session_state import SessionState
from systems.storage import SaveError, SaveMode, SaveStore
from world.node import AnyNode, DirectoryNode, FileExtension, FileNode, NodeType, PackageContent
from world.tree_generator import GenerationParameters, WorldGenerator

log = logging.getLogger(__name__)

_SOURCE = "GameSession"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class OpenAction(enum.Enum):
    """What opening a node did."""
    NONE     = "none"       # unknown id or nothing to do
    NAVIGATE = "navigate"   # folder entered
    READ     = "read"       # text file contents returned
    LOOT     = "loot"       # package/module consumed and applied
    ASCEND   = "ascend"     # goal executable opened


@dataclass
class OpenResult:
    action:  OpenAction
    node:    Optional[AnyNode]        = None
    message: str                      = ""
    loot:    Optional[PackageContent] = None


class TraceOutcome(enum.Enum):
    FOUND             = "found"
    ALREADY_ISOLATED  = "already_isolated"
    DEAD_END          = "dead_end"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass
class TraceResult:
    outcome: TraceOutcome
    node:    Optional[AnyNode] = None
    penalty: float             = 0.0


def is_goal(node: AnyNode) -> bool:
    """True for the executable that starts ascension."""
    return (
        isinstance(node, FileNode)
        and node.extension is FileExtension.EXE
        and (node.name.lower() == config.GOAL_NAME or node.content == config.GOAL_SENTINEL)
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class GameSession:
    """Owns the session state, the live tree and the economy.

    Parameters
    ----------
    store:
        Save slots.  ``None`` runs without persistence.
    mode:
        Initial save slot.  Defaults to the store's remembered slot.
    generator:
        World generator; a fresh one by default.
    rng:
        Source for unseeded rolls (trace penalty, speed overflow).
    clock:
        Returns wall-clock seconds; used to pick a seed for new runs.

    Usage
    -----
        session = GameSession(SaveStore())
        session.boot()
        result = session.open_node(node_id)
        if result.action is OpenAction.ASCEND:
            session.ascend()
    """

    def __init__(
        self,
        store:     Optional[SaveStore]      = None,
        mode:      Optional[SaveMode]       = None,
        generator: Optional[WorldGenerator] = None,
        rng:       Optional[random.Random]  = None,
        clock:     Callable[[], float]      = time.time,
    ) -> None:
        self._store     = store
        self._mode      = mode or (store.get_save_mode() if store else SaveMode.NORMAL)
        self._generator = generator or WorldGenerator()
        self._rng       = rng or random.Random()
        self._clock     = clock

        self._state   = SessionState()
        self._economy = Economy(self._state.economy, rng=self._rng)
        self._fs: Optional[Filesystem] = None
        self._ascension_ready = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def economy(self) -> Economy:
        return self._economy

    @property
    def mode(self) -> SaveMode:
        return self._mode

    @property
    def filesystem(self) -> Filesystem:
        if self._fs is None:
            raise RuntimeError("Session has not been booted.")
        return self._fs

    @property
    def ascension_ready(self) -> bool:
        return self._ascension_ready

    @property
    def generation_parameters(self) -> GenerationParameters:
        s = self._state
        return GenerationParameters(s.current_iteration, s.run_seed, s.is_ascend_root_enabled)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def boot(self) -> Filesystem:
        """Load the current slot (or start a new run) and build the world."""
        state = self._store.load(self._mode) if self._store else None
        if state is None:
            state = SessionState()
            log.info("No save in %s slot, starting a new run", self._mode.value)
        if not state.run_seed:
            state.run_seed = int(self._clock() * 1000)
        self.load_state(state)
        self.autosave()
        return self.filesystem

    def load_state(self, state: SessionState) -> Filesystem:
        """Adopt *state* and rebuild the live tree from it."""
        self._state   = state
        self._economy = Economy(state.economy, rng=self._rng)
        self._ascension_ready = False
        return self.rebuild_world()

    def rebuild_world(self) -> Filesystem:
        """Regenerate the raw tree and reconcile it with the delta store."""
        params = self.generation_parameters
        raw  = self._generator.generate(params)
        live = reconcile(raw, self._state.deltas)
        self._fs = Filesystem(live)
        event_queue.post_immediate(
            EventType.WORLD_GENERATED,
            {"iteration": params.iteration, "run_seed": params.run_seed,
             "root_goal": params.force_root_goal, "nodes": len(self._fs)},
            source=_SOURCE,
        )
        return self._fs

    def reboot(self, mode: Optional[SaveMode] = None) -> Filesystem:
        """Save, optionally switch slot, and boot again."""
        self.autosave()
        if mode is not None:
            self._switch_mode(mode)
        log.info("Rebooting into %s slot", self._mode.value)
        return self.boot()

    def reset_session(self) -> Filesystem:
        """Wipe the current slot and boot a new run in it."""
        if self._store:
            self._store.reset(self._mode)
        event_queue.post_immediate(EventType.SESSION_RESET, {"mode": self._mode.value}, source=_SOURCE)
        return self.boot()

    def ascend(self) -> bool:
        """Move to the next iteration.  Requires the goal to have been opened.

        Returns
        -------
        bool
            ``False`` if the goal has not been opened this iteration.
        """
        if not self._ascension_ready:
            log.warning("ascend() called before the goal was opened")
            return False

        state = self._state
        state.current_iteration += 1
        state.high_score = max(state.high_score, state.current_iteration)
        state.economy.active_boost_multiplier = None
        state.deltas.clear()
        self._ascension_ready = False

        log.info("Ascended to iteration %d", state.current_iteration)
        self.rebuild_world()
        event_queue.post_immediate(
            EventType.ASCENSION_COMPLETE,
            {"iteration": state.current_iteration, "high_score": state.high_score},
            source=_SOURCE,
        )
        self.autosave()
        return True

    def change_seed(self, seed: int) -> Filesystem:
        """Start over with *seed*: all slots wiped, NORMAL slot, defaults."""
        if self._store:
            self._store.factory_reset()
        self._switch_mode(SaveMode.NORMAL)
        log.info("Run seed changed to %d", seed)
        fs = self.load_state(SessionState(run_seed=seed))
        event_queue.post_immediate(EventType.SEED_CHANGED, {"run_seed": seed}, source=_SOURCE)
        self.autosave()
        return fs

    def import_save(self, text: str) -> bool:
        """Replace the session with an exported save.

        Returns ``False`` (and changes nothing) if *text* is not a valid save.
        """
        state = SaveStore.validate_save(text)
        if state is None:
            log.warning("Rejected imported save")
            return False

        target = SaveMode.DEV if state.is_dev_mode_enabled else SaveMode.NORMAL
        if target is SaveMode.NORMAL:
            state.is_ascend_root_enabled = False
        if not state.run_seed:
            state.run_seed = int(self._clock() * 1000)

        self._switch_mode(target)
        self.load_state(state)
        self.autosave()
        log.info("Imported save into %s slot", target.value)
        event_queue.post_immediate(EventType.SAVE_IMPORTED, {"mode": target.value}, source=_SOURCE)
        return True

    def export_save(self) -> str:
        return SaveStore.export_save(self._state)

    def set_ascend_root(self, enabled: bool) -> None:
        """Toggle root-goal generation.  Lives in the DEV slot only."""
        self._set_dev_flag("is_ascend_root_enabled", enabled)

    def set_dev_mode(self, enabled: bool) -> None:
        """Toggle infinite data.  Lives in the DEV slot only."""
        self._set_dev_flag("is_dev_mode_enabled", enabled)

    def save(self) -> None:
        """Write the state to the current slot.

        Raises
        ------
        SaveError
            If the slot cannot be written.
        """
        if self._store:
            self._store.save(self._state, self._mode)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def rename(self, node_id: str, new_name: str) -> Optional[AnyNode]:
        """Rename a node.  Blank names are ignored."""
        new_name = new_name.strip()
        if not new_name:
            return None
        return self._modify(node_id, NodeModification(name=new_name))

    def set_mark(self, node_id: str, marked: bool) -> Optional[AnyNode]:
        return self._modify(node_id, NodeModification(is_marked=marked))

    def set_scanned(self, node_id: str, scanned: bool) -> Optional[AnyNode]:
        return self._modify(node_id, NodeModification(is_scanned=scanned))

    def consume(self, node_id: str) -> Optional[AnyNode]:
        """Remove a node for good, applying its loot first if it has any.

        Returns the removed node, or ``None`` if it was not in the live tree.
        """
        node, _ = self._consume(node_id)
        return node

    def enter_directory(self, node_id: str) -> DirectoryNode:
        """Make a folder the cwd, auto-marking it if auto-mark is on.

        Raises
        ------
        FilesystemError
            If *node_id* is not a folder in the live tree.
        """
        folder = self.filesystem.enter(node_id)
        if not folder.is_marked and self._economy.use_auto_mark():
            self.set_mark(folder.node_id, True)
            event_queue.post_immediate(
                EventType.AUTOMARK_USED,
                {"node_id": folder.node_id, "remaining": self._state.economy.auto_mark_count},
                source=_SOURCE,
            )
        return folder

    def navigate(self, name: str) -> DirectoryNode:
        """``cd`` by name from the cwd; ``".."`` goes back."""
        fs = self.filesystem
        if name == "..":
            return fs.go_up()
        target = fs.child_by_name(name)
        if target is None:
            return fs.change_directory(name)   # raises FilesystemError
        return self.enter_directory(target.node_id)

    def open_node(self, node_id: str) -> OpenResult:
        """Open whatever *node_id* is: enter, read, loot or ascend."""
        node = self.filesystem.get_node(node_id)
        if node is None:
            log.warning("open_node: %r not in live tree, ignored", node_id)
            return OpenResult(OpenAction.NONE)

        if isinstance(node, DirectoryNode):
            return OpenResult(OpenAction.NAVIGATE, self.enter_directory(node_id))

        if node.is_loot:
            _, message = self._consume(node_id)
            return OpenResult(OpenAction.LOOT, node, message, node.package_content)

        if is_goal(node):
            self._ascension_ready = True
            event_queue.post_immediate(
                EventType.ASCENSION_READY,
                {"iteration": self._state.current_iteration},
                source=_SOURCE,
            )
            return OpenResult(OpenAction.ASCEND, node)

        if node.extension is FileExtension.TXT:
            event_queue.post_immediate(EventType.FILE_READ, {"node_id": node_id}, source=_SOURCE)
            return OpenResult(OpenAction.READ, node, node.content)

        return OpenResult(OpenAction.NONE, node)

    def trace_signal(self) -> TraceResult:
        """Reveal the winning-path child of the cwd for ``SCAN_COST`` KB.

        Tracing again once the signal is isolated costs a random penalty and
        reveals nothing.  A folder off the path is a dead end and is free.
        """
        eco = self._economy
        if not eco.can_afford(config.SCAN_COST):
            result = TraceResult(TraceOutcome.INSUFFICIENT_DATA)
        else:
            children = self.filesystem.cwd.children
            if any(c.is_winning_path and c.is_scanned for c in children):
                penalty = eco.drain(self._rng.randint(*config.SCAN_PENALTY_RANGE), source="trace_penalty")
                result  = TraceResult(TraceOutcome.ALREADY_ISOLATED, penalty=penalty)
            else:
                target = next((c for c in children if c.is_winning_path), None)
                if target is None:
                    result = TraceResult(TraceOutcome.DEAD_END)
                else:
                    eco.spend(config.SCAN_COST, source="trace")
                    self.set_scanned(target.node_id, True)
                    result = TraceResult(TraceOutcome.FOUND, node=target)

        event_queue.post_immediate(
            EventType.SIGNAL_TRACED,
            {"outcome": result.outcome.value,
             "node_id": result.node.node_id if result.node else None,
             "penalty": result.penalty},
            source=_SOURCE,
        )
        if result.outcome is not TraceOutcome.INSUFFICIENT_DATA:
            self.autosave()
        return result

    def tick(self, elapsed_ms: int) -> None:
        """Advance timers.  Dev mode keeps data topped up."""
        self._economy.tick(elapsed_ms)
        eco_state = self._state.economy
        if self._state.is_dev_mode_enabled and eco_state.data_kb < config.DEV_DATA_FLOOR:
            eco_state.data_kb = config.DEV_INFINITE_DATA

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _modify(self, node_id: str, change: NodeModification) -> Optional[AnyNode]:
        node = self.filesystem.update_node(
            node_id, name=change.name, is_marked=change.is_marked, is_scanned=change.is_scanned,
        )
        if node is None:
            return None
        self._state.deltas.upsert(node_id, change)
        event_queue.post_immediate(
            EventType.NODE_MODIFIED, {"node_id": node_id, **change.to_dict()}, source=_SOURCE,
        )
        self.autosave()
        return node

    def _consume(self, node_id: str) -> tuple[Optional[AnyNode], str]:
        fs   = self.filesystem
        node = fs.get_node(node_id)
        if node is None or node.is_root:
            log.warning("consume: %r not in live tree, ignored", node_id)
            return None, ""

        message = ""
        if isinstance(node, FileNode) and node.is_loot and node.package_content:
            message = self._economy.apply_loot(node.package_content)
            event_type = (EventType.MODULE_INSTALLED if node.node_type is NodeType.MODULE
                          else EventType.PACKAGE_OPENED)
            event_queue.post_immediate(
                event_type,
                {"node_id": node_id, "loot": node.package_content.to_dict(), "message": message},
                source=_SOURCE,
            )

        fs.remove_node(node_id)
        self._state.deltas.record_consumed(node_id)
        event_queue.post_immediate(
            EventType.NODE_CONSUMED, {"node_id": node_id, "name": node.name}, source=_SOURCE,
        )
        self.autosave()
        return node, message

    def _set_dev_flag(self, attr: str, enabled: bool) -> None:
        if self._mode is SaveMode.NORMAL:
            if not enabled:
                return
            dev_state = self._store.load(SaveMode.DEV) if self._store else None
            if dev_state is None:
                dev_state = copy.deepcopy(self._state)
            setattr(dev_state, attr, True)
            self.autosave()
            self._switch_mode(SaveMode.DEV)
            self.load_state(dev_state)
            self.autosave()
            return

        setattr(self._state, attr, enabled)
        if not self._state.is_dev_mode_enabled and not self._state.is_ascend_root_enabled:
            self.reboot(SaveMode.NORMAL)
            return
        if attr == "is_ascend_root_enabled":
            self.rebuild_world()
        self.autosave()

    def _switch_mode(self, mode: SaveMode) -> None:
        self._mode = mode
        if self._store:
            self._store.set_save_mode(mode)

    def autosave(self) -> None:
        """Save if a store is attached; failures are logged and posted as
        ``SAVE_FAILED``."""
        if self._store is None:
            return
        try:
            self._store.save(self._state, self._mode)
        except SaveError as exc:
            log.error("Autosave failed: %s", exc)
            event_queue.post_immediate(EventType.SAVE_FAILED, {"error": str(exc)}, source=_SOURCE)

    def __repr__(self) -> str:
        s = self._state
        return (
            f"<GameSession mode={self._mode.value} iteration={s.current_iteration} "
            f"seed={s.run_seed} {s.deltas!r}>"
        )
