"""
systems/storage.py
==================
Save slots on disk.

Responsibilities
----------------
- Read and write ``SessionState`` payloads, one file per save key.
- Remember which slot (NORMAL or DEV) the player last booted.
- Export and validate portable JSON saves.

Files live in ``config.SAVES_DIR`` as ``<key>.yaml`` (PyYAML) or
``<key>.json`` depending on ``config.SAVE_FORMAT``.  Loading never raises:
a missing file is ``None``; an unreadable one is logged and also ``None``.
Writing raises ``SaveError`` so the caller decides how to report it.
"""

from __future__ import annotations

import enum
import json
import logging
import os
from typing import Any, Optional

import yaml

import config
from systems.session_state import SessionState

log = logging.getLogger(__name__)


class SaveError(Exception):
    """Raised when a save slot cannot be written."""


class SaveMode(enum.Enum):
    NORMAL = "NORMAL"
    DEV    = "DEV"


_SLOT_KEYS = {
    SaveMode.NORMAL: config.SAVE_KEY_NORMAL,
    SaveMode.DEV:    config.SAVE_KEY_DEV,
}


class SaveStore:
    """File-backed save slots.

    Parameters
    ----------
    saves_dir:
        Directory holding the save files.  Created on first write.
    fmt:
        ``"yaml"`` or ``"json"``.

    Usage
    -----
        store = SaveStore()
        state = store.load(SaveMode.NORMAL) or SessionState(run_seed=seed)
        store.save(state, SaveMode.NORMAL)
    """

    def __init__(self, saves_dir: str = config.SAVES_DIR, fmt: str = config.SAVE_FORMAT) -> None:
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported save format {fmt!r}")
        self._dir = saves_dir
        self._fmt = fmt

    # ------------------------------------------------------------------
    # Save mode
    # ------------------------------------------------------------------

    def get_save_mode(self) -> SaveMode:
        """Last booted slot; NORMAL if unset or unreadable."""
        raw = self._read(config.SAVE_KEY_MODE)
        if raw == SaveMode.DEV.value:
            return SaveMode.DEV
        return SaveMode.NORMAL

    def set_save_mode(self, mode: SaveMode) -> None:
        self._write(config.SAVE_KEY_MODE, mode.value)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def load(self, mode: SaveMode) -> Optional[SessionState]:
        """Return the state stored in *mode*'s slot, or ``None``.

        NORMAL saves always load with dev flags off.
        """
        payload = self._read(_SLOT_KEYS[mode])
        if payload is None:
            return None
        if not isinstance(payload, dict):
            log.error("Save slot %s does not hold a mapping; ignoring it", mode.value)
            return None

        state = SessionState.from_dict(payload)
        if mode is SaveMode.NORMAL:
            state.is_dev_mode_enabled    = False
            state.is_ascend_root_enabled = False
        return state

    def save(self, state: SessionState, mode: SaveMode) -> None:
        """Write *state* to *mode*'s slot.

        Raises
        ------
        SaveError
            If the file cannot be written.
        """
        self._write(_SLOT_KEYS[mode], state.to_dict())

    def reset(self, mode: SaveMode) -> None:
        """Delete *mode*'s slot."""
        self._remove(_SLOT_KEYS[mode])

    def factory_reset(self) -> None:
        """Delete both slots, the mode marker and the legacy slot."""
        for key in (config.SAVE_KEY_NORMAL, config.SAVE_KEY_DEV,
                    config.SAVE_KEY_MODE, config.SAVE_KEY_LEGACY):
            self._remove(key)
        log.info("Factory reset: all save slots removed")

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    @staticmethod
    def export_save(state: SessionState) -> str:
        """Pretty-printed JSON for the player to copy out."""
        return json.dumps(state.to_dict(), indent=2)

    @staticmethod
    def validate_save(text: str) -> Optional[SessionState]:
        """Parse an exported save; ``None`` if it is not a usable save.

        A usable save is a JSON object with numeric ``currentIteration``
        and ``dataKB``.
        """
        try:
            payload = json.loads(text)
        except (TypeError, ValueError):
            return None
        if not isinstance(payload, dict):
            return None
        for key in ("currentIteration", "dataKB"):
            value = payload.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
        return SessionState.from_dict(payload)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def path_for(self, key: str) -> str:
        return os.path.join(self._dir, f"{key}.{self._fmt}")

    def _read(self, key: str) -> Any:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                if self._fmt == "yaml":
                    return yaml.safe_load(handle)
                return json.load(handle)
        except (OSError, ValueError, yaml.YAMLError):
            log.exception("Failed to read save file %s", path)
            return None

    def _write(self, key: str, payload: Any) -> None:
        path = self.path_for(key)
        tmp_path = f"{path}.tmp"
        try:
            os.makedirs(self._dir, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                if self._fmt == "yaml":
                    yaml.safe_dump(payload, handle, sort_keys=False)
                else:
                    json.dump(payload, handle, indent=2)
            os.replace(tmp_path, path)
        except (OSError, yaml.YAMLError) as exc:
            log.error("Failed to write save file %s: %s", path, exc)
            raise SaveError(f"Could not write {path}: {exc}") from exc

    def _remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        return f"<SaveStore dir={self._dir!r} fmt={self._fmt}>"
