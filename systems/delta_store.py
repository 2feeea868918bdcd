"""
systems/delta_store.py
======================
The persisted overlay that turns a raw generated tree into the live one.

Only two sparse collections are saved per iteration; the tree itself never
is:

``consumed_ids``
    Ids removed from the tree (opened loot, deleted nodes).  Insertion
    ordered, no duplicates.
``modified_nodes``
    ``id -> NodeModification`` with only the fields the player changed.

Entries are never pruned when an ancestor disappears; reconciliation treats
ids missing from the tree as no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

log = logging.getLogger(__name__)


@dataclass
class NodeModification:
    """Sparse per-node overlay.  ``None`` means "not modified"."""

    name:       Optional[str]  = None
    is_marked:  Optional[bool] = None
    is_scanned: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.is_marked is None and self.is_scanned is None

    def merge(self, other: "NodeModification") -> "NodeModification":
        """Return a copy with *other*'s defined fields layered on top."""
        return NodeModification(
            name       = other.name if other.name is not None else self.name,
            is_marked  = other.is_marked if other.is_marked is not None else self.is_marked,
            is_scanned = other.is_scanned if other.is_scanned is not None else self.is_scanned,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.name is not None:
            payload["name"] = self.name
        if self.is_marked is not None:
            payload["isMarked"] = self.is_marked
        if self.is_scanned is not None:
            payload["isScanned"] = self.is_scanned
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NodeModification":
        name       = payload.get("name")
        is_marked  = payload.get("isMarked")
        is_scanned = payload.get("isScanned")
        return cls(
            name       = name if isinstance(name, str) else None,
            is_marked  = is_marked if isinstance(is_marked, bool) else None,
            is_scanned = is_scanned if isinstance(is_scanned, bool) else None,
        )


class DeltaStore:
    """Consumed ids plus per-node modifications for one iteration.

    Parameters
    ----------
    consumed_ids:
        Initial consumed ids; duplicates are dropped.
    modified_nodes:
        Initial modifications keyed by node id.
    """

    def __init__(
        self,
        consumed_ids:   Iterable[str] = (),
        modified_nodes: Optional[Mapping[str, NodeModification]] = None,
    ) -> None:
        # dict keys give ordered, duplicate-free membership
        self._consumed: dict[str, None] = dict.fromkeys(consumed_ids)
        self._modified: dict[str, NodeModification] = dict(modified_nodes or {})

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def consumed_ids(self) -> frozenset[str]:
        return frozenset(self._consumed)

    @property
    def modified_nodes(self) -> dict[str, NodeModification]:
        return dict(self._modified)

    def is_consumed(self, node_id: str) -> bool:
        return node_id in self._consumed

    def modification(self, node_id: str) -> Optional[NodeModification]:
        return self._modified.get(node_id)

    @property
    def is_empty(self) -> bool:
        return not self._consumed and not self._modified

    # ------------------------------------------------------------------
    # Write access
    # ------------------------------------------------------------------

    def record_consumed(self, node_id: str) -> None:
        """Add *node_id* to the consumed set."""
        self._consumed[node_id] = None

    def upsert(self, node_id: str, change: NodeModification) -> NodeModification:
        """Merge *change* into the entry for *node_id* and return the result."""
        if change.is_empty:
            return self._modified.get(node_id, change)
        merged = self._modified.get(node_id, NodeModification()).merge(change)
        self._modified[node_id] = merged
        log.debug("Delta for %r is now %r", node_id, merged)
        return merged

    def clear(self) -> None:
        """Forget every delta (ascension, seed change)."""
        self._consumed.clear()
        self._modified.clear()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "consumedIds":   list(self._consumed),
            "modifiedNodes": {
                node_id: mod.to_dict() for node_id, mod in self._modified.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DeltaStore":
        """Build from a save payload.  Missing or malformed fields become empty."""
        consumed = payload.get("consumedIds")
        if not isinstance(consumed, list):
            consumed = []
        modified = payload.get("modifiedNodes")
        if not isinstance(modified, Mapping):
            modified = {}
        return cls(
            consumed_ids   = (c for c in consumed if isinstance(c, str)),
            modified_nodes = {
                node_id: NodeModification.from_dict(entry)
                for node_id, entry in modified.items()
                if isinstance(entry, Mapping)
            },
        )

    def __repr__(self) -> str:
        return f"<DeltaStore consumed={len(self._consumed)} modified={len(self._modified)}>"
