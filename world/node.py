"""
world/node.py
=============
Core data structures for the Ascend OS virtual filesystem.

A world is a tree of ``Node`` objects.  This module defines only the
data: no game logic, no generation, no event posting.  Systems that operate
on nodes (``systems/filesystem.py``, ``systems/reconciler.py``,
``world/tree_generator.py``) import from here.

Node kinds
----------
FOLDER      A ``DirectoryNode`` holding an ordered list of children.
FILE        Inert text (``txt``) or the goal executable (``exe``).
PACKAGE     Consumable loot (``pkg``): data, auto-marks or boost time.
MODULE      Permanent auto-miner upgrade (``mod``).

Only ``DirectoryNode`` carries children; the three leaf kinds share
``FileNode``.  That split makes a FILE with children unrepresentable.

Boundary format
---------------
``node_to_dict`` / ``node_from_dict`` convert to and from the camelCase
JSON shape shared with saves and external tooling::

    {"id": ..., "name": ..., "type": "FOLDER", "parentId": ...,
     "isMarked": ..., "isWinningPath": ..., "isScanned": ...,
     "children": [...]}
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NodeType(enum.Enum):
    """The four kinds of node that can exist in a world tree."""
    FILE    = "FILE"
    FOLDER  = "FOLDER"
    PACKAGE = "PACKAGE"
    MODULE  = "MODULE"


class FileExtension(enum.Enum):
    TXT = "txt"
    EXE = "exe"
    PKG = "pkg"
    MOD = "mod"


class PackageType(enum.Enum):
    """What a PACKAGE or MODULE grants when opened."""
    DATA            = "DATA"              # KB of currency
    AUTOMARK        = "AUTOMARK"          # auto-mark units
    BOOST           = "BOOST"             # ms of boost at a multiplier
    AUTOMINER_POWER = "AUTOMINER_POWER"   # +KB per auto-miner tick
    AUTOMINER_SPEED = "AUTOMINER_SPEED"   # -ms auto-miner interval


# ---------------------------------------------------------------------------
# Loot payload
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PackageContent:
    """Decoded loot carried by a PACKAGE or MODULE node.

    Parameters
    ----------
    kind:
        Which effect the loot applies.
    value:
        Effect magnitude.  Units depend on ``kind`` (KB, units, ms, KB/tick).
    multiplier:
        Boost multiplier; only set for ``BOOST``.
    """

    kind:       PackageType
    value:      int
    multiplier: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.kind.value, "value": self.value}
        if self.multiplier is not None:
            payload["multiplier"] = self.multiplier
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PackageContent":
        return cls(
            kind       = PackageType(payload["type"]),
            value      = payload["value"],
            multiplier = payload.get("multiplier"),
        )


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """Fields shared by every node in the tree.

    Parameters
    ----------
    node_id:
        Identifier derived from the node's generation position, so the same
        logical node gets the same id every time a world is regenerated.
    name:
        Display name, without extension.
    parent_id:
        ``node_id`` of the parent directory, or ``None`` for the root.
    is_marked:
        Player annotation.
    is_winning_path:
        True iff the node is the goal or lies on the path to it.  Set at
        generation time only.
    is_scanned:
        Revealed by a signal trace.
    """

    node_id:         str
    name:            str
    parent_id:       Optional[str] = None
    is_marked:       bool          = False
    is_winning_path: bool          = False
    is_scanned:      bool          = False

    @property
    def is_root(self) -> bool:
        """True if this node has no parent."""
        return self.parent_id is None

    @property
    def is_directory(self) -> bool:
        return False

    @property
    def display_name(self) -> str:
        return self.name


@dataclass
class DirectoryNode(Node):
    """A FOLDER node.  ``children`` order is display order."""

    children:  list["AnyNode"] = field(default_factory=list)
    node_type: NodeType        = field(default=NodeType.FOLDER, init=False)

    @property
    def is_directory(self) -> bool:
        return True

    def add_child(self, child: "AnyNode") -> None:
        """Append *child* and point its ``parent_id`` at this directory."""
        child.parent_id = self.node_id
        self.children.append(child)

    def remove_child(self, node_id: str) -> Optional["AnyNode"]:
        """Detach and return the direct child with *node_id*, or ``None``."""
        for index, child in enumerate(self.children):
            if child.node_id == node_id:
                return self.children.pop(index)
        return None

    def __repr__(self) -> str:
        return (
            f"<DirectoryNode {self.node_id!r} name={self.name!r} "
            f"children={len(self.children)}>"
        )


@dataclass
class FileNode(Node):
    """A leaf node: FILE, PACKAGE or MODULE.

    Parameters
    ----------
    node_type:
        Leaf kind.  ``FOLDER`` is rejected.
    extension:
        ``txt`` / ``exe`` for FILE, ``pkg`` for PACKAGE, ``mod`` for MODULE.
    content:
        Lore text, the goal sentinel, or a short label for loot nodes.
    package_content:
        Loot payload for PACKAGE and MODULE nodes.
    """

    node_type:       NodeType                 = NodeType.FILE
    extension:       FileExtension            = FileExtension.TXT
    content:         str                      = ""
    package_content: Optional[PackageContent] = None

    def __post_init__(self) -> None:
        if self.node_type is NodeType.FOLDER:
            raise ValueError(f"FileNode {self.node_id!r} cannot have type FOLDER")

    @property
    def is_loot(self) -> bool:
        """True for PACKAGE and MODULE nodes."""
        return self.node_type in (NodeType.PACKAGE, NodeType.MODULE)

    @property
    def display_name(self) -> str:
        return f"{self.name}.{self.extension.value}"

    def __repr__(self) -> str:
        return (
            f"<FileNode {self.node_type.name} {self.node_id!r} "
            f"name={self.display_name!r}>"
        )


AnyNode = Union[DirectoryNode, FileNode]


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def walk(node: AnyNode) -> Iterator[AnyNode]:
    """Yield *node* and every descendant, depth-first, parents first."""
    yield node
    if isinstance(node, DirectoryNode):
        for child in node.children:
            yield from walk(child)


# ---------------------------------------------------------------------------
# Boundary (de)serialization
# ---------------------------------------------------------------------------

def node_to_dict(node: AnyNode) -> dict[str, Any]:
    """Return the camelCase JSON-compatible form of *node* and its subtree."""
    payload: dict[str, Any] = {
        "id":            node.node_id,
        "name":          node.name,
        "type":          node.node_type.value,
        "parentId":      node.parent_id,
        "isMarked":      node.is_marked,
        "isWinningPath": node.is_winning_path,
        "isScanned":     node.is_scanned,
    }
    if isinstance(node, DirectoryNode):
        payload["children"] = [node_to_dict(child) for child in node.children]
    else:
        payload["extension"] = node.extension.value
        payload["content"]   = node.content
        if node.package_content is not None:
            payload["packageContent"] = node.package_content.to_dict()
    return payload


def node_from_dict(payload: dict[str, Any]) -> AnyNode:
    """Rebuild a node (and subtree) from ``node_to_dict`` output.

    Raises
    ------
    ValueError
        If ``type`` is not a known node type.
    """
    node_type = NodeType(payload["type"])
    common = dict(
        node_id         = payload["id"],
        name            = payload["name"],
        parent_id       = payload.get("parentId"),
        is_marked       = bool(payload.get("isMarked", False)),
        is_winning_path = bool(payload.get("isWinningPath", False)),
        is_scanned      = bool(payload.get("isScanned", False)),
    )
    if node_type is NodeType.FOLDER:
        directory = DirectoryNode(**common)
        directory.children = [node_from_dict(c) for c in payload.get("children", [])]
        return directory

    loot = payload.get("packageContent")
    return FileNode(
        **common,
        node_type       = node_type,
        extension       = FileExtension(payload.get("extension", "txt")),
        content         = payload.get("content", ""),
        package_content = PackageContent.from_dict(loot) if loot else None,
    )
