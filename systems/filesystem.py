"""
systems/filesystem.py
=====================
The live, in-memory world tree for a running session.

Responsibilities
----------------
- Own the reconciled tree and a flat id index over it.
- Track the player's current directory and the history used by ``UP``.
- Apply in-place edits (rename, mark, scan flag, removal) so the live tree
  stays in step with the delta store without regenerating.
- Never post events; never touch the delta store or save state.

Edits that reference an id not present in the tree return ``None`` and
change nothing: the node may already have been consumed by an earlier
action.  Navigation errors raise ``FilesystemError``.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from world.node import AnyNode, DirectoryNode, walk

log = logging.getLogger(__name__)


class FilesystemError(Exception):
    """Raised for invalid navigation (bad name, wrong node type)."""


class Filesystem:
    """Live tree plus navigation state.

    Parameters
    ----------
    root:
        Root of the reconciled tree.

    Usage
    -----
        fs = Filesystem(reconcile(raw, deltas))

        fs.change_directory("Core_12")
        for node in fs.list_directory():
            ...
        fs.update_node(node_id, is_marked=True)
        fs.remove_node(node_id)
    """

    def __init__(self, root: DirectoryNode) -> None:
        self._root = root
        self._nodes: dict[str, AnyNode] = {}
        for node in walk(root):
            self._nodes[node.node_id] = node
        self._history: list[str] = [root.node_id]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def root(self) -> DirectoryNode:
        return self._root

    def get_node(self, node_id: str) -> Optional[AnyNode]:
        """Return the node for *node_id*, or ``None`` if not in the tree."""
        return self._nodes.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def all_nodes(self) -> Iterator[AnyNode]:
        """Yield every node, parents before children."""
        yield from walk(self._root)

    def child_by_name(self, name: str, parent: Optional[DirectoryNode] = None) -> Optional[AnyNode]:
        """First child of *parent* (default: cwd) whose name or
        ``name.ext`` matches *name*."""
        parent = parent if parent is not None else self.cwd
        for child in parent.children:
            if child.name == name or child.display_name == name:
                return child
        return None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def cwd(self) -> DirectoryNode:
        """The current working directory."""
        node = self._nodes[self._history[-1]]
        assert isinstance(node, DirectoryNode)
        return node

    def enter(self, node_id: str) -> DirectoryNode:
        """Make the folder *node_id* the cwd, pushing it onto the history.

        Raises
        ------
        FilesystemError
            If the id is unknown or not a folder.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise FilesystemError(f"No such node: {node_id!r}")
        if not isinstance(node, DirectoryNode):
            raise FilesystemError(f"{node.display_name!r} is not a directory.")
        self._history.append(node.node_id)
        log.debug("cd -> %r", node.name)
        return node

    def change_directory(self, name: str) -> DirectoryNode:
        """Enter the child folder *name* of the cwd, or go up with ``".."``."""
        if name == "..":
            return self.go_up()
        target = self.child_by_name(name)
        if target is None:
            raise FilesystemError(f"No such directory: {name!r}")
        return self.enter(target.node_id)

    def go_up(self) -> DirectoryNode:
        """Pop the history back to the previous folder."""
        if len(self._history) <= 1:
            raise FilesystemError("Already at root.")
        self._history.pop()
        return self.cwd

    def go_root(self) -> DirectoryNode:
        self._history = [self._root.node_id]
        return self._root

    def list_directory(self) -> Iterator[AnyNode]:
        """Yield the children of the cwd in display order."""
        yield from self.cwd.children

    def path_to(self, node_id: str) -> list[AnyNode]:
        """Nodes from the root down to *node_id*, inclusive; empty if unknown."""
        node = self._nodes.get(node_id)
        chain: list[AnyNode] = []
        while node is not None:
            chain.append(node)
            node = self._nodes.get(node.parent_id) if node.parent_id else None
        return list(reversed(chain))

    def path_to_cwd(self) -> str:
        """``/``-separated path of the cwd, e.g. ``"/Core_12/Void_7"``."""
        names = [n.name for n in self.path_to(self.cwd.node_id)[1:]]
        return "/" + "/".join(names)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def update_node(
        self,
        node_id:    str,
        name:       Optional[str]  = None,
        is_marked:  Optional[bool] = None,
        is_scanned: Optional[bool] = None,
    ) -> Optional[AnyNode]:
        """Set the given fields on *node_id* in place.

        Returns the node, or ``None`` if the id is not in the tree.
        """
        node = self._nodes.get(node_id)
        if node is None:
            log.warning("update_node: %r not in live tree, ignored", node_id)
            return None
        if name is not None:
            node.name = name
        if is_marked is not None:
            node.is_marked = is_marked
        if is_scanned is not None:
            node.is_scanned = is_scanned
        log.debug("Updated %r", node)
        return node

    def remove_node(self, node_id: str) -> Optional[AnyNode]:
        """Detach *node_id* (and its subtree) from the tree.

        The root cannot be removed.  If the cwd was inside the removed
        subtree the history is trimmed back to its surviving ancestor.
        Returns the removed node, or ``None`` if nothing was removed.
        """
        node = self._nodes.get(node_id)
        if node is None or node.parent_id is None:
            log.warning("remove_node: %r not removable, ignored", node_id)
            return None

        parent = self._nodes.get(node.parent_id)
        if isinstance(parent, DirectoryNode):
            parent.remove_child(node_id)

        removed = {n.node_id for n in walk(node)}
        for rid in removed:
            self._nodes.pop(rid, None)

        if any(h in removed for h in self._history):
            self._history = self._history[:next(
                i for i, h in enumerate(self._history) if h in removed
            )]
        log.debug("Removed %r (%d node(s))", node, len(removed))
        return node

    def __repr__(self) -> str:
        return f"<Filesystem nodes={len(self._nodes)} cwd={self.cwd.name!r}>"
