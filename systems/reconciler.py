"""
systems/reconciler.py
=====================
Turns a raw generated tree plus a ``DeltaStore`` into the live tree.

    live = apply_modifications(filter_consumed(raw, consumed_ids), modified_nodes)

Both passes return new trees and leave their input untouched; unchanged
leaves are shared between input and output.  Ids in the delta store that no
longer exist in the tree are ignored.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import AbstractSet, Mapping

from systems.delta_store import DeltaStore, NodeModification
from world.node import AnyNode, DirectoryNode

log = logging.getLogger(__name__)


def filter_consumed(tree: DirectoryNode, consumed_ids: AbstractSet[str]) -> DirectoryNode:
    """Return *tree* without any node whose id is in *consumed_ids*.

    Every folder is visited, so consumed nodes at any depth are removed.
    The root itself is never removed.
    """
    children: list[AnyNode] = []
    for child in tree.children:
        if child.node_id in consumed_ids:
            continue
        if isinstance(child, DirectoryNode):
            child = filter_consumed(child, consumed_ids)
        children.append(child)
    return dataclasses.replace(tree, children=children)


def _overlay(node: AnyNode, mod: NodeModification) -> AnyNode:
    changes = {}
    if mod.name is not None:
        changes["name"] = mod.name
    if mod.is_marked is not None:
        changes["is_marked"] = mod.is_marked
    if mod.is_scanned is not None:
        changes["is_scanned"] = mod.is_scanned
    return dataclasses.replace(node, **changes) if changes else node


def apply_modifications(
    tree:           DirectoryNode,
    modified_nodes: Mapping[str, NodeModification],
) -> DirectoryNode:
    """Return *tree* with each node's modification entry merged onto it.

    Only fields the entry defines are changed; folders and leaves are
    treated alike.
    """
    children: list[AnyNode] = []
    for child in tree.children:
        if isinstance(child, DirectoryNode):
            child = apply_modifications(child, modified_nodes)
        else:
            mod = modified_nodes.get(child.node_id)
            if mod is not None:
                child = _overlay(child, mod)
        children.append(child)

    root = dataclasses.replace(tree, children=children)
    mod = modified_nodes.get(tree.node_id)
    return _overlay(root, mod) if mod is not None else root


def reconcile(raw: DirectoryNode, deltas: DeltaStore) -> DirectoryNode:
    """Consumption filter first, then the modification overlay."""
    consumed = deltas.consumed_ids
    live = filter_consumed(raw, consumed) if consumed else raw
    modified = deltas.modified_nodes
    if modified:
        live = apply_modifications(live, modified)
    log.debug("Reconciled world with %r", deltas)
    return live
