import json

import pytest

from world.node import (
    DirectoryNode, FileExtension, FileNode, NodeType, PackageContent, PackageType,
    node_from_dict, node_to_dict, walk,
)
from world.tree_generator import generate_world


def test_file_node_rejects_folder_type() -> None:
    with pytest.raises(ValueError):
        FileNode(node_id="x", name="x", node_type=NodeType.FOLDER)


def test_display_names() -> None:
    folder = DirectoryNode(node_id="d", name="Core_1")
    exe = FileNode(node_id="e", name="ascend", extension=FileExtension.EXE)

    assert folder.display_name == "Core_1"
    assert exe.display_name == "ascend.exe"
    assert folder.is_directory and not exe.is_directory


def test_add_and_remove_child() -> None:
    parent = DirectoryNode(node_id="p", name="p")
    child = FileNode(node_id="c", name="c")

    parent.add_child(child)

    assert child.parent_id == "p"
    assert parent.remove_child("c") is child
    assert parent.remove_child("c") is None


def test_boundary_shape_uses_camel_case_and_children_only_on_folders() -> None:
    root = DirectoryNode(node_id="root", name="Root", is_winning_path=True)
    root.add_child(FileNode(
        node_id="pkg", name="supply_1", node_type=NodeType.PACKAGE, extension=FileExtension.PKG,
        package_content=PackageContent(PackageType.BOOST, 2000, 3),
    ))

    payload = node_to_dict(root)
    leaf = payload["children"][0]

    assert payload["type"] == "FOLDER"
    assert payload["parentId"] is None
    assert payload["isWinningPath"] is True
    assert "children" not in leaf
    assert leaf["parentId"] == "root"
    assert leaf["extension"] == "pkg"
    assert leaf["packageContent"] == {"type": "BOOST", "value": 2000, "multiplier": 3}


def test_generated_tree_survives_json() -> None:
    root = generate_world(2, 77)

    restored = node_from_dict(json.loads(json.dumps(node_to_dict(root))))

    assert restored == root
    assert sum(1 for _ in walk(restored)) == sum(1 for _ in walk(root))
