import pytest

import config
from conftest import ScriptedRandom
from world.node import DirectoryNode, FileExtension, FileNode, NodeType, walk
from world.rng import SeededRandom
from world.tree_generator import GenerationParameters, JunkGenerator, WorldGenerator, generate_world


def _winning_nodes(root: DirectoryNode) -> list:
    return [n for n in walk(root) if n.is_winning_path]


def _depth_of(node_id: str, root: DirectoryNode) -> int:
    parents = {n.node_id: n.parent_id for n in walk(root)}
    depth = 0
    while parents[node_id] is not None:
        node_id = parents[node_id]
        depth += 1
    return depth


def test_same_parameters_give_identical_trees() -> None:
    assert generate_world(2, 9001) == generate_world(2, 9001)


def test_generator_instance_can_be_reused_without_leaking_state() -> None:
    gen = WorldGenerator()
    first = gen.generate(GenerationParameters(1, 555))
    gen.generate(GenerationParameters(3, 777))

    assert gen.generate(GenerationParameters(1, 555)) == first


def test_different_seeds_give_different_trees() -> None:
    assert generate_world(1, 1) != generate_world(1, 2)


def test_seed_combines_run_seed_and_iteration() -> None:
    params = GenerationParameters(iteration=3, run_seed=100)

    assert params.seed == 100 + 3 * config.ITERATION_SEED_STRIDE


def test_iteration_below_one_is_rejected() -> None:
    with pytest.raises(ValueError):
        GenerationParameters(iteration=0, run_seed=1)


@pytest.mark.parametrize("iteration", [1, 2, 4])
def test_winning_path_is_a_folder_chain_ending_in_the_goal(iteration: int) -> None:
    params = GenerationParameters(iteration, 31337)
    root = WorldGenerator().generate(params)

    winning = _winning_nodes(root)
    leaves = [n for n in winning if isinstance(n, FileNode)]
    folders = [n for n in winning if isinstance(n, DirectoryNode)]

    assert len(leaves) == 1
    goal = leaves[0]
    assert goal.node_id == f"ascend_exe_{iteration}"
    assert goal.extension is FileExtension.EXE
    assert goal.content == config.GOAL_SENTINEL
    assert len(folders) == params.target_depth + 1
    assert _depth_of(goal.node_id, root) == params.target_depth + 1

    # every winning folder has exactly one winning child
    for folder in folders:
        assert sum(1 for c in folder.children if c.is_winning_path) == 1


def test_target_depth_formula() -> None:
    assert GenerationParameters(1, 0).target_depth == 6
    assert GenerationParameters(5, 0).target_depth == 9
    assert GenerationParameters(10, 0).target_depth == 13


def test_scaling_is_capped_but_ids_use_real_iteration() -> None:
    params = GenerationParameters(config.MAX_SCALING_ITERATION + 30, 0)

    assert params.scaling_iteration == config.MAX_SCALING_ITERATION
    assert params.target_depth == GenerationParameters(config.MAX_SCALING_ITERATION, 0).target_depth


def test_root_goal_mode_puts_goal_directly_under_root() -> None:
    root = generate_world(3, 42, force_root_goal=True)

    winning = _winning_nodes(root)

    assert [n.node_id for n in winning if isinstance(n, DirectoryNode)] == [config.ROOT_ID]
    goal = next(c for c in root.children if c.is_winning_path)
    assert goal.node_id == "ascend_exe_3"
    assert not any(n.node_id.startswith("dir_") for n in walk(root))


def test_ids_are_unique_and_parent_ids_match() -> None:
    root = generate_world(3, 8080)

    ids = [n.node_id for n in walk(root)]
    assert len(ids) == len(set(ids))

    assert root.parent_id is None
    assert root.node_id == config.ROOT_ID
    for node in walk(root):
        if isinstance(node, DirectoryNode):
            for child in node.children:
                assert child.parent_id == node.node_id


def test_only_folders_have_children_and_loot_has_content() -> None:
    root = generate_world(2, 17)

    for node in walk(root):
        if isinstance(node, DirectoryNode):
            assert node.node_type is NodeType.FOLDER
        elif node.node_type in (NodeType.PACKAGE, NodeType.MODULE):
            assert node.package_content is not None
        else:
            assert node.package_content is None


def test_off_path_nodes_are_not_winning() -> None:
    root = generate_world(2, 2718)

    path_ids = {config.ROOT_ID, "ascend_exe_2"} | {f"dir_{d}_2" for d in range(7)}
    for node in walk(root):
        assert node.is_winning_path == (node.node_id in path_ids)


def test_junk_generator_at_depth_limit_adds_only_text_files() -> None:
    folder = DirectoryNode(node_id="junk", name="junk")
    JunkGenerator(SeededRandom(4), iteration=1, scaling_iteration=1).generate(folder, 2, 2)

    assert 1 <= len(folder.children) <= 3
    for i, child in enumerate(folder.children):
        assert isinstance(child, FileNode)
        assert child.extension is FileExtension.TXT
        assert child.node_id == f"junk_file_leaf_junk_{i}"


def test_junk_generator_respects_max_depth() -> None:
    folder = DirectoryNode(node_id="junk", name="junk")
    JunkGenerator(SeededRandom(12), iteration=1, scaling_iteration=1).generate(folder, 0, 2)

    for node in walk(folder):
        assert _depth_of(node.node_id, folder) <= 3


class _RecordingJunk:
    """Stands in for ``JunkGenerator`` and records where it was asked to fill."""

    def __init__(self) -> None:
        self.calls = []

    def generate(self, parent: DirectoryNode, current_depth: int, max_depth: int) -> None:
        self.calls.append((parent.node_id, current_depth, max_depth))


def test_junk_roll_thresholds() -> None:
    folder = DirectoryNode(node_id="junk", name="junk")
    rng = ScriptedRandom([
        0.34,                   # density randint(2, 4) -> 3
        0.885, 0.0, 0.0, 0.0,   # package: name, loot roll, value
        0.8851, 0.0, 0.0, 0.0,  # module: name, loot roll, value
        0.735, 0.35,            # neither loot, split 0.35 is under 0.4
    ])

    JunkGenerator(rng, iteration=1, scaling_iteration=1).generate(folder, 0, 2)

    package, module, text = folder.children
    assert package.node_type is NodeType.PACKAGE
    assert package.node_id == "pkg_junk_0"
    assert module.node_type is NodeType.MODULE
    assert module.node_id == "mod_junk_1"
    assert isinstance(text, FileNode)
    assert text.extension is FileExtension.TXT
    assert text.node_id == "junk_file_junk_2"


def test_path_distractor_roll_thresholds() -> None:
    node = DirectoryNode(node_id="root", name="root")
    junk = _RecordingJunk()
    rng = ScriptedRandom([
        0.0,                    # sibling count randint(3, 5) -> 3
        0.735, 0.35, 0.0, 0.0,  # split 0.35 is over 0.3: folder and its name
        0.885, 0.0, 0.0, 0.0,
        0.8851, 0.0, 0.0, 0.0,
    ])

    WorldGenerator(rng=rng)._add_distractors(node, GenerationParameters(1, 0), junk)

    folder, package, module = node.children
    assert isinstance(folder, DirectoryNode)
    assert folder.node_id == "junk_path_sib_root_0"
    assert junk.calls == [("junk_path_sib_root_0", 0, 2)]
    assert package.node_type is NodeType.PACKAGE
    assert package.node_id == "pkg_root_root_1"
    assert module.node_type is NodeType.MODULE
    assert module.node_id == "mod_root_root_2"


def test_path_distractor_split_of_exactly_030_is_a_text_file() -> None:
    node = DirectoryNode(node_id="root", name="root")
    junk = _RecordingJunk()

    WorldGenerator(rng=ScriptedRandom([0.0, 0.0, 0.30]))._add_distractors(
        node, GenerationParameters(1, 0), junk,
    )

    assert len(node.children) == 3
    for child in node.children:
        assert isinstance(child, FileNode)
        assert child.extension is FileExtension.TXT
    assert junk.calls == []
