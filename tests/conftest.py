"""
Shared pytest fixtures for Ascend OS tests.

Provides:
  - A clean event queue per test
  - A SaveStore rooted in the test's tmp_path
  - A booted GameSession with a fixed seed
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import the game modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from systems.event_queue import event_queue  # noqa: E402
from systems.session import GameSession  # noqa: E402
from systems.session_state import SessionState  # noqa: E402
from systems.storage import SaveMode, SaveStore  # noqa: E402
from world.node import (  # noqa: E402
    DirectoryNode, FileExtension, FileNode, NodeType, PackageContent, PackageType,
)
from world.rng import SeededRandom  # noqa: E402

TEST_SEED = 424242


class ScriptedRandom(SeededRandom):
    """Replays a fixed list of draws, then returns 0.0 once they run out."""

    def __init__(self, draws: list[float]) -> None:
        super().__init__(0)
        self._draws = list(draws)

    def random(self) -> float:
        return self._draws.pop(0) if self._draws else 0.0


@pytest.fixture(autouse=True)
def _reset_event_queue():
    """Drop pending events and subscribers between tests."""
    event_queue.clear()
    yield
    event_queue.clear()


@pytest.fixture()
def store(tmp_path: Path) -> SaveStore:
    return SaveStore(saves_dir=str(tmp_path / "saves"), fmt="yaml")


@pytest.fixture()
def session(store: SaveStore) -> GameSession:
    """A NORMAL-slot session booted on ``TEST_SEED``, iteration 1."""
    store.save(SessionState(run_seed=TEST_SEED), SaveMode.NORMAL)
    game = GameSession(store, mode=SaveMode.NORMAL)
    game.boot()
    return game


# ---------------------------------------------------------------------------
# Hand-built world
# ---------------------------------------------------------------------------

class FixedWorldGenerator:
    """Stands in for ``WorldGenerator`` with a small known tree.

    Layout (ids)::

        root
        ├── dir_0_<it>            winning folder "Core_1"
        │   ├── ascend_exe_<it>   goal
        │   └── side_dir          folder "Side_2"
        ├── pkg_1                 supply_1.pkg, 5 MB data
        ├── mod_1                 hw_mod_1.mod, +3 KB/tick power
        ├── txt_1                 notes.txt
        └── junk_1                folder "Junk_100"
            └── junk_txt_1        old.txt
    """

    def generate(self, params):
        it = params.iteration
        root = DirectoryNode(node_id="root", name="Root", is_winning_path=True)

        path = DirectoryNode(node_id=f"dir_0_{it}", name="Core_1", is_winning_path=True)
        root.add_child(path)
        path.add_child(FileNode(
            node_id=f"ascend_exe_{it}", name="ascend", extension=FileExtension.EXE,
            content="EXECUTE_ASCENSION", is_winning_path=True,
        ))
        path.add_child(DirectoryNode(node_id="side_dir", name="Side_2"))

        root.add_child(FileNode(
            node_id="pkg_1", name="supply_1", node_type=NodeType.PACKAGE,
            extension=FileExtension.PKG,
            package_content=PackageContent(PackageType.DATA, 5 * 1024),
        ))
        root.add_child(FileNode(
            node_id="mod_1", name="hw_mod_1", node_type=NodeType.MODULE,
            extension=FileExtension.MOD,
            package_content=PackageContent(PackageType.AUTOMINER_POWER, 3),
        ))
        root.add_child(FileNode(node_id="txt_1", name="notes", content="hello\nworld\n"))

        junk = DirectoryNode(node_id="junk_1", name="Junk_100")
        root.add_child(junk)
        junk.add_child(FileNode(node_id="junk_txt_1", name="old"))
        return root


@pytest.fixture()
def fixed_session(store: SaveStore) -> GameSession:
    """A booted NORMAL-slot session over ``FixedWorldGenerator``."""
    store.save(SessionState(run_seed=TEST_SEED), SaveMode.NORMAL)
    game = GameSession(store, mode=SaveMode.NORMAL, generator=FixedWorldGenerator())
    game.boot()
    return game
