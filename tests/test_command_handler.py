import pytest

from systems.command_handler import CommandHandler
from systems.event_queue import EventType, event_queue
from systems.session import GameSession


@pytest.fixture()
def handler(fixed_session: GameSession) -> CommandHandler:
    return CommandHandler(fixed_session)


def test_empty_and_unknown_commands_fail(handler: CommandHandler) -> None:
    assert handler.execute("   ").success is False

    result = handler.execute("dig")
    assert result.success is False
    assert result.command == "DIG"
    assert result.lines[0].startswith("ERROR:")


def test_ls_lists_current_directory(handler: CommandHandler) -> None:
    result = handler.execute("ls")

    assert result.success
    assert result.lines[0] == "/"
    listing = "\n".join(result.lines[1:])
    assert "supply_1.pkg" in listing
    assert "Core_1" in listing


def test_cd_up_root_and_pwd(handler: CommandHandler) -> None:
    assert handler.execute("cd Core_1").lines == ["/Core_1"]
    assert handler.execute("CD Side_2").lines == ["/Core_1/Side_2"]
    assert handler.execute("pwd").lines == ["/Core_1/Side_2"]
    assert handler.execute("up").lines == ["/Core_1"]
    assert handler.execute("root").lines == ["/"]


def test_navigation_errors_become_failed_results(handler: CommandHandler) -> None:
    assert handler.execute("cd").success is False
    assert handler.execute("cd Nowhere").success is False
    assert handler.execute("cd notes.txt").success is False
    assert handler.execute("up").success is False


def test_open_text_file_prints_lines(handler: CommandHandler) -> None:
    result = handler.execute("open notes.txt")

    assert result.lines == ["hello", "world"]


def test_open_package_reports_loot(handler: CommandHandler, fixed_session: GameSession) -> None:
    result = handler.execute("open supply_1.pkg")

    assert result.lines == ["PACKAGE DECRYPTED: +5.0 MB Data"]
    assert handler.execute("open supply_1.pkg").success is False
    assert fixed_session.state.economy.data_kb == 5 * 1024


def test_open_module_reports_install(handler: CommandHandler) -> None:
    result = handler.execute("open hw_mod_1")

    assert result.lines[0].startswith("MODULE INSTALLED:")


def test_rename_mark_unmark(handler: CommandHandler, fixed_session: GameSession) -> None:
    assert handler.execute("rename notes.txt my notes").lines == ["Renamed to my notes.txt"]
    assert handler.execute("mark Junk_100").success
    assert fixed_session.filesystem.get_node("junk_1").is_marked
    assert handler.execute("unmark Junk_100").success
    assert not fixed_session.filesystem.get_node("junk_1").is_marked
    assert handler.execute("rename Junk_100").success is False


def test_trace_outcomes(handler: CommandHandler, fixed_session: GameSession) -> None:
    assert handler.execute("trace").success is False

    fixed_session.state.economy.data_kb = 100_000
    assert handler.execute("trace").lines == ["Signal isolated: Core_1"]
    assert handler.execute("trace").lines[0] == "SIGNAL ALREADY ISOLATED."


def test_economy_commands(handler: CommandHandler, fixed_session: GameSession) -> None:
    eco = fixed_session.state.economy

    assert handler.execute("mine").lines == ["+50 KB"]
    assert eco.data_kb == 50

    assert handler.execute("upgrade").success is False
    eco.data_kb = 20_000
    assert handler.execute("upgrade").lines == ["Efficiency level 1"]

    assert handler.execute("automark").lines == ["Auto-mark ON (0 left)"]

    assert handler.execute("boost x").success is False
    eco.boost_bank[3] = 2000
    assert handler.execute("boost 3").lines == ["Active boost: x3"]
    assert handler.execute("boost 3").lines == ["Boost off"]


def test_status_shows_counters(handler: CommandHandler) -> None:
    lines = handler.execute("status").lines

    assert any("Iteration:  1" in line for line in lines)
    assert any("Save slot:  NORMAL" in line for line in lines)


def test_ascend_flow(handler: CommandHandler, fixed_session: GameSession) -> None:
    assert handler.execute("ascend").success is False

    handler.execute("cd Core_1")
    assert handler.execute("open ascend.exe").lines[0].startswith("ASCENSION PROTOCOL READY")
    assert handler.execute("ascend").lines == ["ITERATION 2 ONLINE."]
    assert fixed_session.state.current_iteration == 2


def test_help_and_quit(handler: CommandHandler) -> None:
    quits = []
    event_queue.subscribe(EventType.QUIT_REQUESTED, quits.append)

    assert "OPEN" in handler.execute("help").lines[0]
    assert handler.execute("quit").success
    event_queue.flush()

    assert len(quits) == 1
