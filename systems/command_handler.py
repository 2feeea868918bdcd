"""
systems/command_handler.py
==========================
Parses text commands and dispatches them to the ``GameSession``.

Responsibilities
----------------
- Accept a raw input string from whatever shell hosts the session.
- Tokenise and validate it against the known command set.
- Call the matching session / economy method.
- Return a ``CommandResult`` the shell can print without knowing game logic.

Supported commands
------------------
    LS                       List the current directory.
    CD     <name>            Enter a folder (``..`` goes back).
    UP                       Go back one folder.
    ROOT                     Jump to the root.
    PWD                      Print the current path.
    OPEN   <name>            Open a file, package, module or folder.
    RENAME <name> <new>      Rename a node.
    MARK   <name>            Mark a node.
    UNMARK <name>            Unmark a node.
    TRACE                    Trace the signal in the current folder.
    AUTOMARK                 Toggle auto-mark.
    MINE                     Harvest data manually.
    UPGRADE                  Buy a click efficiency level.
    BOOST  <multiplier>      Toggle a banked boost.
    STATUS                   Show counters.
    ASCEND                   Ascend once the goal has been opened.
    HELP                     List commands.
    QUIT                     Request shutdown.

Names are matched against the current directory, with or without extension.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

import config
from systems.event_queue import EventType, event_queue
from systems.filesystem import FilesystemError
from systems.session import GameSession, OpenAction, TraceOutcome
from world.node import AnyNode, DirectoryNode, NodeType

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Command result
# ---------------------------------------------------------------------------

@dataclass
class CommandResult:
    """Return value from ``CommandHandler.execute()``.

    Parameters
    ----------
    success:
        Whether the command completed without error.
    lines:
        Text lines to display, in order.
    command:
        The normalised command verb.
    error:
        Human-readable error message if ``success`` is False.
    """

    success: bool
    lines:   list[str] = field(default_factory=list)
    command: str       = ""
    error:   str       = ""

    @classmethod
    def ok(cls, command: str, *lines: str) -> "CommandResult":
        return cls(success=True, lines=list(lines), command=command)

    @classmethod
    def fail(cls, command: str, error: str) -> "CommandResult":
        return cls(success=False, error=error, command=command, lines=[f"ERROR: {error}"])


def _format_size(kb: float) -> str:
    if kb >= 1024 * 1024:
        return f"{kb / (1024 * 1024):.2f} GB"
    if kb >= 1024:
        return f"{kb / 1024:.2f} MB"
    return f"{kb:.0f} KB"


def _describe(node: AnyNode) -> str:
    if isinstance(node, DirectoryNode):
        kind = "DIR"
    else:
        kind = node.node_type.name[:3]
    flags = ("*" if node.is_marked else " ") + ("~" if node.is_scanned else " ")
    return f"  {flags} {kind:<3}  {node.display_name}"


# ---------------------------------------------------------------------------
# Command handler
# ---------------------------------------------------------------------------

class CommandHandler:
    """Routes text commands to a booted ``GameSession``.

    Usage
    -----
        handler = CommandHandler(session)
        result  = handler.execute("open supply_412.pkg")
        for line in result.lines:
            print(line)
    """

    def __init__(self, session: GameSession) -> None:
        self._session = session
        self._dispatch: dict[str, Callable[[list[str]], CommandResult]] = {
            "LS":       self._cmd_ls,
            "CD":       self._cmd_cd,
            "UP":       self._cmd_up,
            "ROOT":     self._cmd_root,
            "PWD":      self._cmd_pwd,
            "OPEN":     self._cmd_open,
            "RENAME":   self._cmd_rename,
            "MARK":     self._cmd_mark,
            "UNMARK":   self._cmd_unmark,
            "TRACE":    self._cmd_trace,
            "AUTOMARK": self._cmd_automark,
            "MINE":     self._cmd_mine,
            "UPGRADE":  self._cmd_upgrade,
            "BOOST":    self._cmd_boost,
            "STATUS":   self._cmd_status,
            "ASCEND":   self._cmd_ascend,
            "HELP":     self._cmd_help,
            "QUIT":     self._cmd_quit,
        }

    def execute(self, raw_input: str) -> CommandResult:
        """Parse *raw_input* and dispatch to the matching command."""
        tokens = raw_input.strip().split()
        if not tokens:
            return CommandResult.fail("", "No command entered.")

        verb, args = tokens[0].upper(), tokens[1:]
        handler = self._dispatch.get(verb)
        if handler is None:
            return CommandResult.fail(verb, f"Unknown command: {verb!r}. Type HELP for a list.")

        try:
            return handler(args)
        except FilesystemError as exc:
            return CommandResult.fail(verb, str(exc))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, verb: str, args: list[str]) -> AnyNode:
        if not args:
            raise FilesystemError(f"Usage: {verb} <name>")
        node = self._session.filesystem.child_by_name(args[0])
        if node is None:
            raise FilesystemError(f"No such item: {args[0]!r}")
        return node

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _cmd_ls(self, args: list[str]) -> CommandResult:
        fs = self._session.filesystem
        lines = [fs.path_to_cwd()]
        lines.extend(_describe(child) for child in fs.list_directory())
        if len(lines) == 1:
            lines.append("  (empty)")
        return CommandResult.ok("LS", *lines)

    def _cmd_cd(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult.fail("CD", "Usage: CD <name>")
        self._session.navigate(args[0])
        return CommandResult.ok("CD", self._session.filesystem.path_to_cwd())

    def _cmd_up(self, args: list[str]) -> CommandResult:
        self._session.filesystem.go_up()
        return CommandResult.ok("UP", self._session.filesystem.path_to_cwd())

    def _cmd_root(self, args: list[str]) -> CommandResult:
        self._session.filesystem.go_root()
        return CommandResult.ok("ROOT", "/")

    def _cmd_pwd(self, args: list[str]) -> CommandResult:
        return CommandResult.ok("PWD", self._session.filesystem.path_to_cwd())

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _cmd_open(self, args: list[str]) -> CommandResult:
        node   = self._resolve("OPEN", args)
        result = self._session.open_node(node.node_id)

        if result.action is OpenAction.NAVIGATE:
            return CommandResult.ok("OPEN", self._session.filesystem.path_to_cwd())
        if result.action is OpenAction.READ:
            return CommandResult.ok("OPEN", *result.message.rstrip("\n").split("\n"))
        if result.action is OpenAction.LOOT:
            header = "MODULE INSTALLED" if result.node.node_type is NodeType.MODULE else "PACKAGE DECRYPTED"
            return CommandResult.ok("OPEN", f"{header}: {result.message}")
        if result.action is OpenAction.ASCEND:
            return CommandResult.ok("OPEN", "ASCENSION PROTOCOL READY. Type ASCEND to proceed.")
        return CommandResult.fail("OPEN", f"Cannot open {node.display_name!r}.")

    def _cmd_rename(self, args: list[str]) -> CommandResult:
        if len(args) < 2:
            return CommandResult.fail("RENAME", "Usage: RENAME <name> <new name>")
        node = self._resolve("RENAME", args)
        new_name = " ".join(args[1:])
        if self._session.rename(node.node_id, new_name) is None:
            return CommandResult.fail("RENAME", "Name cannot be empty.")
        return CommandResult.ok("RENAME", f"Renamed to {node.display_name}")

    def _cmd_mark(self, args: list[str]) -> CommandResult:
        node = self._resolve("MARK", args)
        self._session.set_mark(node.node_id, True)
        return CommandResult.ok("MARK", f"Marked {node.display_name}")

    def _cmd_unmark(self, args: list[str]) -> CommandResult:
        node = self._resolve("UNMARK", args)
        self._session.set_mark(node.node_id, False)
        return CommandResult.ok("UNMARK", f"Unmarked {node.display_name}")

    def _cmd_trace(self, args: list[str]) -> CommandResult:
        result = self._session.trace_signal()
        if result.outcome is TraceOutcome.INSUFFICIENT_DATA:
            return CommandResult.fail("TRACE", f"Trace needs {_format_size(config.SCAN_COST)}.")
        if result.outcome is TraceOutcome.ALREADY_ISOLATED:
            return CommandResult.ok(
                "TRACE",
                "SIGNAL ALREADY ISOLATED.",
                f"REDUNDANT SCAN PENALTY: -{_format_size(result.penalty)}",
            )
        if result.outcome is TraceOutcome.DEAD_END:
            return CommandResult.ok("TRACE", "No signal trace detected. Dead end.")
        return CommandResult.ok("TRACE", f"Signal isolated: {result.node.display_name}")

    # ------------------------------------------------------------------
    # Economy
    # ------------------------------------------------------------------

    def _cmd_automark(self, args: list[str]) -> CommandResult:
        enabled = self._session.economy.toggle_auto_mark()
        self._session.autosave()
        count = self._session.state.economy.auto_mark_count
        return CommandResult.ok("AUTOMARK", f"Auto-mark {'ON' if enabled else 'OFF'} ({count} left)")

    def _cmd_mine(self, args: list[str]) -> CommandResult:
        gain = self._session.economy.harvest()
        self._session.autosave()
        return CommandResult.ok("MINE", f"+{_format_size(gain)}")

    def _cmd_upgrade(self, args: list[str]) -> CommandResult:
        eco  = self._session.economy
        cost = eco.upgrade_cost
        if not eco.purchase_upgrade():
            return CommandResult.fail("UPGRADE", f"Upgrade costs {_format_size(cost)}.")
        self._session.autosave()
        return CommandResult.ok("UPGRADE", f"Efficiency level {eco.state.efficiency_level}")

    def _cmd_boost(self, args: list[str]) -> CommandResult:
        if not args or not args[0].isdigit():
            return CommandResult.fail("BOOST", "Usage: BOOST <multiplier>")
        active = self._session.economy.toggle_boost(int(args[0]))
        self._session.autosave()
        return CommandResult.ok("BOOST", f"Active boost: x{active}" if active else "Boost off")

    def _cmd_status(self, args: list[str]) -> CommandResult:
        state = self._session.state
        eco   = state.economy
        bank  = ", ".join(f"x{m}: {ms / 1000:.1f}s" for m, ms in sorted(eco.boost_bank.items()))
        return CommandResult.ok(
            "STATUS",
            f"  Iteration:  {state.current_iteration} (best {state.high_score})",
            f"  Data:       {_format_size(eco.data_kb)}",
            f"  Click:      {_format_size(self._session.economy.click_value)}",
            f"  AutoMiner:  {eco.auto_miner_data} KB / {eco.auto_miner_interval} ms",
            f"  AutoMark:   {'ON' if eco.is_auto_mark_enabled else 'OFF'} ({eco.auto_mark_count} left)",
            f"  Boosts:     {bank}",
            f"  Save slot:  {self._session.mode.value}",
        )

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    def _cmd_ascend(self, args: list[str]) -> CommandResult:
        if not self._session.ascend():
            return CommandResult.fail("ASCEND", "Locate and open ascend.exe first.")
        return CommandResult.ok("ASCEND", f"ITERATION {self._session.state.current_iteration} ONLINE.")

    def _cmd_help(self, args: list[str]) -> CommandResult:
        return CommandResult.ok("HELP", "Commands: " + " ".join(sorted(self._dispatch)))

    def _cmd_quit(self, args: list[str]) -> CommandResult:
        event_queue.post_immediate(EventType.QUIT_REQUESTED, source="CommandHandler")
        return CommandResult.ok("QUIT", "Shutting down.")
