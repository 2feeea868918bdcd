"""
main.py
=======
Entry point for Ascend OS.

Terminal run:
    python main.py

Commands are read from stdin one line at a time and routed through
``CommandHandler``.  Timers (boosts, auto-miner) advance by the wall-clock
time elapsed between commands.

No src/ wrapper; run from the project root directly.
"""

from __future__ import annotations

import asyncio
import logging
import time

import config
from systems.command_handler import CommandHandler
from systems.event_queue import Event, EventType, event_queue
from systems.session import GameSession
from systems.storage import SaveStore

logging.basicConfig(
    level  = logging.WARNING,
    format = "%(levelname)s %(name)s: %(message)s",
)

PROMPT = "> "


def _print_event(event: Event) -> None:
    payload = event.payload
    if event.type is EventType.BOOST_EXPIRED:
        print(f"[boost x{payload['multiplier']} expired]")
    elif event.type is EventType.AUTOMARK_USED:
        print(f"[auto-marked, {payload['remaining']} left]")
    elif event.type is EventType.SAVE_FAILED:
        print(f"[save failed: {payload['error']}]")
    elif event.type is EventType.ASCENSION_COMPLETE:
        print(f"[high score: iteration {payload['high_score']}]")


async def main() -> None:
    """Read-eval loop; returns on QUIT or end of input."""
    store   = SaveStore()
    session = GameSession(store)
    session.boot()
    handler = CommandHandler(session)

    running = True

    def _on_quit(event: Event) -> None:
        nonlocal running
        running = False

    event_queue.subscribe(EventType.QUIT_REQUESTED, _on_quit)
    for event_type in (EventType.BOOST_EXPIRED, EventType.AUTOMARK_USED,
                       EventType.SAVE_FAILED, EventType.ASCENSION_COMPLETE):
        event_queue.subscribe(event_type, _print_event)

    print(f"{config.APP_NAME} // ITERATION {session.state.current_iteration}. Type HELP.")
    last = time.monotonic()

    while running:
        try:
            line = await asyncio.to_thread(input, PROMPT)
        except EOFError:
            break

        now  = time.monotonic()
        session.tick(int((now - last) * 1000))
        last = now

        result = handler.execute(line)
        for text in result.lines:
            print(text)
        event_queue.flush()

    session.autosave()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
