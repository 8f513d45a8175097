from __future__ import annotations

import asyncio
import contextlib
import logging
import select
import signal
import sys
from collections.abc import Iterator

from .config import KEYPRESS_POLL_SECONDS

logger = logging.getLogger(__name__)


def key_available() -> bool:
    if sys.platform == "win32":
        import msvcrt

        return bool(msvcrt.kbhit())
    if not sys.stdin.isatty():
        return False
    ready, _, _ = select.select([sys.stdin], [], [], 0)
    return bool(ready)


def consume_key() -> None:
    if sys.platform == "win32":
        import msvcrt

        msvcrt.getch()
        return
    sys.stdin.read(1)


@contextlib.contextmanager
def cbreak_stdin() -> Iterator[None]:
    """Deliver single key presses without waiting for Enter (POSIX ttys only)."""
    if sys.platform == "win32" or not sys.stdin.isatty():
        yield
        return
    import termios
    import tty

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


async def stop_on_keypress(
    stop: asyncio.Event, poll_seconds: float = KEYPRESS_POLL_SECONDS
) -> None:
    while not stop.is_set():
        await asyncio.sleep(poll_seconds)
        if key_available():
            consume_key()
            logger.debug("Key press received, stopping")
            stop.set()


def install_signal_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except (NotImplementedError, RuntimeError):
            # not supported by the Windows event loop
            logger.debug("Signal handler for %s unavailable", signum)
