from __future__ import annotations

import asyncio

from linewatch import terminal


def test_key_press_sets_stop(monkeypatch) -> None:
    consumed: list[bool] = []
    monkeypatch.setattr(terminal, "key_available", lambda: True)
    monkeypatch.setattr(terminal, "consume_key", lambda: consumed.append(True))

    async def _main() -> bool:
        stop = asyncio.Event()
        await asyncio.wait_for(terminal.stop_on_keypress(stop, poll_seconds=0), timeout=5)
        return stop.is_set()

    assert asyncio.run(_main())
    assert consumed == [True]


def test_no_key_leaves_stop_clear(monkeypatch) -> None:
    monkeypatch.setattr(terminal, "key_available", lambda: False)

    async def _main() -> bool:
        stop = asyncio.Event()
        task = asyncio.create_task(terminal.stop_on_keypress(stop, poll_seconds=0))
        await asyncio.sleep(0.02)
        still_running = not task.done()
        stop.set()
        await asyncio.wait_for(task, timeout=5)
        return still_running

    assert asyncio.run(_main())
