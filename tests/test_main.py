import asyncio

import pytest

import main


class FlakySweeper:
    def __init__(self):
        self.calls = 0
        self.recovered = asyncio.Event()

    async def purge_expired(self):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("disk I/O error")
        self.recovered.set()
        return 0


@pytest.mark.asyncio
async def test_purge_loop_survives_sweep_errors(monkeypatch, caplog):
    sweeper = FlakySweeper()
    monkeypatch.setattr(main, "get_paste_service", lambda: sweeper)

    task = asyncio.create_task(main.purge_loop(0))
    await asyncio.wait_for(sweeper.recovered.wait(), timeout=5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert sweeper.calls >= 2
    assert "expired paste sweep failed" in caplog.text
