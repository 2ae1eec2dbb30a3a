import asyncio

import pytest

from agriconnect.infrastructure.otp.sweeper import start_otp_sweeper, stop_otp_sweeper


class CountingStore:
    def __init__(self):
        self.sweeps = 0

    def sweep_expired(self):
        self.sweeps += 1
        if self.sweeps == 1:
            raise RuntimeError("transient")
        return 1


@pytest.mark.asyncio
async def test_sweeper_keeps_running_after_errors_and_stops():
    store = CountingStore()
    task = start_otp_sweeper(store, interval_seconds=0.01)
    await asyncio.sleep(0.1)
    await stop_otp_sweeper(task)
    assert store.sweeps >= 2
    assert task.cancelled()
