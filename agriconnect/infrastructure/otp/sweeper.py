import asyncio
import logging

from ...application.ports.otp_store import OTPStore

logger = logging.getLogger(__name__)


async def sweep_expired_otps_forever(store: OTPStore, interval_seconds: float) -> None:
    """Periodically drop expired OTP entries until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = store.sweep_expired()
            if removed:
                logger.info(f"Swept {removed} expired OTP entries")
        except Exception as e:
            logger.error(f"Error sweeping expired OTPs: {e}")


def start_otp_sweeper(store: OTPStore, interval_seconds: float) -> asyncio.Task:
    return asyncio.create_task(sweep_expired_otps_forever(store, interval_seconds), name="otp-sweeper")


async def stop_otp_sweeper(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
