import logging

from ...application.ports.sms_sender import SMSSender

logger = logging.getLogger(__name__)


class ConsoleSMSSender(SMSSender):
    """Development sender: writes the SMS to the log instead of delivering it."""

    async def send(self, phone: str, message: str) -> None:
        logger.info(f"SMS to {phone}: {message}")
