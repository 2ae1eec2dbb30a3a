import logging

import pytest

from agriconnect.infrastructure.sms.console_sender import ConsoleSMSSender


@pytest.mark.asyncio
async def test_console_sender_logs_without_keeping_messages(caplog):
    sender = ConsoleSMSSender()
    with caplog.at_level(logging.INFO, logger="agriconnect.infrastructure.sms.console_sender"):
        await sender.send("+919876543210", "Your code is 123456")

    assert "SMS to +919876543210" in caplog.text
    assert vars(sender) == {}
