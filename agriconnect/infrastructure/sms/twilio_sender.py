import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from twilio.rest import Client
from twilio.http.http_client import TwilioHttpClient
from twilio.base.exceptions import TwilioException

from ...exceptions import SMSDeliveryError
from ...application.ports.sms_sender import SMSSender

logger = logging.getLogger(__name__)


class TwilioSMSSender(SMSSender):
    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout_seconds: int = 10, client: Optional[Client] = None):
        if client is None:
            if not account_sid or not auth_token:
                raise RuntimeError("Twilio credentials not configured")
            # No retries: a failed send is reported and the user resends
            http_client = TwilioHttpClient(timeout=timeout_seconds, max_retries=None)
            client = Client(account_sid, auth_token, http_client=http_client)
        if not from_number:
            raise RuntimeError("TWILIO_PHONE_NUMBER not configured")
        self.client = client
        self.from_number = from_number

    def _send_sync(self, phone: str, message: str) -> str:
        result = self.client.messages.create(body=message, from_=self.from_number, to=phone)
        return result.sid

    async def send(self, phone: str, message: str) -> None:
        try:
            sid = await run_in_threadpool(self._send_sync, phone, message)
        except TwilioException as e:
            logger.error(f"Twilio error sending SMS: {e}")
            raise SMSDeliveryError(str(e)) from e
        except OSError as e:
            logger.error(f"Network error sending SMS: {e}")
            raise SMSDeliveryError(str(e)) from e
        logger.info(f"SMS queued with Twilio, SID: {sid}")
