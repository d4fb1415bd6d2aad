"""
Twilio notification sender (WhatsApp + SMS)
"""
import logging
import re
from typing import Optional

import requests
from fastapi.concurrency import run_in_threadpool
from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from services.errors import DeliveryError

logger = logging.getLogger(__name__)


def normalize_number(number: str) -> str:
    """Strip everything but digits; a deliverable number has exactly 10."""
    digits = re.sub(r"\D", "", number or "")
    if len(digits) != 10:
        raise DeliveryError("Invalid mobile number")
    return digits


class NotificationSender:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        sms_from: str,
        whatsapp_from: str = "",
        default_country_code: str = "+91",
        timeout: float = 10.0,
        client=None,
    ):
        self.account_sid = account_sid
        self._auth_token = auth_token
        self.sms_from = sms_from
        self.whatsapp_from = whatsapp_from
        self.default_country_code = default_country_code
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        # Built on first send; Twilio refuses to construct without credentials
        if self._client is None:
            self._client = Client(
                self.account_sid,
                self._auth_token,
                http_client=TwilioHttpClient(timeout=self.timeout),
            )
        return self._client

    def _recipient(self, number: str, country_code: Optional[str]) -> str:
        return f"{country_code or self.default_country_code}{normalize_number(number)}"

    async def _create(self, body: str, from_: str, to: str) -> str:
        try:
            client = self.client
            message = await run_in_threadpool(
                client.messages.create, body=body, from_=from_, to=to
            )
        except (TwilioException, requests.RequestException) as e:
            raise DeliveryError(f"Provider rejected message to {to}: {e}") from e
        logger.info("Message %s queued for %s", message.sid, to)
        return message.sid

    async def send(self, number: str, message: str, country_code: Optional[str] = None) -> str:
        """WhatsApp message. Falls back to the SMS sender id when no WhatsApp sender is set."""
        to = self._recipient(number, country_code)
        sender = self.whatsapp_from or self.sms_from
        if self.whatsapp_from:
            to = f"whatsapp:{to}"
            if not sender.startswith("whatsapp:"):
                sender = f"whatsapp:{sender}"
        return await self._create(message, sender, to)

    async def send_notice(self, number: str, message: str, country_code: Optional[str] = None) -> str:
        """Plain SMS."""
        to = self._recipient(number, country_code)
        return await self._create(message, self.sms_from, to)
