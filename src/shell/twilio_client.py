"""SMS and Voice Client via Twilio - Imperative Shell.

This module handles sending SMS messages and placing voice calls through
Twilio. All I/O is contained here; message formatting is in the core module.
"""

import logging
from dataclasses import dataclass

from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from src.core.config import TwilioCredentials


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


@dataclass
class DispatchResponse:
    """Response from one send attempt.

    Attributes:
        success: Whether Twilio accepted the message or call
        sid: Twilio message or call SID if successful
        error: Error message if failed
    """
    success: bool
    sid: str | None = None
    error: str | None = None


class TwilioClient:
    """Client for sending SMS and placing calls via Twilio.

    This is part of the imperative shell - it handles I/O.
    Sends never raise; every outcome is reported as a DispatchResponse.
    """

    def __init__(
        self,
        credentials: TwilioCredentials | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize Twilio client.

        Args:
            credentials: Twilio credentials (sends fail without them)
            timeout: Request timeout in seconds
        """
        self.credentials = credentials
        self.timeout = timeout
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        """Lazy initialization of the Twilio REST client."""
        if self._client is None:
            self._client = Client(
                self.credentials.account_sid,
                self.credentials.auth_token,
                http_client=TwilioHttpClient(timeout=self.timeout),
            )
        return self._client

    def _check_ready(self, to_number: str) -> str | None:
        """Return an error message if a send cannot be attempted."""
        if self.credentials is None or not self.credentials.complete:
            return "Missing Twilio credentials (account_sid/auth_token/from_number)"
        if not to_number.strip():
            return "Missing recipient phone number"
        return None

    def send_sms(self, to_number: str, body: str) -> DispatchResponse:
        """Send an SMS.

        This method performs HTTP I/O.

        Args:
            to_number: Recipient phone number (E.164)
            body: Message text

        Returns:
            DispatchResponse indicating success or failure
        """
        error = self._check_ready(to_number)
        if error:
            logger.error("Cannot send SMS to %s: %s", to_number, error)
            return DispatchResponse(success=False, error=error)

        logger.info("Sending SMS to %s via Twilio", to_number)

        try:
            message = self.client.messages.create(
                body=body,
                from_=self.credentials.from_number.strip(),
                to=to_number.strip(),
            )

            logger.info("SMS sent: %s", message.sid)
            return DispatchResponse(success=True, sid=message.sid)

        except TwilioRestException as e:
            logger.error("Twilio API error: %s", str(e))
            return DispatchResponse(
                success=False,
                error=f"Twilio error: {e.msg}",
            )
        except Exception as e:
            logger.error("SMS send failed: %s", str(e))
            return DispatchResponse(success=False, error=str(e))

    def send_call(self, to_number: str, twiml_url: str) -> DispatchResponse:
        """Place a voice call that reads the script served at twiml_url.

        This method performs HTTP I/O.

        Args:
            to_number: Recipient phone number (E.164)
            twiml_url: Public URL returning the TwiML call script

        Returns:
            DispatchResponse indicating success or failure
        """
        error = self._check_ready(to_number)
        if error:
            logger.error("Cannot call %s: %s", to_number, error)
            return DispatchResponse(success=False, error=error)

        logger.info("Placing call to %s via Twilio", to_number)

        try:
            call = self.client.calls.create(
                to=to_number.strip(),
                from_=self.credentials.from_number.strip(),
                url=twiml_url,
            )

            logger.info("Call placed: %s", call.sid)
            return DispatchResponse(success=True, sid=call.sid)

        except TwilioRestException as e:
            logger.error("Twilio API error: %s", str(e))
            return DispatchResponse(
                success=False,
                error=f"Twilio error: {e.msg}",
            )
        except Exception as e:
            logger.error("Call failed: %s", str(e))
            return DispatchResponse(success=False, error=str(e))
