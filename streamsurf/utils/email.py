import logging
from typing import Optional

import requests

from streamsurf.core.config import settings
from streamsurf.core.errors import UpstreamError

logger = logging.getLogger(__name__)


OTP_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background:#000; color:#fff;">
    <div style="max-width:600px; margin:0 auto; padding:32px;">
      <h1 style="letter-spacing:3px; text-transform:uppercase;">{app_name}</h1>
      <p>Hello {username},</p>
      <p>Use the code below to reset your password:</p>
      <div style="font-size:36px; font-weight:bold; letter-spacing:8px; text-align:center; padding:20px;">
        {otp}
      </div>
      <p style="color:#a1a1aa;">This code expires in {ttl_minutes} minutes.
      If you did not request a password reset, you can ignore this email.</p>
    </div>
  </body>
</html>
"""


class EmailSender:
    """
    Client du fournisseur d'email transactionnel (API HTTP Brevo).
    Sans clé d'API (dev/test), le message n'est pas envoyé ; le code n'apparaît qu'au niveau DEBUG.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender_name: Optional[str] = None,
        sender_address: Optional[str] = None,
        timeout: Optional[int] = None,
        http: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.BREVO_API_KEY
        self.api_url = api_url or settings.BREVO_API_URL
        self.sender_name = sender_name or settings.EMAIL_SENDER_NAME
        self.sender_address = sender_address or settings.EMAIL_SENDER_ADDRESS
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    def send_otp(self, *, email: str, otp: str, username: str) -> None:
        if not self.api_key:
            if settings.ENV == "prod":
                logger.error("BREVO_API_KEY not set, cannot send OTP email")
                raise UpstreamError("Email provider is not configured")
            logger.warning("BREVO_API_KEY not set, OTP email to %s not sent", email)
            logger.debug("Unsent OTP for %s: %s", email, otp)
            return

        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_address},
            "to": [{"email": email, "name": username}],
            "subject": f"Password Reset OTP - {self.sender_name}",
            "htmlContent": OTP_EMAIL_TEMPLATE.format(
                app_name=self.sender_name,
                username=username,
                otp=otp,
                ttl_minutes=settings.OTP_TTL_MINUTES,
            ),
        }
        headers = {"api-key": self.api_key, "accept": "application/json", "content-type": "application/json"}
        try:
            response = self.http.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Failed to send OTP email to %s: %s", email, e)
            raise UpstreamError("Failed to send email. Please try again.") from e

        logger.info("OTP email sent to %s", email)
