import logging
import requests

from app.core.errors import ConfigurationError

logger = logging.getLogger("safaripay.email")

RESEND_URL = "https://api.resend.com/emails"


class ResendMailer:
    """
    Sends one transactional email per call through the Resend API.
    Raises on any failure; callers decide whether that matters.
    """

    def __init__(self, api_key: str, sender: str, timeout: float = 10.0):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> str:
        if not self.api_key:
            logger.error("RESEND_API_KEY not found in settings")
            raise ConfigurationError("Email provider is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html
        }

        response = requests.post(RESEND_URL, json=payload, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        message_id = response.json().get("id", "")
        logger.info(f"Email sent successfully to {to} | Subject: {subject}")
        return message_id
