# core/notifications.py
import requests
from typing import Optional

from core.config import settings
from core.errors import UpstreamError
from core.logging_config import logger


MAILGUN_BASE_URLS = {
    "us": "https://api.mailgun.net/v3",
    "eu": "https://api.eu.mailgun.net/v3",
}


# -----------------------------------------------------
# 📧 Send email (Mailgun HTTP API)
# -----------------------------------------------------
class MailgunMailer:
    """
    Transactional email through the Mailgun messages endpoint.
    Raises UpstreamError(step="email_dispatch") when Mailgun refuses.
    """

    def __init__(
        self,
        domain: str,
        api_key: Optional[str],
        region: str = "us",
        from_name: str = "Asine Admin",
        timeout: int = 30,
    ):
        self.domain = domain
        self.api_key = api_key
        self.region = region if region in MAILGUN_BASE_URLS else "us"
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "MailgunMailer":
        return cls(
            domain=settings.MAILGUN_DOMAIN,
            api_key=settings.MAILGUN_API_KEY,
            region=settings.MAILGUN_REGION,
            from_name=settings.EMAIL_FROM_NAME,
        )

    @property
    def messages_url(self) -> str:
        return f"{MAILGUN_BASE_URLS[self.region]}/{self.domain}/messages"

    @property
    def sender(self) -> str:
        return f"{self.from_name} <noreply@{self.domain}>"

    def _check_credentials(self):
        if not self.api_key:
            raise UpstreamError(
                "email_dispatch",
                "Mailgun API key not configured. Set MAILGUN_API_KEY.",
            )
        # Public validation keys cannot send
        if self.api_key.startswith("pubkey-"):
            raise UpstreamError(
                "email_dispatch",
                "MAILGUN_API_KEY is a public key (pubkey-). Use the private sending key.",
            )

    def send(self, to: str, subject: str, html: str, text: str) -> dict:
        self._check_credentials()

        try:
            response = requests.post(
                self.messages_url,
                auth=("api", self.api_key),
                data={
                    "from": self.sender,
                    "to": to,
                    "subject": subject,
                    "html": html,
                    "text": text,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Mailgun request failed: {e}")
            raise UpstreamError("email_dispatch", f"Email service unreachable: {e}")

        if not response.ok:
            if response.status_code in (401, 403):
                message = (
                    f"Mailgun authentication failed ({response.status_code}). "
                    f"Check MAILGUN_API_KEY, MAILGUN_DOMAIN ({self.domain}) "
                    f"and MAILGUN_REGION ({self.region})."
                )
            else:
                message = f"Mailgun API error: {response.status_code} {response.text[:200]}"
            logger.error(message)
            raise UpstreamError("email_dispatch", message, status_code=502)

        logger.info(f"Email sent to {to} via Mailgun")
        try:
            return response.json()
        except ValueError:
            return {}
