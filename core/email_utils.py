# core/email_utils.py

from html import escape
from typing import Dict

from core.config import settings
from core.logging_config import logger, token_prefix


VERIFICATION_SUBJECT = "Activate your Asine account"


def verification_link(token: str) -> str:
    return f"{settings.verification_base_url}/verify?token={token}"


def build_verification_email(name: str, link: str, ttl_hours: int = 24) -> Dict[str, str]:
    """
    Subject, HTML and plain text bodies for the account activation email.
    `name` is user input and is escaped in the HTML body.
    """
    html = f"""
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #0f766e;">Welcome to Asine</h2>
    <p>Hi {escape(name or "")},</p>
    <p>Please verify your email to activate your Property Manager account.</p>
    <div style="text-align: center; margin: 30px 0;">
      <a href="{link}" style="background: #0f766e; color: white; padding: 12px 24px; border-radius: 8px; text-decoration: none; font-weight: bold;">
        Verify Account
      </a>
    </div>
    <p style="color: #666; font-size: 14px;"><strong>Important:</strong> This verification link expires in {ttl_hours} hours.</p>
    <p style="color: #666; font-size: 14px;">If you didn't create an account, please ignore this email.</p>
    <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
    <p style="color: #999; font-size: 12px;">
      If the button doesn't work, copy and paste this link into your browser:<br>
      <a href="{link}" style="color: #0f766e;">{link}</a>
    </p>
  </body>
</html>
"""

    text = f"""Welcome to Asine

Hi {name},

Please verify your email to activate your Property Manager account.

Verification Link: {link}

This link expires in {ttl_hours} hours.

If you didn't create an account, please ignore this email.
"""

    return {"subject": VERIFICATION_SUBJECT, "html": html, "text": text}


def send_verification_email(mailer, email: str, name: str, token: str, subject: str = None):
    """
    Sends the activation email with the verification link for `token`.
    Errors from the mailer propagate; callers decide whether they matter.
    """
    message = build_verification_email(
        name, verification_link(token), settings.VERIFICATION_TOKEN_TTL_HOURS
    )

    mailer.send(
        to=email,
        subject=subject or message["subject"],
        html=message["html"],
        text=message["text"],
    )

    logger.info(f"Verification email sent to {email} (token {token_prefix(token)})")
    return True
