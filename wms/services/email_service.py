"""
Outgoing mail over SMTP (aiosmtplib).

Each message carries a plain-text body with an HTML alternative.  Two
kinds are sent: the password-reset link and the welcome note for a
newly created client login.
"""

import logging
from email.message import EmailMessage
from string import Template

import aiosmtplib

from wms.core.config import settings

logger = logging.getLogger(__name__)

_LAYOUT = Template("""\
<html>
  <body style="margin:0; background:#f4f6f8; font-family:Helvetica, Arial, sans-serif; color:#222;">
    <table role="presentation" width="100%" cellpadding="0" cellspacing="0">
      <tr><td align="center" style="padding:32px 12px;">
        <table role="presentation" width="560" style="background:#fff; border-radius:6px; padding:28px;">
          <tr><td>
            <h2 style="margin-top:0; color:#1e3a5f;">$heading</h2>
            <p>$intro</p>
            <p style="text-align:center; margin:28px 0;">
              <a href="$link" style="background:#1e3a5f; color:#fff; padding:11px 26px;
                 border-radius:4px; text-decoration:none;">$label</a>
            </p>
            <p style="font-size:12px; color:#667;">Or open this address: <a href="$link">$link</a></p>
            <p style="font-size:12px; color:#667;">$note</p>
          </td></tr>
        </table>
      </td></tr>
    </table>
  </body>
</html>
""")


def _compose(to: str, subject: str, *, heading: str, intro: str, link: str, label: str, note: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.SENDER_EMAIL
    message["To"] = to
    message["Subject"] = subject
    message.set_content(f"{heading}\n\n{intro}\n\n{label}: {link}\n\n{note}\n")
    message.add_alternative(
        _LAYOUT.substitute(heading=heading, intro=intro, link=link, label=label, note=note),
        subtype="html",
    )
    return message


async def send_email(message: EmailMessage) -> None:
    try:
        await aiosmtplib.send(
            message,
            hostname=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            username=settings.SENDER_EMAIL or None,
            password=settings.EMAIL_PASSWORD or None,
            start_tls=settings.EMAIL_START_TLS,
        )
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("Could not deliver %r to %s", message["Subject"], message["To"])
        raise
    logger.info("Sent %r to %s", message["Subject"], message["To"])


async def send_password_reset_email(to_email: str, reset_token: str) -> None:
    """
    The link opens the frontend, which posts the token back to
    POST /api/auth/reset-password.
    """
    message = _compose(
        to_email,
        f"{settings.APP_NAME} password reset",
        heading="Reset your password",
        intro=f"Someone asked to reset the password of your {settings.APP_NAME} account.",
        link=f"{settings.FRONTEND_URL}/reset-password?token={reset_token}",
        label="Choose a new password",
        note=(
            f"The link stops working after {settings.PASSWORD_RESET_EXPIRE_HOURS} hours. "
            "Ignore this email if you did not ask for it."
        ),
    )
    await send_email(message)


async def send_welcome_email(to_email: str, company_name: str | None) -> None:
    """Best effort: a mail outage must not undo the account that was just created."""
    where = f" for {company_name}" if company_name else ""
    message = _compose(
        to_email,
        f"Welcome to {settings.APP_NAME}",
        heading="Your account is ready",
        intro=f"An account{where} has been created for you on {settings.APP_NAME}.",
        link=f"{settings.FRONTEND_URL}/login",
        label="Sign in",
        note="Your administrator will share your first password separately.",
    )
    try:
        await send_email(message)
    except (aiosmtplib.SMTPException, OSError):
        logger.warning("Welcome email to %s not sent", to_email)
