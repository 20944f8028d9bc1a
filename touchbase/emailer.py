import aiosmtplib
from email.message import EmailMessage
from .config import settings


def build_message(to_email: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = f"{settings.FROM_NAME} <{settings.FROM_EMAIL}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    if settings.REPLY_TO:
        msg["Reply-To"] = settings.REPLY_TO
    return msg


async def send_email(to_email: str, subject: str, body: str):
    """Sends a plain-text email via SMTP (STARTTLS)."""
    await aiosmtplib.send(
        build_message(to_email, subject, body),
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        start_tls=True,  # 587 + STARTTLS
        username=settings.SMTP_USERNAME or None,
        password=settings.SMTP_PASSWORD or None,
        timeout=60,
    )
