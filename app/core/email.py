"""Email service for magic link sign-in"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from app.config import settings
import logging

logger = logging.getLogger(__name__)


async def send_email(to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> bool:
    """
    Send an email using SMTP

    Args:
        to_email: Recipient email address
        subject: Email subject
        html_content: HTML content of the email
        text_content: Plain text content (optional)

    Returns:
        False when SMTP is not configured, True once the message is sent
    """
    if not settings.smtp_host:
        logger.warning(f"SMTP not configured, email to {to_email} not sent")
        return False

    message = MIMEMultipart("alternative")
    message["From"] = settings.email_from
    message["To"] = to_email
    message["Subject"] = subject

    if text_content:
        message.attach(MIMEText(text_content, "plain"))
    message.attach(MIMEText(html_content, "html"))

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            start_tls=True,
        )
    except aiosmtplib.SMTPException as e:
        logger.error(f"Failed to send email to {to_email}: {str(e)}")
        raise

    logger.info(f"Email sent to {to_email}")
    return True


async def send_magic_link_email(email: str, token: str, frontend_url: Optional[str] = None) -> bool:
    """
    Send the sign-in link for the back office and customer order history

    Args:
        email: User's email address
        token: Magic link token
        frontend_url: Storefront URL used to build the link
    """
    magic_link = f"{frontend_url or settings.frontend_url}/auth/verify?token={token}"
    minutes = settings.magic_link_expire_minutes

    subject = f"Your sign-in link for {settings.app_name}"

    text_content = (
        f"Hello,\n\n"
        f"Use the link below to sign in:\n{magic_link}\n\n"
        f"The link expires in {minutes} minutes. "
        f"If you did not ask for it, ignore this email.\n"
    )

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: Arial, sans-serif; color: #333;">
        <div style="max-width: 560px; margin: 0 auto; padding: 20px;">
            <h2>Sign in</h2>
            <p>Use the button below to sign in:</p>
            <p><a href="{magic_link}" style="padding: 12px 24px; background: #d35400; color: #fff; text-decoration: none; border-radius: 4px;">Sign in</a></p>
            <p style="word-break: break-all; font-size: 12px;">{magic_link}</p>
            <p style="font-size: 12px; color: #666;">The link expires in {minutes} minutes. If you did not ask for it, ignore this email.</p>
        </div>
    </body>
    </html>
    """

    return await send_email(email, subject, html_content, text_content)
