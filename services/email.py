# services/email.py
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from starlette.concurrency import run_in_threadpool

from components.base import render
from config import settings

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def _deliver(to: str, subject: str, html: str, text: str):
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to
    msg.attach(MIMEText(text, "plain"))
    msg.attach(MIMEText(html, "html"))

    smtp_class = smtplib.SMTP_SSL if settings.SMTP_PORT == 465 else smtplib.SMTP
    with smtp_class(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        if smtp_class is smtplib.SMTP:
            server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)


async def send_email(to: str, subject: str, html: str, text: str = None) -> bool:
    """Send a message, returning False when SMTP is not configured.

    Delivery errors propagate to the caller.
    """
    if not settings.email_configured:
        logger.warning("Email not configured. Skipping email send.")
        return False
    text = text or _TAG_RE.sub("", html)
    await run_in_threadpool(_deliver, to, subject, html, text)
    logger.info(f"Email sent to {to}")
    return True


async def send_welcome_email(name: str, email: str):
    subject = "Welcome to CourseMaster!"
    html = render(
        "emails/welcome.html",
        subject=subject,
        name=name,
        action_url=f"{settings.APP_URL}/courses",
        action_text="Browse Courses",
    )
    try:
        await send_email(email, subject, html)
    except Exception as e:
        logger.error(f"Failed to send welcome email to {email}: {str(e)}")


async def send_enrollment_email(name: str, email: str, course_title: str, course_id: str):
    subject = f"Enrollment Confirmed: {course_title}"
    html = render(
        "emails/enrollment.html",
        subject=subject,
        name=name,
        course_title=course_title,
        action_url=f"{settings.APP_URL}/learn/{course_id}",
        action_text="Start Learning",
    )
    try:
        await send_email(email, subject, html)
    except Exception as e:
        logger.error(f"Failed to send enrollment email to {email}: {str(e)}")


async def send_custom_email(
    name: str,
    email: str,
    subject: str,
    message: str,
    action_url: str = None,
    action_text: str = None,
) -> bool:
    html = render(
        "emails/custom.html",
        subject=subject,
        name=name,
        message=message,
        action_url=action_url,
        action_text=action_text or "Open CourseMaster",
    )
    return await send_email(email, subject, html)
