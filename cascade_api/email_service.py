"""
Outbound email: SendGrid (preferred), Resend, then plain SMTP.
The provider is chosen by which credentials are configured.
"""

import base64
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass, field
from datetime import datetime
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Optional

import httpx
import resend
from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool

from .config import Settings

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"
DEFAULT_FROM_NAME = "Cascade Connect"
LINK_STYLE = "color: #6750A4; text-decoration: underline;"

HTML_TAG_RE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)
URL_RE = re.compile(r"(https?://[^\s]+)")
STRIP_TAGS_RE = re.compile(r"<[^>]*>")


def contains_html(body: str) -> bool:
    return bool(HTML_TAG_RE.search(body or ""))


def format_email_body(body: str) -> tuple[str, str]:
    """
    Build the (html, text) pair for a message body.

    HTML bodies go out unchanged and the text part has all markup removed.
    Plain text gets clickable links and <br> line breaks in the HTML part.
    """
    if contains_html(body):
        text = STRIP_TAGS_RE.sub("", body).replace("&nbsp;", " ").strip()
        return body, text

    linked = URL_RE.sub(rf'<a href="\1" style="{LINK_STYLE}">\1</a>', body)
    return linked.replace("\n", "<br>"), body


def wrap_html(html_body: str, reply_to_id: Optional[str] = None) -> str:
    footer = ""
    if reply_to_id:
        footer = (
            '<hr style="margin-top: 20px; border: none; border-top: 1px solid #ddd;">'
            f'<p style="font-size: 12px; color: #666;">Reply-To ID: {reply_to_id}</p>'
        )
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">'
        f"{html_body}{footer}</div>"
    )


def strip_data_uri(data: str, mime: str = "application/pdf") -> str:
    """Drop a `data:<mime>;base64,` prefix if the browser sent one"""
    prefix = f"data:{mime};base64,"
    return data[len(prefix):] if data.startswith(prefix) else data


@dataclass
class Attachment:
    filename: str
    content: str  # base64
    content_type: str = "application/octet-stream"


@dataclass
class OutboundEmail:
    to: list[str]
    subject: str
    html: str
    text: str
    from_email: str
    from_name: str = DEFAULT_FROM_NAME
    reply_to_id: Optional[str] = None
    attachments: list[Attachment] = field(default_factory=list)

    def thread_headers(self) -> dict[str, str]:
        """Headers that let inbound replies be matched back to a thread"""
        if not self.reply_to_id:
            return {}
        domain = self.from_email.split("@")[-1] or "localhost"
        message_ref = f"<{self.reply_to_id}@{domain}>"
        return {
            "X-Thread-ID": self.reply_to_id,
            "In-Reply-To": message_ref,
            "References": message_ref,
        }


def resolve_from_address(settings: Settings) -> str:
    from_email = settings.email_from_address
    if not from_email or "@" not in from_email:
        logger.error(f"❌ Invalid from email address: {from_email}")
        raise HTTPException(
            status_code=500,
            detail=(
                "Invalid 'from' email address configured. "
                "Please set SENDGRID_REPLY_EMAIL or SMTP_FROM."
            ),
        )
    return from_email


# ============================================
# Providers
# ============================================


async def send_via_sendgrid(settings: Settings, email: OutboundEmail) -> str:
    payload = {
        "personalizations": [{"to": [{"email": addr} for addr in email.to]}],
        "from": {"email": email.from_email, "name": email.from_name},
        "reply_to": {"email": email.from_email},
        "subject": email.subject,
        "content": [
            {"type": "text/plain", "value": email.text or " "},
            {"type": "text/html", "value": email.html},
        ],
    }
    headers = email.thread_headers()
    if headers:
        payload["headers"] = headers
        payload["custom_args"] = {"threadId": email.reply_to_id}
    if email.attachments:
        payload["attachments"] = [
            {
                "content": a.content,
                "filename": a.filename,
                "type": a.content_type,
                "disposition": "attachment",
            }
            for a in email.attachments
        ]

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            SENDGRID_SEND_URL,
            headers={
                "Authorization": f"Bearer {settings.sendgrid_api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
        )

    if response.status_code >= 400:
        try:
            errors = response.json().get("errors") or []
            message = "; ".join(e.get("message", str(e)) for e in errors) or response.text
        except ValueError:
            message = response.text
        logger.error(f"❌ SendGrid error ({response.status_code}): {message}")
        raise HTTPException(status_code=response.status_code, detail=message or "Failed to send email")

    message_id = response.headers.get("x-message-id")
    logger.info(f"✅ Email sent via SendGrid: messageId={message_id}, to={email.to}")
    return message_id


def _send_via_resend(settings: Settings, email: OutboundEmail) -> str:
    resend.api_key = settings.resend_api_key
    params = {
        "from": formataddr((email.from_name, email.from_email)),
        "to": email.to,
        "subject": email.subject,
        "html": email.html,
        "text": email.text,
        "reply_to": email.from_email,
    }
    headers = email.thread_headers()
    if headers:
        params["headers"] = headers
    if email.attachments:
        params["attachments"] = [
            {"filename": a.filename, "content": a.content} for a in email.attachments
        ]

    try:
        response = resend.Emails.send(params)
    except Exception as e:
        logger.error(f"❌ Resend send failed to {email.to}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to send email: {str(e)}") from e

    message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
    logger.info(f"✅ Email sent via Resend: {message_id}")
    return message_id


def build_mime_message(email: OutboundEmail) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = email.subject
    msg["From"] = formataddr((email.from_name, email.from_email))
    msg["To"] = ", ".join(email.to)
    msg["Reply-To"] = email.from_email
    msg["Message-ID"] = make_msgid(domain=email.from_email.split("@")[-1])
    for name, value in email.thread_headers().items():
        msg[name] = value

    body = MIMEMultipart("alternative")
    body.attach(MIMEText(email.text, "plain"))
    body.attach(MIMEText(email.html, "html"))
    msg.attach(body)

    for attachment in email.attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        part = MIMEBase(maintype or "application", subtype or "octet-stream")
        part.set_payload(base64.b64decode(attachment.content))
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{attachment.filename}"')
        msg.attach(part)

    return msg


def _send_via_smtp(settings: Settings, email: OutboundEmail) -> str:
    msg = build_mime_message(email)
    server = None
    try:
        if settings.smtp_secure or settings.smtp_port == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30)
            server.starttls(context=ssl.create_default_context())

        server.login(settings.smtp_user, settings.smtp_pass)
        server.sendmail(email.from_email, email.to, msg.as_string())
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        if server is not None:
            server.close()
        logger.error(f"❌ SMTP send failed via {settings.smtp_host}: {e}")
        raise HTTPException(status_code=500, detail=f"SMTP send failed: {str(e)}") from e

    logger.info(f"✅ Email sent via SMTP ({settings.smtp_host}) to {email.to}")
    return msg["Message-ID"] or f"smtp-{datetime.utcnow().timestamp()}"


async def deliver_email(settings: Settings, email: OutboundEmail) -> dict:
    """
    Send through the first configured provider.

    Returns:
        {"success": True, "messageId": ..., "provider": "sendgrid" | "resend" | "smtp"}
    """
    if settings.sendgrid_api_key:
        message_id = await send_via_sendgrid(settings, email)
        return {"success": True, "messageId": message_id, "provider": "sendgrid"}

    if settings.resend_api_key:
        message_id = await run_in_threadpool(_send_via_resend, settings, email)
        return {"success": True, "messageId": message_id, "provider": "resend"}

    if settings.smtp_configured:
        message_id = await run_in_threadpool(_send_via_smtp, settings, email)
        return {"success": True, "messageId": message_id, "provider": "smtp"}

    logger.error("❌ No email provider configured")
    raise HTTPException(
        status_code=500,
        detail=(
            "Email configuration missing. Please set SENDGRID_API_KEY, RESEND_API_KEY "
            "or SMTP credentials (SMTP_HOST, SMTP_USER, SMTP_PASS)."
        ),
    )
