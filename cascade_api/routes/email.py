"""
Email Routes - general outbound email and invoice PDF delivery
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..auth import get_current_user_id
from ..config import Settings, get_settings
from ..email_service import (
    Attachment,
    OutboundEmail,
    deliver_email,
    format_email_body,
    resolve_from_address,
    strip_data_uri,
    wrap_html,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"])

DEFAULT_INVOICE_SUBJECT = "Invoice from Cascade Builder Services"


class EmailAttachmentIn(BaseModel):
    filename: str
    content: str  # base64
    contentType: Optional[str] = None


class SendEmailRequest(BaseModel):
    to: Optional[Union[str, list[str]]] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    fromName: Optional[str] = None
    replyToId: Optional[str] = None
    attachments: list[EmailAttachmentIn] = []


class InvoiceAttachmentIn(BaseModel):
    filename: Optional[str] = None
    data: str


class SendInvoiceEmailRequest(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    attachment: Optional[InvoiceAttachmentIn] = None


def _recipients(to: Union[str, list[str]]) -> list[str]:
    return [to] if isinstance(to, str) else list(to)


@router.post("/send-email")
async def send_email(data: SendEmailRequest, settings: Settings = Depends(get_settings)):
    """Send a message through the configured provider chain"""
    if not data.to or not data.subject or not data.body:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: 'to', 'subject', and 'body' are required.",
        )

    from_email = resolve_from_address(settings)
    html_body, text_body = format_email_body(data.body)

    email = OutboundEmail(
        to=_recipients(data.to),
        subject=data.subject,
        html=wrap_html(html_body, data.replyToId),
        text=text_body,
        from_email=from_email,
        from_name=data.fromName or "Cascade Connect",
        reply_to_id=data.replyToId,
        attachments=[
            Attachment(
                filename=a.filename,
                content=a.content,
                content_type=a.contentType or "application/octet-stream",
            )
            for a in data.attachments
        ],
    )

    logger.info(f"📧 Sending email to {email.to} (thread={data.replyToId or '-'})")
    return await deliver_email(settings, email)


@router.post("/send-invoice-email")
async def send_invoice_email(
    data: SendInvoiceEmailRequest,
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
):
    """Email an invoice PDF generated in the browser"""
    if not data.to or not data.attachment or not data.attachment.data:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: 'to' address or attachment data",
        )

    from_email = resolve_from_address(settings)
    pdf_base64 = strip_data_uri(data.attachment.data)

    text = data.text or "Please find your invoice attached."
    html = data.html or format_email_body(text)[0]

    email = OutboundEmail(
        to=[data.to],
        subject=data.subject or DEFAULT_INVOICE_SUBJECT,
        html=html,
        text=text,
        from_email=from_email,
        from_name=settings.smtp_from_name,
        attachments=[
            Attachment(
                filename=data.attachment.filename or "invoice.pdf",
                content=pdf_base64,
                content_type="application/pdf",
            )
        ],
    )

    logger.info(f"📧 User {user_id} sending invoice email to {data.to}")
    result = await deliver_email(settings, email)
    return {"success": True, "messageId": result["messageId"]}
