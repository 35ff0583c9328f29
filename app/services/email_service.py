"""Email service: Jinja2 templates rendered and sent over SMTP"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, Optional
import logging
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"

STATUS_MESSAGES = {
    "confirmed": "Your order has been confirmed and is being prepared.",
    "shipping": "Your order has been shipped and is on its way!",
    "delivered": "Your order has been delivered successfully.",
    "cancelled": "Your order has been cancelled.",
}

def format_amount(amount: int) -> str:
    """Integer amount with thousands separators"""
    return f"{amount:,}"

class EmailService:
    """Order emails rendered from templates"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME

        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.env.filters["amount"] = format_amount

    def render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(app_url=settings.FRONTEND_URL, **context)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None
    ) -> bool:
        """Send a text email with an optional HTML alternative"""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = to_email

        msg.attach(MIMEText(body, 'plain', 'utf-8'))
        if html_body:
            msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=True,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

        logger.info(f"Email sent successfully to {to_email}")
        return True

    async def send_order_confirmation(self, to_email: str, order_data: Dict[str, Any]) -> bool:
        """Send order confirmation email"""
        html_body = self.render(
            "order_confirmation.html",
            order=order_data,
            track_url=f"{settings.FRONTEND_URL}/orders/{order_data['id']}",
        )
        return await self.send_email(
            to_email=to_email,
            subject=f"Order Confirmed - #{order_data['order_number']}",
            body=(
                f"Hi {order_data['full_name']}, thank you for your order "
                f"#{order_data['order_number']}. Total: {format_amount(order_data['total'])}."
            ),
            html_body=html_body
        )

    async def send_order_status_update(
        self,
        to_email: str,
        order_data: Dict[str, Any],
        new_status: str,
        note: Optional[str] = None
    ) -> bool:
        """Send order status update email"""
        html_body = self.render(
            "order_status_update.html",
            order=order_data,
            status=new_status,
            status_message=STATUS_MESSAGES.get(new_status, "Your order status has been updated."),
            note=note,
            order_url=f"{settings.FRONTEND_URL}/orders/{order_data['id']}",
        )
        return await self.send_email(
            to_email=to_email,
            subject=f"Order #{order_data['order_number']} - {new_status.title()}",
            body=f"Your order #{order_data['order_number']} is now {new_status}.",
            html_body=html_body
        )
