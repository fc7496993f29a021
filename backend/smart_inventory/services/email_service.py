# Overview: Outbound stock alert emails to the shop owner over SMTP.

from __future__ import annotations

import logging
import smtplib
import ssl
from html import escape
from email.message import EmailMessage

from flask import current_app

from ..errors import NotificationDeliveryError

logger = logging.getLogger(__name__)


def _smtp_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("SMTP_USER") and cfg.get("SMTP_PASS"))


def _build_message(*, recipient: str, subject: str, text_body: str, html_body: str) -> EmailMessage:
    cfg = current_app.config
    msg = EmailMessage()
    msg["From"] = f'"{cfg["MAIL_SENDER_NAME"]}" <{cfg["SMTP_USER"]}>'
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    return msg


def _deliver(msg: EmailMessage) -> None:
    cfg = current_app.config
    host = cfg["SMTP_HOST"]
    port = int(cfg["SMTP_PORT"])
    try:
        if port == 465:
            with smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=10) as smtp:
                smtp.login(cfg["SMTP_USER"], cfg["SMTP_PASS"])
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(host, port, timeout=10) as smtp:
                smtp.starttls(context=ssl.create_default_context())
                smtp.login(cfg["SMTP_USER"], cfg["SMTP_PASS"])
                smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise NotificationDeliveryError(f"SMTP delivery to {msg['To']} failed: {exc}") from exc


def _inventory_link() -> str:
    return f"{current_app.config['APP_URL'].rstrip('/')}/products"


def send_low_stock_alert(recipient: str, product_name: str, current_stock: int) -> bool:
    """
    Send the one-shot low stock email.

    Returns False (and logs) when SMTP is not configured.
    Raises NotificationDeliveryError on transport failure.
    """
    units = "unit" if current_stock == 1 else "units"
    if not _smtp_configured():
        logger.info(
            "SMTP not configured - low stock alert for %r (stock: %d) would be sent to %s",
            product_name, current_stock, recipient,
        )
        return False

    link = _inventory_link()
    msg = _build_message(
        recipient=recipient,
        subject=f"Low Stock Alert: {product_name}",
        text_body=(
            f"A product in your inventory is running low on stock:\n\n"
            f"{product_name}: {current_stock} {units} remaining\n\n"
            f"Consider restocking this item soon to avoid stockouts.\n"
            f"View inventory: {link}\n"
        ),
        html_body=(
            f"<h2>Low Stock Alert</h2>"
            f"<p>A product in your inventory is running low on stock:</p>"
            f"<h3>{escape(product_name)}</h3>"
            f"<p><strong>{current_stock} {units} remaining</strong></p>"
            f"<p>Consider restocking this item soon to avoid stockouts.</p>"
            f'<p><a href="{link}">View Inventory</a></p>'
        ),
    )
    _deliver(msg)
    logger.info("Low stock alert sent to %s for %r", recipient, product_name)
    return True


def send_out_of_stock_alert(recipient: str, product_name: str) -> bool:
    """Send the out-of-stock email. Same return/raise contract as send_low_stock_alert."""
    if not _smtp_configured():
        logger.info(
            "SMTP not configured - out of stock alert for %r would be sent to %s",
            product_name, recipient,
        )
        return False

    link = _inventory_link()
    msg = _build_message(
        recipient=recipient,
        subject=f"Out of Stock: {product_name}",
        text_body=(
            f"A product in your inventory is now out of stock:\n\n"
            f"{product_name}: 0 units remaining\n\n"
            f"This product cannot be sold until restocked. Please reorder immediately.\n"
            f"Restock now: {link}\n"
        ),
        html_body=(
            f"<h2>Out of Stock</h2>"
            f"<p>A product in your inventory is now <strong>out of stock</strong>:</p>"
            f"<h3>{escape(product_name)}</h3>"
            f"<p><strong>0 units remaining</strong></p>"
            f"<p>This product cannot be sold until restocked. Please reorder immediately.</p>"
            f'<p><a href="{link}">Restock Now</a></p>'
        ),
    )
    _deliver(msg)
    logger.info("Out of stock alert sent to %s for %r", recipient, product_name)
    return True
