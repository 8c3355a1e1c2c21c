"""
D9 Email Delivery Module

Order confirmation emails for paid checkout sessions, sent through SendGrid.

Key Components:
- EmailSender capability and its SendGrid client
- Order confirmation email builder (Jinja2 template)
- Fulfillment notifier used by the payment webhook
"""

from .email_builder import OrderConfirmation, OrderEmailItem, build_order_confirmation_email, format_order_total
from .fulfillment import FulfillmentNotifier, PurchasedItem
from .sendgrid_client import EmailData, EmailSender, SendGridClient, SendGridResponse

__all__ = [
    "EmailData",
    "EmailSender",
    "SendGridClient",
    "SendGridResponse",
    "OrderConfirmation",
    "OrderEmailItem",
    "build_order_confirmation_email",
    "format_order_total",
    "FulfillmentNotifier",
    "PurchasedItem",
]
