"""Email builder for order confirmation messages."""
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from .sendgrid_client import EmailData

BRAND_NAME = "RunMemories"
TEMPLATE_NAME = "order_confirmation.html"
CURRENCY_SYMBOLS = {"EUR": "€"}

_environment = Environment(
    loader=PackageLoader("d9_delivery", "templates"),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


@dataclass
class OrderEmailItem:
    """One purchased poster as shown in the confirmation email"""

    name: str
    cart_item_id: str
    download_url: str
    preview_url: Optional[str] = None


@dataclass
class OrderConfirmation:
    """Everything the confirmation email needs"""

    customer_email: str
    reference: str
    amount_total: int
    currency: str
    items: List[OrderEmailItem] = field(default_factory=list)
    order_date: date = field(default_factory=date.today)


def format_order_total(amount_minor: Optional[int], currency: Optional[str]) -> str:
    """
    Format a minor-unit amount the French way with the symbol glued on.

    2990, "eur" -> "29,90€"; 123450, "usd" -> "1 234,50USD"
    """
    code = (currency or "").upper()
    amount = (Decimal(amount_minor or 0) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    integer, _, cents = f"{amount:,.2f}".partition(".")
    number = f"{integer.replace(',', ' ')},{cents}"
    return f"{number}{CURRENCY_SYMBOLS.get(code, code)}"


def format_order_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def build_subject(reference: str) -> str:
    """Short subject line built from the session reference (cs_test_a1b2... -> test_a1)"""
    return f"Votre commande {BRAND_NAME} #{reference[3:10]}"


def render_order_confirmation(confirmation: OrderConfirmation, site_url: str) -> str:
    template = _environment.get_template(TEMPLATE_NAME)
    return template.render(
        brand=BRAND_NAME,
        site_url=site_url,
        order_date=format_order_date(confirmation.order_date),
        reference=confirmation.reference,
        total=format_order_total(confirmation.amount_total, confirmation.currency),
        items=confirmation.items,
        year=confirmation.order_date.year,
    )


def build_order_confirmation_email(
    confirmation: OrderConfirmation,
    site_url: str,
    from_email: Optional[str] = None,
    from_name: Optional[str] = None,
) -> EmailData:
    """Compose the order confirmation EmailData for one completed session"""
    return EmailData(
        to_email=confirmation.customer_email,
        from_email=from_email,
        from_name=from_name,
        subject=build_subject(confirmation.reference),
        html_content=render_order_confirmation(confirmation, site_url),
        categories=["order-confirmation"],
        custom_args={"session_id": confirmation.reference, "item_count": len(confirmation.items)},
    )
