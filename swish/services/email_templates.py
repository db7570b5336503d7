from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from swish.schemas.common import ShippingAddress

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


def _money(value) -> str:
    return f"{Decimal(value):.2f}"


env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    trim_blocks=True,
    lstrip_blocks=True,
)
env.filters["money"] = _money


@dataclass
class OrderItem:
    card_name: str
    player: str
    team: str
    year: int
    condition: str
    price: Decimal
    image_url: Optional[str] = None


@dataclass
class OrderConfirmation:
    order_id: str
    order_date: str
    customer_name: str
    customer_email: str
    items: list[OrderItem]
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    shipping_address: ShippingAddress

    @property
    def subject(self) -> str:
        return f"Order confirmation - {self.order_id} - SWISH"


def render_order_confirmation_html(order: OrderConfirmation) -> str:
    return env.get_template("order_confirmation.html").render(order=order)


def render_order_confirmation_text(order: OrderConfirmation) -> str:
    return env.get_template("order_confirmation.txt").render(order=order)
