import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from swish.core.config import settings
from swish.db.models.purchase_model import Purchase
from swish.schemas.common import ShippingAddress
from swish.services.email_templates import (
    OrderConfirmation,
    OrderItem,
    render_order_confirmation_html,
    render_order_confirmation_text,
)
from swish.services.mailer import Mailer

logger = logging.getLogger(__name__)


def _absolute_url(path: Optional[str], base_url: str) -> Optional[str]:
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_order_confirmation(
    customer_name: str,
    customer_email: str,
    purchases: Sequence[Purchase],
    shipping_address: ShippingAddress,
    transaction_id: Optional[str] = None,
    shipping_cost: Optional[Decimal] = None,
    base_url: Optional[str] = None,
) -> OrderConfirmation:
    shipping_cost = settings.SHIPPING_COST if shipping_cost is None else shipping_cost
    base_url = base_url or settings.PUBLIC_BASE_URL

    items = [
        OrderItem(
            card_name=p.card.name,
            player=p.card.player,
            team=p.card.team,
            year=p.card.year,
            condition=p.card.condition,
            price=Decimal(p.price),
            image_url=_absolute_url(p.card.image_url, base_url),
        )
        for p in purchases
    ]
    subtotal = sum((item.price for item in items), Decimal("0"))

    return OrderConfirmation(
        order_id=transaction_id or str(purchases[0].id),
        order_date=datetime.now(timezone.utc).strftime("%B %d, %Y %H:%M UTC"),
        customer_name=customer_name or "Customer",
        customer_email=customer_email,
        items=items,
        subtotal=subtotal,
        shipping=shipping_cost,
        total=subtotal + shipping_cost,
        shipping_address=shipping_address,
    )


class NotificationService:
    """Post-purchase mail. Runs after the response is sent and never raises."""

    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    async def send_order_confirmation(
        self,
        customer_name: str,
        customer_email: Optional[str],
        purchases: Sequence[Purchase],
        shipping_address: ShippingAddress,
        transaction_id: Optional[str] = None,
    ) -> bool:
        if not purchases or not customer_email:
            return False
        try:
            order = build_order_confirmation(
                customer_name, customer_email, purchases, shipping_address, transaction_id,
            )
            return await self.mailer.send(
                to=customer_email,
                subject=order.subject,
                html=render_order_confirmation_html(order),
                text=render_order_confirmation_text(order),
            )
        except Exception:
            logger.exception("Failed to send order confirmation to %s", customer_email)
            return False
