"""Order confirmation mail: payload, rendering and failure handling."""

import logging
from decimal import Decimal

from swish.db.registry import Card, Purchase, PurchaseStatus
from swish.schemas.common import ShippingAddress
from swish.services.email_templates import render_order_confirmation_html, render_order_confirmation_text
from swish.services.mailer import SmtpMailer
from swish.services.notification_service import NotificationService, build_order_confirmation


def sold_card(purchase_id: int, name: str, price: str, image_url=None) -> Purchase:
    card = Card(
        id=purchase_id, name=name, player="Stephen Curry", team="Golden State Warriors",
        year=2009, brand="Panini", condition="PSA 10", image_url=image_url,
    )
    return Purchase(id=purchase_id, price=Decimal(price), status=PurchaseStatus.PAID, card=card)


def address(shipping_address: dict) -> ShippingAddress:
    return ShippingAddress.model_validate(shipping_address)


class TestBuildOrderConfirmation:
    def test_totals_include_flat_shipping(self, shipping_address) -> None:
        purchases = [sold_card(1, "Curry Rookie", "120.00"), sold_card(2, "Curry Prizm", "30.50")]

        order = build_order_confirmation(
            "Jordan Miles", "jordan@example.com", purchases, address(shipping_address), "txn_1_abc",
        )

        assert order.order_id == "txn_1_abc"
        assert order.subtotal == Decimal("150.50")
        assert order.shipping == Decimal("24.00")
        assert order.total == Decimal("174.50")
        assert order.subject == "Order confirmation - txn_1_abc - SWISH"
        assert [item.card_name for item in order.items] == ["Curry Rookie", "Curry Prizm"]

    def test_falls_back_to_purchase_id(self, shipping_address) -> None:
        order = build_order_confirmation(
            "", "jordan@example.com", [sold_card(42, "Curry Rookie", "10.00")], address(shipping_address),
        )

        assert order.order_id == "42"
        assert order.customer_name == "Customer"

    def test_relative_images_become_absolute(self, shipping_address) -> None:
        purchases = [
            sold_card(1, "Relative", "1.00", image_url="/uploads/curry.png"),
            sold_card(2, "Absolute", "1.00", image_url="https://cdn.example.com/curry.png"),
            sold_card(3, "None", "1.00"),
        ]

        order = build_order_confirmation(
            "Jordan", "jordan@example.com", purchases, address(shipping_address), base_url="https://swish.example/",
        )

        assert [item.image_url for item in order.items] == [
            "https://swish.example/uploads/curry.png",
            "https://cdn.example.com/curry.png",
            None,
        ]

    def test_rendered_bodies(self, shipping_address) -> None:
        order = build_order_confirmation(
            "Jordan <Miles>", "jordan@example.com", [sold_card(1, "Curry Rookie", "120.00")],
            address(shipping_address), "txn_1_abc",
        )

        html = render_order_confirmation_html(order)
        text = render_order_confirmation_text(order)

        assert "Jordan &lt;Miles&gt;" in html
        assert "144.00" in html
        assert "Order number: txn_1_abc" in text
        assert "23 Court Street" in text
        assert "Total:    US $144.00" in text


class TestNotificationService:
    async def test_sends_to_customer(self, mailer, shipping_address) -> None:
        sent = await NotificationService(mailer).send_order_confirmation(
            "Jordan Miles", "jordan@example.com", [sold_card(1, "Curry Rookie", "10.00")],
            address(shipping_address), "txn_9",
        )

        assert sent is True
        assert len(mailer.sent) == 1
        assert mailer.sent[0]["to"] == "jordan@example.com"
        assert mailer.sent[0]["subject"] == "Order confirmation - txn_9 - SWISH"
        assert "Curry Rookie" in mailer.sent[0]["text"]

    async def test_mailer_failure_is_swallowed(self, broken_mailer, shipping_address, caplog) -> None:
        caplog.set_level(logging.ERROR, logger="swish.services.notification_service")

        sent = await NotificationService(broken_mailer).send_order_confirmation(
            "Jordan Miles", "jordan@example.com", [sold_card(1, "Curry Rookie", "10.00")],
            address(shipping_address),
        )

        assert sent is False
        [record] = [r for r in caplog.records if r.name == "swish.services.notification_service"]
        assert record.getMessage() == "Failed to send order confirmation to jordan@example.com"
        assert record.exc_info is not None
        assert record.exc_info[0] is ConnectionError

    async def test_nothing_to_send(self, mailer, shipping_address) -> None:
        service = NotificationService(mailer)

        assert await service.send_order_confirmation("J", "j@example.com", [], address(shipping_address)) is False
        assert await service.send_order_confirmation(
            "J", None, [sold_card(1, "Curry Rookie", "10.00")], address(shipping_address)
        ) is False
        assert mailer.sent == []

    async def test_unconfigured_smtp_skips(self) -> None:
        mailer = SmtpMailer(host=None, port=None, username=None, password=None)

        assert mailer.configured is False
        assert await mailer.send("j@example.com", "Subject", "<p>hi</p>", "hi") is False
