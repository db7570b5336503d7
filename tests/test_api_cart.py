"""Cart endpoints and checkout over HTTP, including two buyers racing for one card."""

from decimal import Decimal

from swish.api.v1.deps import get_payment_gateway
from swish.main import app
from swish.services.checkout_service import SOLD_DURING_CHECKOUT
from swish.services.payment_gateway import PaymentGateway, SettlementResult


class HookGateway(PaymentGateway):
    """Runs `hook` during the first settlement, then approves everything."""

    def __init__(self, hook=None):
        self.hook = hook
        self.count = 0

    async def settle(self, instrument, amount) -> SettlementResult:
        self.count += 1
        if self.hook is not None:
            hook, self.hook = self.hook, None
            await hook()
        return SettlementResult(success=True, transaction_id=f"txn_api_{self.count}")


class TestCart:
    async def test_add_view_remove(self, client, user_factory, card_factory, auth_headers) -> None:
        seller = await user_factory()
        buyer = await user_factory()
        first = await card_factory(seller.id, price="50.00")
        second = await card_factory(seller.id, price="12.25")
        headers = auth_headers(buyer)

        await client.post("/api/v1/cart/", json={"cardId": first.id}, headers=headers)
        added = await client.post("/api/v1/cart/", json={"cardId": second.id}, headers=headers)

        assert added.status_code == 201
        assert added.json()["itemCount"] == 2
        assert added.json()["totalPrice"] == 62.25

        removed = await client.delete(f"/api/v1/cart/items/{first.id}", headers=headers)
        assert [item["cardId"] for item in removed.json()["items"]] == [second.id]

        missing = await client.delete(f"/api/v1/cart/items/{first.id}", headers=headers)
        assert missing.status_code == 404

    async def test_empty_cart(self, client, user_factory, auth_headers) -> None:
        buyer = await user_factory()

        response = await client.get("/api/v1/cart/", headers=auth_headers(buyer))

        assert response.json()["itemCount"] == 0
        assert response.json()["items"] == []

    async def test_add_rules(self, client, user_factory, card_factory, auth_headers) -> None:
        seller = await user_factory()
        buyer = await user_factory()
        listed = await card_factory(seller.id, price="5.00")
        unlisted = await card_factory(seller.id)
        own = await card_factory(buyer.id, price="5.00")
        headers = auth_headers(buyer)

        await client.post("/api/v1/cart/", json={"cardId": listed.id}, headers=headers)
        duplicate = await client.post("/api/v1/cart/", json={"cardId": listed.id}, headers=headers)
        not_for_sale = await client.post("/api/v1/cart/", json={"cardId": unlisted.id}, headers=headers)
        own_card = await client.post("/api/v1/cart/", json={"cardId": own.id}, headers=headers)

        assert duplicate.status_code == 409
        assert not_for_sale.json()["message"] == "Card is not for sale"
        assert own_card.json()["message"] == "Cannot add your own card to cart"

    async def test_unlisted_items_are_pruned(self, client, user_factory, card_factory, auth_headers) -> None:
        seller = await user_factory()
        buyer = await user_factory()
        card = await card_factory(seller.id, price="5.00")
        await client.post("/api/v1/cart/", json={"cardId": card.id}, headers=auth_headers(buyer))

        await client.post(
            f"/api/v1/cards/{card.id}/operations", json={"action": "remove-from-sale"}, headers=auth_headers(seller),
        )
        response = await client.get("/api/v1/cart/", headers=auth_headers(buyer))

        assert response.json()["itemCount"] == 0


class TestCheckoutEndpoint:
    async def test_checkout_and_confirmation_mail(
        self, client, mailer, user_factory, card_factory, auth_headers, shipping_address
    ) -> None:
        seller = await user_factory()
        buyer = await user_factory(full_name="Jordan Miles")
        card = await card_factory(seller.id, price="50.00")
        headers = auth_headers(buyer)
        await client.post("/api/v1/cart/", json={"cardId": card.id}, headers=headers)

        response = await client.post("/api/v1/cart/checkout", json={
            "paymentMethodId": "pm_token_abc", "shippingAddress": shipping_address,
        }, headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Successfully purchased 1 card(s)"
        assert body["summary"]["totalPurchases"] == 1
        assert body["summary"]["totalAmount"] == 50.0
        assert body["purchases"][0]["status"] == "PAID"
        assert body["purchases"][0]["shippingAddress"]["streetAddress"] == "23 Court Street"
        assert body["transactionId"].startswith("txn_")
        assert [m["to"] for m in mailer.sent] == [buyer.email]

    async def test_checkout_needs_payment_source(self, client, user_factory, auth_headers, shipping_address) -> None:
        buyer = await user_factory()

        response = await client.post(
            "/api/v1/cart/checkout", json={"shippingAddress": shipping_address}, headers=auth_headers(buyer),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    async def test_nothing_purchasable(
        self, client, user_factory, card_factory, auth_headers, shipping_address
    ) -> None:
        seller = await user_factory()
        buyer = await user_factory()
        card = await card_factory(seller.id, price="50.00", name="Gone")
        headers = auth_headers(buyer)
        await client.post("/api/v1/cart/", json={"cardId": card.id}, headers=headers)
        await client.post(
            f"/api/v1/cards/{card.id}/operations", json={"action": "remove-from-sale"}, headers=auth_headers(seller),
        )

        response = await client.post("/api/v1/cart/checkout", json={
            "paymentMethodId": "pm_token_abc", "shippingAddress": shipping_address,
        }, headers=headers)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "No valid items in cart to purchase",
            "errors": {"invalidItems": ["Gone: Card is no longer for sale"]},
        }

    async def test_declined_payment(
        self, client, user_factory, card_factory, auth_headers, shipping_address
    ) -> None:
        seller = await user_factory()
        buyer = await user_factory()
        card = await card_factory(seller.id, price="50.00")
        headers = auth_headers(buyer)
        await client.post("/api/v1/cart/", json={"cardId": card.id}, headers=headers)

        response = await client.post("/api/v1/cart/checkout", json={
            "paymentMethodId": "invalid_card", "shippingAddress": shipping_address,
        }, headers=headers)
        cart = await client.get("/api/v1/cart/", headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Payment failed: Invalid payment method"
        assert cart.json()["itemCount"] == 1

    async def test_two_buyers_one_card(
        self, client, mailer, user_factory, card_factory, auth_headers, shipping_address
    ) -> None:
        """B checks out while A's payment is settling; B commits first and keeps the card."""
        seller = await user_factory()
        buyer_a = await user_factory(full_name="Buyer A")
        buyer_b = await user_factory(full_name="Buyer B")
        card = await card_factory(seller.id, price="50.00", name="Contested")
        for buyer in (buyer_a, buyer_b):
            await client.post("/api/v1/cart/", json={"cardId": card.id}, headers=auth_headers(buyer))
        checkout_body = {"paymentMethodId": "pm_token_abc", "shippingAddress": shipping_address}
        responses = {}

        async def buyer_b_checks_out():
            responses["b"] = await client.post("/api/v1/cart/checkout", json=checkout_body, headers=auth_headers(buyer_b))

        gateway = HookGateway(buyer_b_checks_out)
        app.dependency_overrides[get_payment_gateway] = lambda: gateway

        responses["a"] = await client.post("/api/v1/cart/checkout", json=checkout_body, headers=auth_headers(buyer_a))

        winner, loser = responses["b"].json(), responses["a"].json()
        assert winner["summary"]["totalPurchases"] == 1
        assert winner["purchases"][0]["buyerId"] == buyer_b.id
        assert loser["summary"]["totalPurchases"] == 0
        assert loser["summary"]["settledAmount"] == 50.0
        assert loser["summary"]["invalidItems"] == [
            {"cardId": card.id, "cardName": "Contested", "reason": SOLD_DURING_CHECKOUT},
        ]
        assert loser["message"] == "Checkout failed - no items could be purchased"
        assert [m["to"] for m in mailer.sent] == [buyer_b.email]

        purchases = await client.get("/api/v1/purchases/", headers=auth_headers(seller))
        assert len(purchases.json()) == 1
        assert Decimal(str(purchases.json()[0]["price"])) == Decimal("50.00")
