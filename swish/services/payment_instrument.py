from typing import Optional

from swish.core.exceptions import BusinessRuleViolation, NotFoundError
from swish.repositories.user_repo import UserRepository
from swish.schemas.cart_schema import OneTimePayment
from swish.services.payment_gateway import PaymentInstrument
from swish.services.payment_vault import (
    decrypt_payment_method,
    find_payment_method,
    load_payment_methods,
    verify_cvv,
)


async def resolve_instrument(
    user_repo: UserRepository,
    user_id: int,
    payment_method_id: Optional[str] = None,
    cvv: Optional[str] = None,
    one_time_payment: Optional[OneTimePayment] = None,
) -> PaymentInstrument:
    """
    Turn the payment part of a purchase request into something the gateway can charge.

    Saved methods are decrypted here (server side only) after their CVV
    check; ids that match no saved method pass through as gateway tokens.
    Raises DecryptionError if a stored record cannot be opened.
    """
    if payment_method_id:
        stored_methods = load_payment_methods(await user_repo.get_payment_methods(user_id))
        selected = find_payment_method(stored_methods, payment_method_id)

        if selected is None:
            if cvv:
                raise NotFoundError("Payment method not found")
            return PaymentInstrument(reference=payment_method_id)

        if selected.cvv_hash:
            if not cvv:
                raise BusinessRuleViolation("CVV is required for this payment method")
            if not verify_cvv(cvv, selected.cvv_hash):
                raise BusinessRuleViolation("Invalid CVV")

        decrypted = decrypt_payment_method(selected)
        return PaymentInstrument(
            reference=selected.id,
            card_number=decrypted.card_number,
            cardholder_name=decrypted.cardholder_name,
            expiry_month=decrypted.expiry_month,
            expiry_year=decrypted.expiry_year,
        )

    if one_time_payment:
        return PaymentInstrument(
            reference=f"one_time_{one_time_payment.card_brand}_{one_time_payment.card_number[-4:]}",
            card_number=one_time_payment.card_number,
            cardholder_name=one_time_payment.cardholder_name,
            expiry_month=one_time_payment.expiry_month,
            expiry_year=one_time_payment.expiry_year,
        )

    raise BusinessRuleViolation("Either paymentMethodId or oneTimePayment must be provided")
