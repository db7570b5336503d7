"""
Payment method vault.

Raw card entries are split in two: the card number and cardholder name go
into one AES-GCM blob (`encrypted_data`), while brand, last four digits,
expiry and nickname stay in plaintext as display metadata. A SHA-256
fingerprint of the card number allows duplicate detection without
decrypting anything, and the CVV is kept only as a hash.

`get_payment_method_metadata` is the only projection that may be sent to a
client; `decrypt_payment_method` is for server-side settlement only.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import ValidationError

from swish.core.encryption import DecryptionError, decrypt, encrypt, hash_data, hash_matches
from swish.schemas.payment_schema import (
    DecryptedPaymentMethod,
    EncryptedPaymentMethod,
    PaymentMethodIn,
    PaymentMethodMetadata,
    normalize_card_number,
)

logger = logging.getLogger(__name__)


def new_payment_method_id() -> str:
    return f"card_{uuid.uuid4()}"


def card_fingerprint(card_number: str) -> str:
    return hash_data(normalize_card_number(card_number))


def encrypt_payment_method(raw: PaymentMethodIn, method_id: Optional[str] = None) -> EncryptedPaymentMethod:
    card_number = normalize_card_number(raw.card_number)
    sensitive = {
        "cardNumber": card_number,
        "cardholderName": raw.cardholder_name,
    }
    now = datetime.now(timezone.utc)

    return EncryptedPaymentMethod(
        id=method_id or new_payment_method_id(),
        encrypted_data=encrypt(json.dumps(sensitive)),
        card_brand=raw.card_brand,
        last4=card_number[-4:],
        expiry_month=raw.expiry_month,
        expiry_year=raw.expiry_year,
        nickname=raw.nickname,
        fingerprint=hash_data(card_number),
        cvv_hash=hash_data(raw.cvv) if raw.cvv else None,
        created_at=now,
        updated_at=now,
    )


def decrypt_payment_method(stored: EncryptedPaymentMethod) -> DecryptedPaymentMethod:
    try:
        sensitive = json.loads(decrypt(stored.encrypted_data))
        return DecryptedPaymentMethod(
            id=stored.id,
            card_number=sensitive["cardNumber"],
            cardholder_name=sensitive["cardholderName"],
            expiry_month=stored.expiry_month,
            expiry_year=stored.expiry_year,
            card_brand=stored.card_brand,
            last4=stored.last4,
            nickname=stored.nickname,
            created_at=stored.created_at,
        )
    except (DecryptionError, ValueError, KeyError, TypeError) as e:
        # record id only; never the blob or whatever came out of it
        logger.error("decrypt_payment_method failed for payment method %s", stored.id)
        raise DecryptionError("Failed to decrypt payment method") from e


def get_payment_method_metadata(stored: EncryptedPaymentMethod) -> PaymentMethodMetadata:
    return PaymentMethodMetadata(
        id=stored.id,
        card_brand=stored.card_brand,
        last4=stored.last4,
        expiry_month=stored.expiry_month,
        expiry_year=stored.expiry_year,
        nickname=stored.nickname,
        created_at=stored.created_at,
        updated_at=stored.updated_at,
    )


def is_duplicate_card(payment_methods: Iterable[EncryptedPaymentMethod], card_number: str) -> bool:
    fingerprint = card_fingerprint(card_number)
    return any(pm.fingerprint == fingerprint for pm in payment_methods)


def verify_cvv(candidate: str, stored_hash: Optional[str]) -> bool:
    return hash_matches(candidate, stored_hash)


def load_payment_methods(raw_methods: Optional[list[dict]]) -> list[EncryptedPaymentMethod]:
    """Parse the JSON column, skipping (and logging) entries that no longer validate."""
    methods = []
    for entry in raw_methods or []:
        try:
            methods.append(EncryptedPaymentMethod.model_validate(entry))
        except ValidationError:
            logger.error("Skipping malformed stored payment method %s", (entry or {}).get("id"))
    return methods


def dump_payment_methods(methods: Iterable[EncryptedPaymentMethod]) -> list[dict]:
    return [pm.model_dump(mode="json") for pm in methods]


def find_payment_method(methods: Iterable[EncryptedPaymentMethod], method_id: str) -> Optional[EncryptedPaymentMethod]:
    return next((pm for pm in methods if pm.id == method_id), None)
