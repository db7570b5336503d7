"""Tests for the payment method vault."""

import json

import pytest

from swish.core.encryption import DecryptionError, encrypt, hash_data
from swish.schemas.payment_schema import PaymentMethodIn
from swish.services.payment_vault import (
    card_fingerprint,
    decrypt_payment_method,
    dump_payment_methods,
    encrypt_payment_method,
    find_payment_method,
    get_payment_method_metadata,
    is_duplicate_card,
    load_payment_methods,
    verify_cvv,
)

CARD_NUMBER = "4242424242424242"


def raw_method(**overrides) -> PaymentMethodIn:
    data = {
        "card_number": CARD_NUMBER,
        "cardholder_name": "Jordan Miles",
        "expiry_month": "08",
        "expiry_year": "29",
        "cvv": "123",
        "card_brand": "visa",
        "nickname": "Everyday",
    }
    data.update(overrides)
    return PaymentMethodIn(**data)


class TestEncryptPaymentMethod:
    def test_splits_secret_and_display_fields(self) -> None:
        stored = encrypt_payment_method(raw_method())

        assert stored.id.startswith("card_")
        assert stored.last4 == "4242"
        assert stored.card_brand == "visa"
        assert stored.expiry_month == "08"
        assert stored.expiry_year == "29"
        assert stored.nickname == "Everyday"
        assert stored.fingerprint == hash_data(CARD_NUMBER)
        assert stored.cvv_hash == hash_data("123")
        assert CARD_NUMBER not in stored.encrypted_data
        assert "Jordan Miles" not in stored.encrypted_data

    def test_decrypt_recovers_card_number_and_name(self) -> None:
        stored = encrypt_payment_method(raw_method())

        decrypted = decrypt_payment_method(stored)

        assert decrypted.id == stored.id
        assert decrypted.card_number == CARD_NUMBER
        assert decrypted.cardholder_name == "Jordan Miles"
        assert decrypted.last4 == "4242"

    def test_formatted_card_number_is_normalized(self) -> None:
        stored = encrypt_payment_method(raw_method(card_number="4242 4242-4242 4242"))

        assert stored.fingerprint == hash_data(CARD_NUMBER)
        assert decrypt_payment_method(stored).card_number == CARD_NUMBER

    def test_ids_are_unique(self) -> None:
        assert encrypt_payment_method(raw_method()).id != encrypt_payment_method(raw_method()).id

    def test_corrupted_blob_raises_generic_error(self, caplog) -> None:
        stored = encrypt_payment_method(raw_method())
        stored.encrypted_data = stored.encrypted_data[:-8] + "AAAAAAA="

        with pytest.raises(DecryptionError, match="Failed to decrypt payment method"):
            decrypt_payment_method(stored)

        assert stored.id in caplog.text
        assert stored.encrypted_data not in caplog.text

    def test_blob_with_wrong_shape_raises(self) -> None:
        stored = encrypt_payment_method(raw_method())
        stored.encrypted_data = encrypt(json.dumps({"unexpected": True}))

        with pytest.raises(DecryptionError):
            decrypt_payment_method(stored)


class TestMetadata:
    def test_metadata_has_no_secret_fields(self) -> None:
        stored = encrypt_payment_method(raw_method())

        metadata = get_payment_method_metadata(stored)
        dumped = metadata.model_dump(by_alias=True)
        serialized = metadata.model_dump_json(by_alias=True)

        assert set(dumped) == {
            "id", "cardBrand", "last4", "expiryMonth", "expiryYear", "nickname", "createdAt", "updatedAt",
        }
        for secret in (CARD_NUMBER, "Jordan Miles", stored.encrypted_data, stored.cvv_hash, stored.fingerprint):
            assert secret not in serialized


class TestDuplicateDetection:
    def test_same_number_is_duplicate(self) -> None:
        methods = [encrypt_payment_method(raw_method())]

        assert is_duplicate_card(methods, CARD_NUMBER)

    def test_resubmitted_with_formatting_is_duplicate(self) -> None:
        methods = [encrypt_payment_method(raw_method())]

        assert is_duplicate_card(methods, "4242-4242-4242-4242")
        assert is_duplicate_card(methods, "4242 4242 4242 4242")

    def test_other_number_is_not_duplicate(self) -> None:
        methods = [encrypt_payment_method(raw_method())]

        assert not is_duplicate_card(methods, "5555555555554444")
        assert not is_duplicate_card([], CARD_NUMBER)

    def test_fingerprint_matches_hash_of_normalized_number(self) -> None:
        assert card_fingerprint("4242 4242 4242 4242") == hash_data(CARD_NUMBER)


class TestStorageHelpers:
    def test_dump_and_load_preserve_records(self) -> None:
        methods = [encrypt_payment_method(raw_method()), encrypt_payment_method(raw_method(card_number="5555555555554444"))]

        loaded = load_payment_methods(dump_payment_methods(methods))

        assert [m.id for m in loaded] == [m.id for m in methods]
        assert decrypt_payment_method(loaded[1]).card_number == "5555555555554444"

    def test_load_skips_malformed_entries(self) -> None:
        good = dump_payment_methods([encrypt_payment_method(raw_method())])

        loaded = load_payment_methods(good + [{"id": "card_broken"}])

        assert len(loaded) == 1

    def test_load_handles_none(self) -> None:
        assert load_payment_methods(None) == []

    def test_find_payment_method(self) -> None:
        methods = [encrypt_payment_method(raw_method())]

        assert find_payment_method(methods, methods[0].id) is methods[0]
        assert find_payment_method(methods, "card_missing") is None

    def test_verify_cvv(self) -> None:
        stored = encrypt_payment_method(raw_method())

        assert verify_cvv("123", stored.cvv_hash)
        assert not verify_cvv("124", stored.cvv_hash)


class TestPaymentMethodInput:
    @pytest.mark.parametrize("card_number", ["4242", "4242abcd42424242", "42424242424242424242"])
    def test_rejects_bad_card_numbers(self, card_number: str) -> None:
        with pytest.raises(ValueError):
            raw_method(card_number=card_number)

    @pytest.mark.parametrize("field,value", [("expiry_month", "13"), ("expiry_year", "2029"), ("cvv", "12")])
    def test_rejects_bad_fields(self, field: str, value: str) -> None:
        with pytest.raises(ValueError):
            raw_method(**{field: value})

    def test_repr_hides_secrets(self) -> None:
        text = repr(raw_method())

        assert CARD_NUMBER not in text
        assert "Jordan Miles" not in text
        assert "123" not in text
