import pytest

from app.schemas.payment_schemas import CheckoutLine, CheckoutMetadata
from app.services.checkout_metadata import METADATA_VALUE_LIMIT, decode_items, encode_items


def test_large_carts_are_split_across_metadata_keys():
    lines = [CheckoutLine(ebook_id=i, unit_amount=1000 + i) for i in range(1, 60)]

    encoded = encode_items(CheckoutMetadata(items=lines))

    assert "items_1" in encoded
    assert all(len(value) <= METADATA_VALUE_LIMIT for value in encoded.values())
    assert decode_items(encoded) == lines


def test_legacy_comma_joined_ids_are_understood():
    lines = decode_items({"user_id": "1", "ebook_ids": "4,7"})

    assert [l.ebook_id for l in lines] == [4, 7]
    assert all(l.unit_amount is None for l in lines)


def test_unknown_payload_version_is_rejected():
    with pytest.raises(ValueError):
        decode_items({"items": '{"v": 2, "items": []}'})


def test_missing_items_decode_to_empty():
    assert decode_items({"user_id": "1"}) == []
