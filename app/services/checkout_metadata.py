import json
from typing import Dict, List

from app.schemas.payment_schemas import CheckoutLine, CheckoutMetadata

# Stripe caps metadata values at 500 characters.
METADATA_VALUE_LIMIT = 500
ITEMS_KEY = "items"


def encode_items(meta: CheckoutMetadata) -> Dict[str, str]:
    """
    Serialize the line payload into metadata keys. Payloads longer than one
    metadata value are split over items, items_1, items_2, ...
    """
    raw = meta.model_dump_json()
    chunks = [
        raw[i:i + METADATA_VALUE_LIMIT]
        for i in range(0, len(raw), METADATA_VALUE_LIMIT)
    ]

    encoded = {ITEMS_KEY: chunks[0]}
    for index, chunk in enumerate(chunks[1:], start=1):
        encoded[f"{ITEMS_KEY}_{index}"] = chunk
    return encoded


def decode_items(metadata: Dict[str, str]) -> List[CheckoutLine]:
    """Inverse of encode_items. Sessions created with a bare comma-joined
    `ebook_ids` value are still understood."""
    if ITEMS_KEY in metadata:
        raw = metadata[ITEMS_KEY]
        index = 1
        while f"{ITEMS_KEY}_{index}" in metadata:
            raw += metadata[f"{ITEMS_KEY}_{index}"]
            index += 1

        meta = CheckoutMetadata.model_validate(json.loads(raw))
        if meta.v != 1:
            raise ValueError(f"Unsupported checkout metadata version: {meta.v}")
        return meta.items

    legacy = metadata.get("ebook_ids")
    if legacy:
        return [
            CheckoutLine(ebook_id=int(part))
            for part in legacy.split(",")
            if part.strip()
        ]

    return []
