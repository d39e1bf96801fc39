"""
Invoice payload codec.

The payload is an opaque string Telegram hands back on pre_checkout_query and
successful_payment. Format: <catalog>|<productId>|<userId>
"""
from models import InvoicePayload

PAYLOAD_DELIMITER = "|"
MAX_PAYLOAD_BYTES = 128  # Telegram limit for invoice payloads


class InvoicePayloadError(ValueError):
    """Payload cannot be encoded or decoded."""
    pass


def encode_invoice_payload(catalog: str, product_id: str, user_id: str) -> str:
    fields = {"catalog": catalog, "product_id": product_id, "user_id": user_id}
    for name, value in fields.items():
        if not value:
            raise InvoicePayloadError(f"Invoice payload field '{name}' is empty")
        if PAYLOAD_DELIMITER in value:
            raise InvoicePayloadError(
                f"Invoice payload field '{name}' contains the delimiter {PAYLOAD_DELIMITER!r}: {value!r}"
            )

    payload = PAYLOAD_DELIMITER.join([catalog, product_id, user_id])
    if len(payload.encode("utf-8")) > MAX_PAYLOAD_BYTES:
        raise InvoicePayloadError(f"Invoice payload exceeds {MAX_PAYLOAD_BYTES} bytes: {payload!r}")
    return payload


def decode_invoice_payload(payload: str) -> InvoicePayload:
    parts = (payload or "").split(PAYLOAD_DELIMITER)
    if len(parts) != 3 or not all(parts):
        raise InvoicePayloadError(f"Invalid invoice payload received: {payload!r}")

    catalog, product_id, user_id = parts
    return InvoicePayload(catalog=catalog, product_id=product_id, user_id=user_id)
