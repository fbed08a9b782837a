"""Builders for checkout payloads used across tests."""

from storefront.schemas.orders import CheckoutRequest

CUSTOMER = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "address": "12 Analytical Row",
    "city": "London",
    "zipCode": "N1 9GU",
}


def checkout_payload(items, **customer_overrides) -> dict:
    """items is a list of (product_id, quantity) pairs."""
    customer = dict(CUSTOMER, **customer_overrides)
    return {
        "customer": customer,
        "items": [{"id": product_id, "quantity": quantity} for product_id, quantity in items],
    }


def checkout_request(items, **customer_overrides) -> CheckoutRequest:
    return CheckoutRequest.model_validate(checkout_payload(items, **customer_overrides))
