"""Order DRF serializers for API input.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``; responses are rendered from
``OrderOutputDTO``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus


class AddressSerializer(serializers.Serializer):
    """Validates a billing or shipping address."""

    name = serializers.CharField(min_length=2, max_length=255)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(min_length=10, max_length=20)
    street = serializers.CharField(min_length=5, max_length=500)
    city = serializers.CharField(min_length=2, max_length=100)
    state = serializers.CharField(min_length=2, max_length=100)
    postal_code = serializers.CharField(min_length=3, max_length=20)
    country = serializers.CharField(min_length=2, max_length=100)


class PlaceOrderItemSerializer(serializers.Serializer):
    """Validates a single cart line in an order placement request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=100)


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the order placement request payload."""

    items = PlaceOrderItemSerializer(many=True, allow_empty=False, max_length=50)
    billing_address = AddressSerializer()
    shipping_address = AddressSerializer(required=False, allow_null=True)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=1000
    )

    def validate_items(self, value):
        product_ids = [item["product_id"] for item in value]
        if len(product_ids) != len(set(product_ids)):
            raise serializers.ValidationError(
                "Duplicate product IDs are not allowed in the same order."
            )
        return value


class UpdateOrderStatusSerializer(serializers.Serializer):
    """Only the status of an order may change through the API."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
