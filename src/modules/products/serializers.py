"""Product DRF serializers for API input.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``; responses are rendered from
``ProductOutputDTO`` payloads (the same dicts the catalog cache stores).
"""

from __future__ import annotations

from rest_framework import serializers


class CreateProductSerializer(serializers.Serializer):
    """Validates the product creation payload."""

    sku = serializers.CharField(max_length=100)
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    sale_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    short_description = serializers.CharField(
        required=False, allow_blank=True, default=""
    )
    stock_quantity = serializers.IntegerField(min_value=0, required=False, default=0)
    is_active = serializers.BooleanField(required=False, default=True)
    category_id = serializers.UUIDField(required=False, allow_null=True)


class UpdateProductSerializer(serializers.Serializer):
    """Validates partial product updates; every field is optional."""

    sku = serializers.CharField(max_length=100, required=False)
    name = serializers.CharField(max_length=255, required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    sale_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True)
    short_description = serializers.CharField(required=False, allow_blank=True)
    stock_quantity = serializers.IntegerField(min_value=0, required=False)
    is_active = serializers.BooleanField(required=False)
    category_id = serializers.UUIDField(required=False)


class CartItemSerializer(serializers.Serializer):
    """A single cart line as sent by the storefront."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=100)


class ValidateCartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True, allow_empty=False, max_length=50)
