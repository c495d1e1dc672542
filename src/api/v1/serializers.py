"""Serializers for shared reference data exposed by API v1."""
from rest_framework import serializers

from stores.models import Store


class StoreSerializer(serializers.ModelSerializer):
    """Serializer for Store model."""

    class Meta:
        model = Store
        fields = ["id", "number", "name", "region", "is_active"]
        read_only_fields = fields
