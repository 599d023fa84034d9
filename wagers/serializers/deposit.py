from rest_framework import serializers


class DepositSerializer(serializers.Serializer):
    """Validates the shape of deposit requests; the minimum is enforced by the ledger."""

    amount = serializers.IntegerField()
