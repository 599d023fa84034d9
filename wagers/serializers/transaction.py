from rest_framework import serializers


class TransactionSerializer(serializers.Serializer):
    """Read-only serializer for transaction responses."""

    id = serializers.UUIDField(read_only=True)
    account_id = serializers.UUIDField(read_only=True)
    amount = serializers.IntegerField(read_only=True)
    transaction_type = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    destination = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField(read_only=True)

    def get_destination(self, obj):
        return obj.destination.as_dict() if obj.destination else None
