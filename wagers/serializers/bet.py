from rest_framework import serializers


class PlaceBetSerializer(serializers.Serializer):
    """
    Shape check for bet requests.

    Whether the game exists, the pick is in range and the stake is affordable
    is decided by the engine, not here.
    """

    game = serializers.CharField()
    stake = serializers.IntegerField()
    game_data = serializers.DictField(required=False, default=dict)


class BetRecordSerializer(serializers.Serializer):
    """Read-only serializer for bet responses and history."""

    id = serializers.UUIDField(read_only=True)
    account_id = serializers.UUIDField(read_only=True)
    game = serializers.CharField(read_only=True)
    stake = serializers.IntegerField(read_only=True)
    won = serializers.BooleanField(read_only=True)
    prize = serializers.IntegerField(read_only=True)
    net_result = serializers.IntegerField(read_only=True)
    outcome = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField(read_only=True)

    def get_outcome(self, obj):
        return obj.outcome.as_dict()


class BetHistoryQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1)
