from rest_framework import serializers


class AccountSerializer(serializers.Serializer):
    uuid = serializers.UUIDField(read_only=True)
    balance = serializers.IntegerField(read_only=True)
    total_staked = serializers.IntegerField(read_only=True)
    total_won = serializers.IntegerField(read_only=True)
    bet_count = serializers.IntegerField(read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class StatsSerializer(serializers.Serializer):
    balance = serializers.IntegerField(read_only=True)
    total_staked = serializers.IntegerField(read_only=True)
    total_won = serializers.IntegerField(read_only=True)
    bet_count = serializers.IntegerField(read_only=True)
