from rest_framework import serializers


class WithdrawSerializer(serializers.Serializer):
    """
    Validates the shape of withdrawal requests.

    ``iban`` and ``account_name`` may be left out here so the ledger can
    answer with its own MISSING_DESTINATION error.
    """

    amount = serializers.IntegerField()
    iban = serializers.CharField(required=False, allow_blank=True, default="")
    account_name = serializers.CharField(required=False, allow_blank=True, default="")
