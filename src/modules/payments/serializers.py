from rest_framework import serializers


class InitiatePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class PaymentInitiationSerializer(serializers.Serializer):
    authorization_url = serializers.URLField(read_only=True)
    reference = serializers.CharField(read_only=True)
