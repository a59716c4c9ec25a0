# ==================== PAYMENTS/SERIALIZERS.PY ====================
from rest_framework import serializers
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(source='booking.id', read_only=True)
    booking_code = serializers.CharField(source='booking.booking_code', read_only=True)
    payment_status = serializers.CharField(source='booking.payment_status', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'booking_id', 'booking_code', 'correlation_id', 'method', 'amount',
            'status', 'payment_status', 'transaction_ref', 'failure_reason',
            'created_at', 'resolved_at'
        ]
        read_only_fields = fields


class PaymentInitiateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    payment_method = serializers.ChoiceField(choices=['esewa', 'khalti'])


class PaymentCallbackSerializer(serializers.Serializer):
    correlation_id = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=['success', 'failed'])
    transaction_ref = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
