# ==================== BOOKINGS/SERIALIZERS.PY ====================
from rest_framework import serializers
from .models import Booking
from .services import BookingLifecycle


class BookingCreateSerializer(serializers.ModelSerializer):

    class Meta:
        model = Booking
        fields = ['id', 'spot', 'start_time', 'end_time']
        read_only_fields = ['id']

    def create(self, validated_data):
        user = self.context['request'].user
        return BookingLifecycle.create_booking(
            user,
            validated_data['spot'].id,
            validated_data['start_time'],
            validated_data['end_time'],
        )


class BookingListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = ['id', 'booking_code', 'spot', 'spot_name', 'start_time', 'end_time', 'hours',
                  'total_amount', 'payment_status', 'booking_status', 'created_at']
        read_only_fields = fields


class BookingDetailSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True)
    user_email = serializers.CharField(source='user.email', read_only=True)
    state = serializers.CharField(read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'booking_code', 'user', 'user_name', 'user_email', 'spot', 'spot_name',
                  'spot_address', 'start_time', 'end_time', 'hours', 'total_amount',
                  'payment_status', 'booking_status', 'state', 'payment_method', 'transaction_ref',
                  'created_at', 'updated_at', 'paid_at', 'cancelled_at', 'completed_at']
        read_only_fields = fields


class QRVerifySerializer(serializers.Serializer):
    payload = serializers.CharField()
