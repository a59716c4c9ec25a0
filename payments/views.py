# ==================== PAYMENTS/VIEWS.PY ====================
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
import logging

from bookings.store import InventoryStore
from .models import Payment
from .serializers import PaymentSerializer, PaymentInitiateSerializer
from .services import PaymentGatewayService

logger = logging.getLogger(__name__)


class PaymentViewSet(viewsets.ViewSet):
    """Start wallet payments for bookings and check their status"""
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=['post'])
    def initiate_payment(self, request):
        """Initiate payment for a booking

        Body: {
            "booking_id": 1,
            "payment_method": "esewa|khalti"
        }
        """
        serializer = PaymentInitiateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        booking = InventoryStore.get_booking(serializer.validated_data['booking_id'])
        if booking is None:
            return Response(
                {'error': 'Booking not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        if request.user != booking.user:
            return Response(
                {'error': 'Only the booking user can pay for this booking'},
                status=status.HTTP_403_FORBIDDEN
            )

        payment, redirect = PaymentGatewayService.initiate(
            booking,
            serializer.validated_data['payment_method']
        )

        return Response({
            'payment_id': payment.id,
            'correlation_id': payment.correlation_id,
            'amount': payment.amount,
            'redirect': redirect,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def payment_status(self, request):
        """Payment attempts for a booking

        Query params: booking_id
        """
        try:
            booking_id = int(request.query_params.get('booking_id'))
        except (TypeError, ValueError):
            return Response(
                {'error': 'booking_id is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        booking = InventoryStore.get_booking(booking_id)
        if booking is None or (request.user != booking.user and request.user.role != 'admin'):
            return Response(
                {'error': 'Booking not found'},
                status=status.HTTP_404_NOT_FOUND
            )

        payments = Payment.objects.filter(booking=booking).select_related('booking')
        return Response({
            'booking_id': booking.id,
            'payment_status': booking.payment_status,
            'booking_status': booking.booking_status,
            'payments': PaymentSerializer(payments, many=True).data,
        })
