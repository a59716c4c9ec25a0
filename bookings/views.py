# ============================= BOOKINGS VIEWS =============================
import logging

from django.db.models import Q
from rest_framework import viewsets, status, permissions, filters
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from utils.exceptions import InvalidQRPayload
from utils.permissions import IsBookingUser, IsBookingUserOrSpotOwner, IsOwnerRole
from .models import Booking
from .qr import build_qr_payload, decode_qr_payload, encode_qr_payload
from .serializers import (
    BookingCreateSerializer,
    BookingListSerializer,
    BookingDetailSerializer,
    QRVerifySerializer,
)
from .services import BookingLifecycle
from .store import InventoryStore

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.ModelViewSet):
    """Booking creation, cancellation and entry passes"""

    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ['get', 'post', 'head', 'options']
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['booking_status', 'payment_status', 'spot']
    search_fields = ['booking_code', 'spot_name', 'spot_address']
    ordering_fields = ['created_at', 'start_time', 'total_amount']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'create':
            return BookingCreateSerializer
        elif self.action in ['list', 'my_bookings']:
            return BookingListSerializer
        elif self.action == 'verify_qr':
            return QRVerifySerializer
        return BookingDetailSerializer

    def get_permissions(self):
        if self.action == 'cancel_booking':
            return [permissions.IsAuthenticated(), IsBookingUser()]
        if self.action == 'verify_qr':
            return [IsOwnerRole()]
        return [permissions.IsAuthenticated(), IsBookingUserOrSpotOwner()]

    def get_queryset(self):
        user = self.request.user
        queryset = Booking.objects.select_related('spot', 'user')
        if user.role == 'admin':
            return queryset
        # Users see their own bookings; owners also see bookings for their spots
        return queryset.filter(Q(user=user) | Q(spot__owner=user))

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = serializer.save()
        return Response(BookingDetailSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def my_bookings(self, request):
        """Bookings made by the current user"""
        bookings = InventoryStore.bookings_for_user(request.user.id)
        serializer = self.get_serializer(bookings, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def cancel_booking(self, request, pk=None):
        """Cancel an active booking and free its spot"""
        booking = self.get_object()
        booking = BookingLifecycle.cancel_booking(booking.id)
        return Response({
            'message': 'Booking cancelled successfully',
            'booking': BookingDetailSerializer(booking).data
        })

    @action(detail=True, methods=['get'])
    def qr(self, request, pk=None):
        """Entry pass for a paid, active booking"""
        booking = self.get_object()
        if booking.is_terminal or booking.payment_status != 'paid':
            return Response(
                {'error': 'QR code is available only for paid, active bookings'},
                status=status.HTTP_400_BAD_REQUEST
            )

        payload = build_qr_payload(booking)
        return Response({'payload': payload, 'qr_data': encode_qr_payload(payload)})

    @action(detail=False, methods=['post'])
    def verify_qr(self, request):
        """Owner scans a pass at the entrance

        Body: { "payload": "<scanned QR text>" }
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = decode_qr_payload(serializer.validated_data['payload'])

        booking = Booking.objects.select_related('spot', 'user').filter(
            booking_code=payload['bookingCode'],
            spot_id=payload['spotId'],
            user_id=payload['userId'],
        ).first()
        if booking is None or booking.spot is None:
            raise InvalidQRPayload('No booking matches this QR code.')

        if request.user.role != 'admin' and booking.spot.owner_id != request.user.id:
            raise PermissionDenied('This booking is for another owner\'s parking spot.')

        valid = not booking.is_terminal and booking.payment_status == 'paid'
        if not valid:
            logger.warning(f"Rejected QR for booking {booking.booking_code} in state {booking.state}")

        return Response({
            'valid': valid,
            'booking': BookingDetailSerializer(booking).data
        })
