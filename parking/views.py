# ============================= PARKING SPOT VIEWS =============================
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from rest_framework import viewsets, status, permissions, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from bookings.serializers import BookingListSerializer
from bookings.store import InventoryStore
from utils.distance_calculator import find_nearest, sort_by_distance
from utils.exceptions import SpotInUse
from utils.permissions import IsOwner, IsOwnerRole
from .filters import ParkingSpotFilter
from .models import ParkingSpot, Rating
from .serializers import (
    ParkingSpotListSerializer,
    ParkingSpotDetailSerializer,
    ParkingSpotCreateUpdateSerializer,
    RatingSerializer,
)

logger = logging.getLogger(__name__)


def parse_position(query_params):
    """Observer position from ?lat=&lng=, falling back to the default map location"""
    lat = query_params.get('lat')
    lng = query_params.get('lng')
    if lat is None and lng is None:
        return settings.DEFAULT_LOCATION

    latitude = float(lat)
    longitude = float(lng)
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValueError('Coordinates out of range')
    return latitude, longitude


class ParkingSpotViewSet(viewsets.ModelViewSet):
    """Parking spot listing, search and owner management"""

    queryset = ParkingSpot.objects.select_related('owner')
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_class = ParkingSpotFilter
    search_fields = ['name', 'address', 'description']
    ordering_fields = ['created_at', 'rating', 'price_per_hour', 'available_spots']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action in ['list', 'my_spots', 'nearby', 'nearest']:
            return ParkingSpotListSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return ParkingSpotCreateUpdateSerializer
        elif self.action in ['rate', 'ratings']:
            return RatingSerializer
        return ParkingSpotDetailSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve', 'nearby', 'nearest', 'ratings']:
            permission_classes = [permissions.AllowAny]
        elif self.action in ['create', 'my_spots']:
            permission_classes = [IsOwnerRole]
        elif self.action == 'rate':
            permission_classes = [permissions.IsAuthenticated]
        else:
            permission_classes = [permissions.IsAuthenticated, IsOwner]
        return [permission() for permission in permission_classes]

    def perform_create(self, serializer):
        spot = serializer.save()
        logger.info(f"Parking spot {spot.id} created by {self.request.user.username}")

    def perform_destroy(self, instance):
        if InventoryStore.has_active_bookings(instance.id):
            raise SpotInUse()
        logger.info(f"Parking spot {instance.id} deleted by {self.request.user.username}")
        instance.delete()

    def _ranked_spots(self, request):
        """Spots with free capacity ranked by distance from the requested position"""
        position = parse_position(request.query_params)
        spots = self.filter_queryset(self.get_queryset()).filter(available_spots__gt=0)
        return position, list(spots)

    @action(detail=False, methods=['get'])
    def nearby(self, request):
        """Parking spots near a location, nearest first
        Query params: lat, lng, radius (in km, optional)

        Example: /api/v1/parking-spots/nearby/?lat=27.7172&lng=85.3240&radius=5
        """
        try:
            position, spots = self._ranked_spots(request)
            radius = request.query_params.get('radius')
            radius = float(radius) if radius is not None else None
        except (TypeError, ValueError):
            return Response(
                {'error': 'Invalid latitude, longitude, or radius'},
                status=status.HTTP_400_BAD_REQUEST
            )

        results = []
        for spot, distance in sort_by_distance(position, spots):
            if radius is not None and distance > radius:
                break
            spot.distance = distance
            results.append(spot)

        serializer = self.get_serializer(results, many=True)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def nearest(self, request):
        """The single closest parking spot with free capacity"""
        try:
            position, spots = self._ranked_spots(request)
        except (TypeError, ValueError):
            return Response(
                {'error': 'Invalid latitude or longitude'},
                status=status.HTTP_400_BAD_REQUEST
            )

        nearest = find_nearest(position, spots)
        if nearest is None:
            return Response(
                {'error': 'No parking spots available nearby'},
                status=status.HTTP_404_NOT_FOUND
            )

        spot, distance = nearest
        spot.distance = distance
        return Response(self.get_serializer(spot).data)

    @action(detail=False, methods=['get'])
    def my_spots(self, request):
        """Get all parking spots owned by current user"""
        spots = ParkingSpot.objects.filter(owner=request.user)
        serializer = self.get_serializer(spots, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def bookings(self, request, pk=None):
        """All bookings for one of the owner's spots"""
        spot = self.get_object()
        serializer = BookingListSerializer(InventoryStore.bookings_for_spot(spot.id), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def owner_stats(self, request, pk=None):
        """Get parking spot statistics (owner only)"""
        spot = self.get_object()
        bookings = spot.bookings.all()
        paid = bookings.filter(payment_status='paid')

        return Response({
            'total_bookings': bookings.count(),
            'active_bookings': bookings.filter(booking_status='active').count(),
            'completed_bookings': bookings.filter(booking_status='completed').count(),
            'cancelled_bookings': bookings.filter(booking_status='cancelled').count(),
            'expired_bookings': bookings.filter(booking_status='expired').count(),
            'total_revenue': sum([b.total_amount for b in paid], Decimal('0')),
            'available_spots': spot.available_spots,
            'total_spots': spot.total_spots,
            'occupancy_rate': round(
                (spot.total_spots - spot.available_spots) / spot.total_spots * 100, 2
            ) if spot.total_spots > 0 else 0
        })

    @action(detail=True, methods=['post'])
    def rate(self, request, pk=None):
        """Rate a parking spot

        Body: { "rating": 1-5, "comment": "optional" }
        """
        spot = self.get_object()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if Rating.objects.filter(spot=spot, user=request.user).exists():
            return Response(
                {'error': 'You have already rated this parking spot'},
                status=status.HTTP_400_BAD_REQUEST
            )

        with transaction.atomic():
            spot = ParkingSpot.objects.select_for_update().get(pk=spot.pk)
            rating = serializer.save(spot=spot, user=request.user)

            total = spot.total_ratings + 1
            average = (spot.rating * spot.total_ratings + rating.rating) / total
            spot.rating = average.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
            spot.total_ratings = total
            spot.save(update_fields=['rating', 'total_ratings', 'updated_at'])

        return Response(RatingSerializer(rating).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def ratings(self, request, pk=None):
        """Latest ratings for a parking spot"""
        spot = self.get_object()
        serializer = self.get_serializer(spot.ratings.select_related('user')[:50], many=True)
        return Response(serializer.data)
