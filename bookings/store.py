# ==================== BOOKINGS/STORE.PY ====================
"""Inventory store: the only place that reads and writes spot availability.

Every counter change is a single conditional UPDATE, so concurrent bookings
and cancellations cannot lose updates or push the counter out of
``0 <= available_spots <= total_spots``.
"""
import functools
import logging

from django.db import InterfaceError, OperationalError
from django.db.models import F
from django.utils import timezone

from parking.models import ParkingSpot
from utils.exceptions import AvailabilityAtBound, StoreUnavailable
from .models import Booking

logger = logging.getLogger(__name__)


def surface_store_errors(func):
    """Report database outages as StoreUnavailable; retrying is the caller's decision"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Inventory store error in {func.__name__}: {str(e)}")
            raise StoreUnavailable() from e
    return wrapper


class InventoryStore:

    @staticmethod
    @surface_store_errors
    def get_spot(spot_id):
        return ParkingSpot.objects.filter(pk=spot_id).first()

    @staticmethod
    @surface_store_errors
    def get_booking(booking_id):
        return Booking.objects.select_related('spot', 'user').filter(pk=booking_id).first()

    @staticmethod
    @surface_store_errors
    def create_booking(**fields):
        return Booking.objects.create(**fields)

    @staticmethod
    @surface_store_errors
    def update_booking(booking_id, expected=None, **fields):
        """Compare-and-set update of a booking.

        ``expected`` maps field lookups to the values the row must still have;
        returns False when the row no longer matches (or does not exist).
        """
        fields['updated_at'] = timezone.now()
        updated = Booking.objects.filter(pk=booking_id, **(expected or {})).update(**fields)
        return updated == 1

    @staticmethod
    @surface_store_errors
    def adjust_availability(spot_id, delta):
        """Atomically add ``delta`` to a spot's available_spots and return the new count.

        Raises AvailabilityAtBound if the change would leave the counter
        below zero or above total_spots.
        """
        queryset = ParkingSpot.objects.filter(pk=spot_id)
        if delta < 0:
            queryset = queryset.filter(available_spots__gte=-delta)
        else:
            queryset = queryset.filter(available_spots__lte=F('total_spots') - delta)

        updated = queryset.update(
            available_spots=F('available_spots') + delta,
            updated_at=timezone.now(),
        )
        if not updated:
            raise AvailabilityAtBound(spot_id, delta)

        return ParkingSpot.objects.values_list('available_spots', flat=True).get(pk=spot_id)

    @staticmethod
    @surface_store_errors
    def bookings_for_user(user_id):
        return list(Booking.objects.filter(user_id=user_id).order_by('-created_at'))

    @staticmethod
    @surface_store_errors
    def bookings_for_spot(spot_id):
        return list(Booking.objects.filter(spot_id=spot_id).order_by('-created_at'))

    @staticmethod
    @surface_store_errors
    def has_active_bookings(spot_id):
        return Booking.objects.filter(spot_id=spot_id, booking_status='active').exists()
