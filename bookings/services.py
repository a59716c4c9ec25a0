import logging
import math
import random
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from utils.exceptions import (
    AvailabilityAtBound, BookingNotFound, InvalidTimeRange, InvalidTransition,
    SpotNotFound, SpotUnavailable,
)
from .store import InventoryStore

logger = logging.getLogger(__name__)

BOOKING_CODE_ATTEMPTS = 3


def calculate_booking_hours(start_time, end_time):
    """Whole hours billed for a slot, always rounded up (61 minutes bills 2 hours)"""
    return math.ceil((end_time - start_time) / timedelta(hours=1))


def calculate_total_amount(price_per_hour, start_time, end_time):
    return price_per_hour * calculate_booking_hours(start_time, end_time)


def generate_booking_code():
    timestamp = int(timezone.now().timestamp() * 1000)
    return f"BK{timestamp}{random.randint(0, 9999):04d}"


def validate_time_slot(start_time, end_time, now=None):
    now = now or timezone.now()
    if start_time < now:
        raise InvalidTimeRange('Start time cannot be in the past.')
    if end_time <= start_time:
        raise InvalidTimeRange('End time must be after start time.')
    if end_time - start_time > timedelta(hours=settings.MAX_BOOKING_HOURS):
        raise InvalidTimeRange(f'Booking cannot exceed {settings.MAX_BOOKING_HOURS} hours.')


class BookingLifecycle:
    """State machine for bookings and the availability hold each one carries.

    PENDING (active/pending) -> CONFIRMED (active/paid) -> COMPLETED
    PENDING or CONFIRMED -> CANCELLED
    PENDING -> EXPIRED (payment window elapsed or payment failed)
    """

    @staticmethod
    def create_booking(user, spot_id, start_time, end_time, now=None):
        """Validate the slot, take one unit of the spot's capacity and persist a pending booking"""
        validate_time_slot(start_time, end_time, now=now)

        spot = InventoryStore.get_spot(spot_id)
        if spot is None:
            raise SpotNotFound()
        if spot.is_full:
            raise SpotUnavailable()

        hours = calculate_booking_hours(start_time, end_time)
        fields = {
            'user': user,
            'spot': spot,
            'spot_name': spot.name,
            'spot_address': spot.address,
            'start_time': start_time,
            'end_time': end_time,
            'hours': hours,
            'total_amount': calculate_total_amount(spot.price_per_hour, start_time, end_time),
            'payment_status': 'pending',
            'booking_status': 'active',
        }

        with transaction.atomic():
            try:
                remaining = InventoryStore.adjust_availability(spot.id, -1)
            except AvailabilityAtBound:
                raise SpotUnavailable()

            booking = BookingLifecycle._insert_with_unique_code(fields)

        logger.info(f"Booking {booking.booking_code} created for spot {spot.id}; {remaining} spots left")
        return booking

    @staticmethod
    def _insert_with_unique_code(fields):
        for attempt in range(1, BOOKING_CODE_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    return InventoryStore.create_booking(booking_code=generate_booking_code(), **fields)
            except IntegrityError:
                if attempt == BOOKING_CODE_ATTEMPTS:
                    raise
                logger.warning(f"Booking code collision, retrying ({attempt}/{BOOKING_CODE_ATTEMPTS})")

    @staticmethod
    def confirm_payment(booking_id, transaction_ref, method):
        """Mark a pending booking as paid; confirming an already paid booking is a no-op"""
        now = timezone.now()
        confirmed = InventoryStore.update_booking(
            booking_id,
            expected={'payment_status': 'pending', 'booking_status': 'active'},
            payment_status='paid',
            payment_method=method,
            transaction_ref=transaction_ref,
            paid_at=now,
        )

        booking = InventoryStore.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound()

        if confirmed:
            logger.info(f"Payment confirmed for booking {booking.booking_code} via {method}: {transaction_ref}")
            return booking

        if booking.payment_status == 'paid':
            logger.info(f"Booking {booking.booking_code} already paid; ignoring confirmation {transaction_ref}")
            return booking

        raise InvalidTransition(
            f'Cannot confirm payment for a {booking.booking_status} booking with {booking.payment_status} payment.'
        )

    @staticmethod
    def cancel_booking(booking_id):
        """Cancel an active booking and give its spot back"""
        with transaction.atomic():
            cancelled = InventoryStore.update_booking(
                booking_id,
                expected={'booking_status': 'active'},
                booking_status='cancelled',
                cancelled_at=timezone.now(),
            )
            booking = InventoryStore.get_booking(booking_id)
            if booking is None:
                raise BookingNotFound()
            if not cancelled:
                raise InvalidTransition(f'Cannot cancel a {booking.booking_status} booking.')

            BookingLifecycle._release_hold(booking)

        logger.info(f"Booking {booking.booking_code} cancelled")
        return booking

    @staticmethod
    def expire_unpaid_booking(booking_id, now=None):
        """Expire a booking whose payment window elapsed without payment.

        Returns True if the booking was expired, False if it was paid, settled,
        or still inside its window.
        """
        now = now or timezone.now()
        window_start = now - timedelta(minutes=settings.PAYMENT_WINDOW_MINUTES)
        return BookingLifecycle._settle_unpaid(
            booking_id,
            extra_expected={'created_at__lte': window_start},
            reason='payment window elapsed',
        )

    @staticmethod
    def fail_payment(booking_id, reason=''):
        """Gateway reported failure: release the hold the same way expiry does"""
        return BookingLifecycle._settle_unpaid(booking_id, reason=reason or 'payment failed')

    @staticmethod
    def _settle_unpaid(booking_id, extra_expected=None, reason=''):
        expected = {'payment_status': 'pending', 'booking_status': 'active'}
        expected.update(extra_expected or {})

        with transaction.atomic():
            expired = InventoryStore.update_booking(
                booking_id,
                expected=expected,
                booking_status='expired',
                payment_status='failed',
            )
            booking = InventoryStore.get_booking(booking_id)
            if booking is None:
                raise BookingNotFound()
            if not expired:
                return False

            BookingLifecycle._release_hold(booking)

        logger.info(f"Booking {booking.booking_code} expired: {reason}")
        return True

    @staticmethod
    def complete_booking(booking_id, now=None):
        """Complete a paid booking whose end time has passed. Returns True if it transitioned."""
        now = now or timezone.now()
        with transaction.atomic():
            completed = InventoryStore.update_booking(
                booking_id,
                expected={'booking_status': 'active', 'payment_status': 'paid', 'end_time__lt': now},
                booking_status='completed',
                completed_at=now,
            )
            booking = InventoryStore.get_booking(booking_id)
            if booking is None:
                raise BookingNotFound()
            if not completed:
                return False

            if settings.RELEASE_HOLD_ON_COMPLETION:
                BookingLifecycle._release_hold(booking)

        logger.info(f"Booking {booking.booking_code} completed")
        return True

    @staticmethod
    def _release_hold(booking):
        if booking.spot_id is None:
            return
        try:
            InventoryStore.adjust_availability(booking.spot_id, 1)
        except AvailabilityAtBound:
            logger.warning(
                f"Spot {booking.spot_id} already at full capacity while releasing booking {booking.booking_code}"
            )
