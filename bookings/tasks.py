# ==================== BOOKINGS/TASKS.PY (CELERY TASKS) ====================
from celery import shared_task
from django.conf import settings
from django.utils import timezone
from datetime import timedelta
import logging

from .models import Booking
from .services import BookingLifecycle

logger = logging.getLogger(__name__)


@shared_task
def expire_unpaid_bookings():
    """Expire pending bookings whose payment window has elapsed"""
    now = timezone.now()
    window_start = now - timedelta(minutes=settings.PAYMENT_WINDOW_MINUTES)
    candidates = Booking.objects.filter(
        booking_status='active',
        payment_status='pending',
        created_at__lte=window_start
    ).values_list('id', flat=True)

    expired = 0
    for booking_id in list(candidates):
        # Each transition re-checks the status, so a payment landing mid-sweep wins
        if BookingLifecycle.expire_unpaid_booking(booking_id, now=now):
            expired += 1

    logger.info(f"Expired {expired} unpaid bookings")
    return expired


@shared_task
def auto_complete_bookings():
    """Automatically complete paid bookings that have ended"""
    now = timezone.now()
    ended = Booking.objects.filter(
        booking_status='active',
        payment_status='paid',
        end_time__lt=now
    ).values_list('id', flat=True)

    completed = 0
    for booking_id in list(ended):
        if BookingLifecycle.complete_booking(booking_id, now=now):
            completed += 1

    logger.info(f"Auto-completed {completed} bookings")
    return completed
