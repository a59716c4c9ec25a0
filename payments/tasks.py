# ==================== PAYMENTS/TASKS.PY (CELERY TASKS) ====================
from celery import shared_task
from django.db.models import Q
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


@shared_task
def close_abandoned_payments():
    """Fail payment attempts left open after their booking stopped waiting for payment"""
    from .models import Payment

    now = timezone.now()
    closed = Payment.objects.filter(status='initiated').filter(
        ~Q(booking__booking_status='active') | ~Q(booking__payment_status='pending')
    ).update(
        status='failed',
        failure_reason='Booking no longer awaiting payment',
        resolved_at=now,
        updated_at=now,
    )

    if closed:
        logger.info(f"Closed {closed} abandoned payment attempts")
    return closed
