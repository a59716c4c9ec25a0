# ==================== PAYMENTS/MODELS.PY ====================
from django.db import models


class Payment(models.Model):
    """One attempt to pay for a booking through a wallet gateway.

    The correlation_id is handed to the gateway and comes back with the
    outcome, so callbacks can be matched without trusting their ordering.
    """
    STATUS_CHOICES = (
        ('initiated', 'Initiated'),
        ('succeeded', 'Succeeded'),
        ('failed', 'Failed'),
        ('refund_pending', 'Refund Pending'),
    )
    METHOD_CHOICES = (
        ('esewa', 'eSewa'),
        ('khalti', 'Khalti'),
    )

    booking = models.ForeignKey('bookings.Booking', on_delete=models.PROTECT, related_name='payments')
    correlation_id = models.CharField(max_length=64, unique=True)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='initiated', db_index=True)

    transaction_ref = models.CharField(max_length=100, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True)
    gateway_response = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['booking', 'status']),
        ]

    def __str__(self):
        return f"Payment {self.correlation_id} for {self.booking.booking_code} - {self.status}"
